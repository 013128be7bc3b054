import pytest
import requests

import config


class FakeResponse:
    """Stand-in for requests.Response with just what the client reads."""

    def __init__(self, status_code=200, payload=None, headers=None, text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.headers = headers or {}
        self.text = text

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


@pytest.fixture(autouse=True)
def store_config(monkeypatch):
    monkeypatch.setattr(config, "STORE_DOMAIN", "test-shop.myshopify.com")
    monkeypatch.setattr(config, "API_VERSION", "2025-07")
    monkeypatch.setattr(config, "ACCESS_TOKEN", "shpat_test")
    monkeypatch.setattr(config, "MAX_RETRIES", 3)


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def client():
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client
