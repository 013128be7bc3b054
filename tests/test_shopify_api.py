import pytest
import requests

import shopify_api


@pytest.fixture
def no_sleep(monkeypatch):
    waits = []
    monkeypatch.setattr(shopify_api.time, "sleep", waits.append)
    return waits


@pytest.fixture
def fake_requests(monkeypatch):
    """Queue responses for requests.request and record every call."""
    calls = []
    queue = []

    def fake_request(method, url, **kwargs):
        calls.append({"method": method, "url": url, **kwargs})
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(shopify_api.requests, "request", fake_request)
    return queue, calls


def test_admin_url():
    assert shopify_api.admin_url("products/42/metafields") == (
        "https://test-shop.myshopify.com/admin/api/2025-07/products/42/metafields.json"
    )
    assert shopify_api.admin_url("/orders.json") == (
        "https://test-shop.myshopify.com/admin/api/2025-07/orders.json"
    )


def test_safe_request_sends_access_token(fake_requests, fake_response):
    queue, calls = fake_requests
    queue.append(fake_response(payload={"ok": True}))

    response = shopify_api.safe_request("GET", "https://example.test")

    assert response.json() == {"ok": True}
    assert calls[0]["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    assert "timeout" in calls[0]


def test_safe_request_waits_on_rate_limit(fake_requests, fake_response, no_sleep):
    queue, calls = fake_requests
    queue.append(fake_response(status_code=429, headers={"Retry-After": "4"}))
    queue.append(fake_response(payload={"ok": True}))

    response = shopify_api.safe_request("GET", "https://example.test")

    assert response.status_code == 200
    assert len(calls) == 2
    assert no_sleep == [4]


def test_safe_request_gives_up_when_always_rate_limited(fake_requests, fake_response, no_sleep):
    queue, calls = fake_requests
    queue.extend(fake_response(status_code=429) for _ in range(3))

    with pytest.raises(shopify_api.ShopifyAPIError) as excinfo:
        shopify_api.safe_request("GET", "https://example.test")

    assert excinfo.value.status_code == 429
    assert len(calls) == 3


def test_safe_request_raises_on_http_error(fake_requests, fake_response):
    queue, _ = fake_requests
    queue.append(fake_response(status_code=404, text="Not Found"))

    with pytest.raises(shopify_api.ShopifyAPIError) as excinfo:
        shopify_api.safe_request("GET", "https://example.test")

    assert excinfo.value.status_code == 404


def test_safe_request_retries_connection_errors(fake_requests, fake_response, no_sleep):
    queue, calls = fake_requests
    queue.append(requests.exceptions.ConnectionError("reset"))
    queue.append(fake_response(payload={"ok": True}))

    assert shopify_api.safe_request("GET", "https://example.test").json() == {"ok": True}
    assert no_sleep == [1]


def test_safe_request_raises_after_repeated_connection_errors(fake_requests, no_sleep):
    queue, _ = fake_requests
    queue.extend(requests.exceptions.ConnectionError("down") for _ in range(3))

    with pytest.raises(shopify_api.ShopifyAPIError):
        shopify_api.safe_request("GET", "https://example.test")


def test_product_metafields_follow_link_pagination(fake_requests, fake_response):
    queue, calls = fake_requests
    next_url = (
        "https://test-shop.myshopify.com/admin/api/2025-07/products/7/metafields.json"
        "?limit=250&page_info=abc"
    )
    queue.append(fake_response(
        payload={"metafields": [{"key": "extra_color_fee", "value": "3.00"}]},
        headers={"Link": f'<{next_url}>; rel="next"'},
    ))
    queue.append(fake_response(payload={"metafields": [{"key": "extra_setup_per_color", "value": "20"}]}))

    metafields = shopify_api.get_product_metafields(7)

    assert [m["key"] for m in metafields] == ["extra_color_fee", "extra_setup_per_color"]
    assert calls[0]["params"] == {"limit": 250}
    assert calls[1]["url"] == next_url
    assert calls[1]["params"] is None


def test_graphql_returns_data_and_passes_variables(fake_requests, fake_response):
    queue, calls = fake_requests
    queue.append(fake_response(payload={"data": {"shop": {"name": "Test"}}}))

    data = shopify_api.graphql("query { shop { name } }", {"first": 1})

    assert data == {"shop": {"name": "Test"}}
    assert calls[0]["method"] == "POST"
    assert calls[0]["url"].endswith("/admin/api/2025-07/graphql.json")
    assert calls[0]["json"]["variables"] == {"first": 1}


def test_graphql_errors_raise(fake_requests, fake_response):
    queue, _ = fake_requests
    queue.append(fake_response(payload={"errors": [{"message": "Field 'nope' doesn't exist"}]}))

    with pytest.raises(shopify_api.ShopifyAPIError, match="nope"):
        shopify_api.graphql("query { nope }")


def test_get_orders_requests_any_status(fake_requests, fake_response):
    queue, calls = fake_requests
    queue.append(fake_response(payload={"orders": [{"name": "#1001"}]}))

    assert shopify_api.get_orders() == [{"name": "#1001"}]
    assert calls[0]["params"] == {"status": "any", "limit": 50}


def test_create_product_metafield(fake_requests, fake_response):
    queue, calls = fake_requests
    queue.append(fake_response(status_code=201, payload={"metafield": {"id": 99, "key": "product_template"}}))

    created = shopify_api.create_product_metafield(5, {"key": "product_template", "value": "tee"})

    assert created["id"] == 99
    assert calls[0]["json"] == {"metafield": {"key": "product_template", "value": "tee"}}


def test_safe_request_uses_default_wait_for_http_date_retry_after(fake_requests, fake_response, no_sleep):
    queue, _ = fake_requests
    queue.append(fake_response(status_code=429, headers={"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}))
    queue.append(fake_response(payload={"ok": True}))

    assert shopify_api.safe_request("GET", "https://example.test").json() == {"ok": True}
    assert no_sleep == [2.0]
