"""
Thin wrapper around the Shopify Admin REST and GraphQL APIs.

Uses the offline access token from config. Rate limiting (HTTP 429) is handled
by waiting for ``Retry-After`` and retrying; other HTTP errors are raised as
ShopifyAPIError so the routes can turn them into JSON responses.
"""

import logging
import time

import requests

import config

logger = logging.getLogger(__name__)


class ShopifyAPIError(Exception):
    """A Shopify Admin API call failed."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def admin_url(path):
    """Return the Admin REST url for path, e.g. ``products/1/metafields``."""
    path = path.strip("/")
    if not path.endswith(".json"):
        path = f"{path}.json"
    return f"https://{config.STORE_DOMAIN}/admin/api/{config.API_VERSION}/{path}"


def graphql_url():
    return f"https://{config.STORE_DOMAIN}/admin/api/{config.API_VERSION}/graphql.json"


def _headers():
    return {
        "Content-Type": "application/json",
        "X-Shopify-Access-Token": config.ACCESS_TOKEN,
    }


def _retry_after_seconds(response, default=2.0):
    """Seconds to wait on a 429; HTTP-date or missing headers use the default."""
    try:
        return float(response.headers.get("Retry-After", default))
    except (TypeError, ValueError):
        return default


def safe_request(method, url, **kwargs):
    """Make API requests with rate limiting and error handling"""
    kwargs.setdefault("headers", _headers())
    kwargs.setdefault("timeout", config.REQUEST_TIMEOUT)
    max_retries = max(1, config.MAX_RETRIES)

    for attempt in range(max_retries):
        try:
            response = requests.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            if attempt == max_retries - 1:
                logger.error("❌ %s %s failed after %s attempts: %s", method, url, max_retries, e)
                raise ShopifyAPIError(f"Request failed: {e}") from e
            logger.warning("⚠️ Request attempt %s failed: %s, retrying...", attempt + 1, e)
            time.sleep(2 ** attempt)  # Exponential backoff
            continue

        if response.status_code == 429:
            wait_time = _retry_after_seconds(response)
            logger.warning("⚠️ Rate limit exceeded, waiting %s seconds...", wait_time)
            if attempt == max_retries - 1:
                break
            time.sleep(wait_time)
            continue

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise ShopifyAPIError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            ) from e
        return response

    raise ShopifyAPIError(f"Rate limited after {max_retries} attempts", status_code=429)


def _next_page_url(response):
    link_header = response.headers.get("Link")
    if not link_header:
        return None
    for part in link_header.split(","):
        if 'rel="next"' in part:
            return part[part.find("<") + 1 : part.find(">")]  # noqa: E203
    return None


def rest_get(path, params=None):
    return safe_request("GET", admin_url(path), params=params).json()


def rest_post(path, payload):
    return safe_request("POST", admin_url(path), json=payload).json()


def rest_get_paginated(path, key, params=None):
    """Return every item under ``key`` from a REST collection, following Link pagination."""
    url = admin_url(path)
    collected = []
    while url:
        response = safe_request("GET", url, params=params)
        collected.extend(response.json().get(key, []))
        url = _next_page_url(response)
        # The next-page url already carries the page_info cursor
        params = None
    return collected


def graphql(query, variables=None):
    """Run a GraphQL Admin query and return its ``data`` payload."""
    payload = {"query": query}
    if variables:
        payload["variables"] = variables
    body = safe_request("POST", graphql_url(), json=payload).json()
    if body.get("errors"):
        messages = "; ".join(str(err.get("message", err)) for err in body["errors"])
        logger.error("❌ GraphQL errors: %s", messages)
        raise ShopifyAPIError(f"GraphQL errors: {messages}")
    return body.get("data") or {}


def get_product_metafields(product_id):
    """Return list of metafields for a product, following pagination."""
    return rest_get_paginated(
        f"products/{product_id}/metafields", "metafields", params={"limit": 250}
    )


def get_products(limit=100):
    return rest_get("products", params={"limit": limit}).get("products", [])


def get_orders(limit=50, status="any"):
    return rest_get("orders", params={"status": status, "limit": limit}).get("orders", [])


def create_product_metafield(product_id, metafield):
    """Create a metafield on a product and return the created metafield."""
    body = rest_post(f"products/{product_id}/metafields", {"metafield": metafield})
    return body.get("metafield", {})
