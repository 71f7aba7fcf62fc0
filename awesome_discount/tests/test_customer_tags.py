import pytest
import requests

from awesome_discount.services.customer_tags import (
    CustomerTagClient,
    CustomerTagLookupError,
    ShopifyCredentials,
    lookup_tags_or_empty,
    to_customer_gid,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


CREDS = ShopifyCredentials(subdomain="demo-shop", access_token="shpat_test")


def _client(**kw):
    session = FakeSession(**kw)
    return CustomerTagClient(CREDS, timeout=3, session=session), session


def test_credentials_require_both_fields():
    with pytest.raises(ValueError):
        ShopifyCredentials(subdomain="", access_token="x")
    assert CREDS.graphql_url == "https://demo-shop.myshopify.com/admin/api/2024-01/graphql.json"


@pytest.mark.parametrize(
    "raw, gid",
    [("123", "gid://shopify/Customer/123"), (" 42 ", "gid://shopify/Customer/42"), ("gid://shopify/Customer/9", "gid://shopify/Customer/9")],
)
def test_to_customer_gid(raw, gid):
    assert to_customer_gid(raw) == gid


def test_fetch_customer_tags_dedupes_and_keeps_order():
    client, session = _client(
        response=FakeResponse(payload={"data": {"customer": {"id": "gid://shopify/Customer/1", "tags": ["vip", "new", "vip", ""]}}})
    )

    assert client.fetch_customer_tags("1") == ("vip", "new")

    call = session.calls[0]
    assert call["json"]["variables"] == {"customerId": "gid://shopify/Customer/1"}
    assert call["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    assert call["timeout"] == 3


def test_fetch_unknown_customer_returns_no_tags():
    client, _ = _client(response=FakeResponse(payload={"data": {"customer": None}}))

    assert client.fetch_customer_tags("404") == ()


@pytest.mark.parametrize(
    "kw",
    [
        {"response": FakeResponse(status_code=401, text="unauthorized")},
        {"response": FakeResponse(payload=None)},
        {"response": FakeResponse(payload={"errors": [{"message": "throttled"}]})},
        {"exc": requests.ConnectionError("down")},
    ],
)
def test_lookup_failures_raise(kw):
    client, _ = _client(**kw)

    with pytest.raises(CustomerTagLookupError):
        client.fetch_customer_tags("1")


def test_list_store_tags_sorted_unique():
    payload = {
        "data": {
            "customers": {
                "edges": [
                    {"node": {"id": "a", "tags": ["wholesale", "vip"]}},
                    {"node": {"id": "b", "tags": ["vip", "gold"]}},
                    {"node": {"id": "c", "tags": []}},
                ]
            }
        }
    }
    client, session = _client(response=FakeResponse(payload=payload))

    assert client.list_store_tags(first=50) == ("gold", "vip", "wholesale")
    assert session.calls[0]["json"]["variables"] == {"first": 50}


def test_lookup_tags_or_empty_swallows_upstream_failure():
    client, _ = _client(response=FakeResponse(status_code=500, text="boom"))

    assert lookup_tags_or_empty(client, "1") == ()
    assert lookup_tags_or_empty(None, "1") == ()
    assert lookup_tags_or_empty(client, None) == ()
