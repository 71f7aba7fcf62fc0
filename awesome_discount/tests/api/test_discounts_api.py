import json

from awesome_discount.services.customer_tags import CustomerTagLookupError


class FakeTagClient:
    def __init__(self, tags=(), store_tags=(), fail=False):
        self.tags = tuple(tags)
        self.store_tags = tuple(store_tags)
        self.fail = fail

    def fetch_customer_tags(self, customer_id):
        if self.fail:
            raise CustomerTagLookupError("upstream down")
        return self.tags

    def list_store_tags(self, first=100):
        if self.fail:
            raise CustomerTagLookupError("upstream down")
        return self.store_tags


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_run_endpoint_returns_platform_result(client):
    payload = {
        "cart": {
            "lines": [
                {
                    "quantity": 1,
                    "cost": {"amountPerQuantity": {"amount": "20.00"}},
                    "merchandise": {"__typename": "ProductVariant", "id": "gid://shopify/ProductVariant/7"},
                }
            ],
            "buyerIdentity": {"customer": {"hasTags": [{"tag": "vip", "hasTag": True}]}},
        },
        "discountNode": {"metafield": {"value": json.dumps({"tagDiscounts": {"vip": 15}})}},
    }

    r = client.post("/api/discounts/run", json=payload)

    assert r.status_code == 200
    body = r.json()
    assert body["discountApplicationStrategy"] == "ALL"
    assert body["discounts"] == [
        {
            "targets": [{"productVariant": {"id": "gid://shopify/ProductVariant/7"}}],
            "value": {"percentage": {"value": "15"}},
            "message": "Tag discounts: vip (15%) (Add 2 more item(s) to qualify for Buy 2 Get 1 discount)",
        }
    ]


def test_run_endpoint_broken_configuration_is_422(client):
    payload = {"cart": {"lines": []}, "discountNode": {"metafield": {"value": "{nope"}}}

    r = client.post("/api/discounts/run", json=payload)

    assert r.status_code == 422


def test_evaluate_endpoint(client):
    payload = {
        "cart": {
            "lines": [
                {"merchandiseId": "A", "quantity": 2, "unitPrice": "10.00"},
                {"merchandiseId": "B", "quantity": 1, "unitPrice": "4.00"},
            ]
        },
        "customerTags": ["vip"],
        "configuration": {"tagDiscounts": {"vip": 20}},
    }

    r = client.post("/api/discounts/evaluate", json=payload)

    assert r.status_code == 200
    body = r.json()
    assert body["empty"] is False
    assert [d["sourceIds"] for d in body["discounts"]] == [["buy_x_get_y"], ["tags"]]
    assert body["discounts"][0]["targets"] == [{"merchandiseId": "B", "quantity": 1}]
    assert body["discounts"][1]["percentage"] == "20"


def test_evaluate_endpoint_empty(client):
    r = client.post("/api/discounts/evaluate", json={"configuration": {"buyXGetY": {"enabled": False}}})

    assert r.status_code == 200
    assert r.json() == {"version": "v1", "empty": True, "discounts": []}


def test_evaluate_endpoint_bad_configuration(client):
    r = client.post("/api/discounts/evaluate", json={"configuration": {"tagDiscounts": {"vip": 500}}})

    assert r.status_code == 422
    assert "vip" in r.json()["detail"]


def test_config_validate_normalizes_legacy_keys(client):
    r = client.post("/api/discounts/config/validate", json={"tagDiscounts": {"vipPercentage": 20, "new": 5}})

    assert r.status_code == 200
    body = r.json()
    assert body["namespace"] == "awesome-discount"
    assert body["key"] == "tag-discount-config"
    assert body["configuration"]["tagDiscounts"] == {"vip": 20, "new": 5}
    assert body["configuration"]["buyXGetY"] == {
        "buyQuantity": 2,
        "getQuantity": 1,
        "discountPercentage": 100,
        "enabled": True,
    }
    assert json.loads(body["value"]) == body["configuration"]
    assert body["totalTagDiscount"] == 25


def test_volume_tiers(client):
    r = client.get("/api/discounts/volume-tiers")

    assert r.status_code == 200
    assert r.json()["lines"][0] == "5+ items: 30% off"
    assert len(r.json()["tiers"]) == 4


def test_customer_tags_without_credentials_is_503(client, with_tag_client):
    with_tag_client(None)

    r = client.get("/api/discounts/customers/123/tags")

    assert r.status_code == 503


def test_customer_tags(client, with_tag_client):
    with_tag_client(FakeTagClient(tags=["vip", "new"]))

    r = client.get("/api/discounts/customers/123/tags")

    assert r.status_code == 200
    assert r.json() == {"customerId": "123", "tags": ["vip", "new"]}


def test_customer_tags_upstream_failure_is_502(client, with_tag_client):
    with_tag_client(FakeTagClient(fail=True))

    r = client.get("/api/discounts/customers/123/tags")

    assert r.status_code == 502


def test_tag_options_exclude_configured(client, with_tag_client):
    with_tag_client(FakeTagClient(store_tags=["gold", "vip", "wholesale"]))

    r = client.post("/api/discounts/config/tag-options", json={"tagDiscounts": {"vip": 10}})

    assert r.status_code == 200
    assert r.json() == {"tags": ["gold", "wholesale"]}


def test_config_tags_add_starts_at_zero(client):
    r = client.post(
        "/api/discounts/config/tags",
        json={"action": "add", "tag": "gold", "configuration": {"tagDiscounts": {"vip": 10}}},
    )

    assert r.status_code == 200
    assert r.json()["configuration"]["tagDiscounts"] == {"vip": 10, "gold": 0}


def test_config_tags_set_percentage_updates_total(client):
    r = client.post(
        "/api/discounts/config/tags",
        json={
            "action": "set_percentage",
            "tag": "vip",
            "percentage": 12.5,
            "configuration": json.dumps({"tagDiscounts": {"vip": 10, "new": 5}}),
        },
    )

    assert r.status_code == 200
    body = r.json()
    assert body["configuration"]["tagDiscounts"] == {"vip": 12.5, "new": 5}
    assert body["totalTagDiscount"] == 17.5


def test_config_tags_remove(client):
    r = client.post(
        "/api/discounts/config/tags",
        json={"action": "remove", "tag": "vip", "configuration": {"tagDiscounts": {"vip": 10}}},
    )

    assert r.status_code == 200
    assert r.json()["configuration"]["tagDiscounts"] == {}


def test_config_tags_invalid_edits_are_422(client):
    base = {"configuration": {"tagDiscounts": {"vip": 10}}}

    assert client.post("/api/discounts/config/tags", json={**base, "action": "add", "tag": " "}).status_code == 422
    assert client.post("/api/discounts/config/tags", json={**base, "action": "set_percentage", "tag": "vip"}).status_code == 422
    assert (
        client.post(
            "/api/discounts/config/tags", json={**base, "action": "set_percentage", "tag": "gold", "percentage": 5}
        ).status_code
        == 422
    )
    assert (
        client.post(
            "/api/discounts/config/tags", json={**base, "action": "set_percentage", "tag": "vip", "percentage": 101}
        ).status_code
        == 422
    )
