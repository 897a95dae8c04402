import json

import pytest

from tracker.services.errors import InvalidPayload
from tracker.services.order_source import FileOrderSource, PayloadOrderSource, build_snapshot, parse_orders


PAYLOAD = {
    "orders": [
        {
            "orderId": "gid://shopify/Order/1001",
            "orderName": "#1001",
            "orderDate": "2025-01-10T10:00:00Z",
            "lineItems": [
                {"lineItemId": "gid://shopify/LineItem/101", "variantId": "V001",
                 "productTitle": "T-Shirt", "variantTitle": "Red / Medium", "sku": "TSH-RED-M",
                 "imageUrl": None, "fulfillableQuantity": 3},
                {"lineItemId": "gid://shopify/LineItem/102", "variantId": "V002",
                 "productTitle": "T-Shirt", "variantTitle": "Blue / Large", "sku": "TSH-BLU-L",
                 "fulfillableQuantity": 0},
            ],
        },
        {
            "orderId": "gid://shopify/Order/1002",
            "orderName": "#1002",
            "orderDate": "2025-01-11T10:00:00Z",
            "lineItems": [
                {"lineItemId": "gid://shopify/LineItem/201", "variantId": "V001",
                 "productTitle": "T-Shirt", "variantTitle": "Red / Medium", "sku": "TSH-RED-M",
                 "fulfillableQuantity": 5},
            ],
        },
        {
            "orderId": "gid://shopify/Order/1003",
            "orderName": "#1003",
            "orderDate": "2025-01-12T10:00:00Z",
            "lineItems": [
                {"lineItemId": "gid://shopify/LineItem/301", "variantId": "V002",
                 "fulfillableQuantity": 0},
            ],
        },
    ]
}


def test_snapshot_aggregates_by_variant_and_drops_empty_lines():
    snapshot = build_snapshot(parse_orders(PAYLOAD))

    assert snapshot.orders_fetched == 3
    assert [o.order_id for o in snapshot.orders_for_storage] == [
        "gid://shopify/Order/1001",
        "gid://shopify/Order/1002",
    ]
    assert [li.line_item_id for li in snapshot.orders_for_storage[0].line_items] == ["gid://shopify/LineItem/101"]

    assert snapshot.variant_count == 1
    agg = snapshot.aggregated[0]
    assert (agg.variant_id, agg.total_quantity, agg.sku) == ("V001", 8, "TSH-RED-M")


def test_parse_orders_normalizes_dates():
    orders = parse_orders(PAYLOAD)
    assert orders[0].order_date.isoformat() == "2025-01-10T10:00:00"


def test_parse_orders_rejects_non_integer_quantity():
    bad = {"orders": [{"orderId": "o", "orderDate": "2025-01-01T00:00:00Z",
                       "lineItems": [{"lineItemId": "l", "variantId": "v", "fulfillableQuantity": "2"}]}]}
    with pytest.raises(InvalidPayload) as exc_info:
        parse_orders(bad)
    assert exc_info.value.details == {"index": 0}


def test_parse_orders_requires_date():
    with pytest.raises(InvalidPayload) as exc_info:
        parse_orders({"orders": [{"orderId": "o", "lineItems": []}]})
    assert exc_info.value.details["missing"] == "orderDate"


def test_parse_orders_rejects_unparseable_date():
    with pytest.raises(InvalidPayload):
        parse_orders({"orders": [{"orderId": "o", "orderDate": "last tuesday", "lineItems": []}]})


def test_payload_and_file_sources_agree(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps(PAYLOAD), encoding="utf-8")

    from_file = FileOrderSource(path).fetch_unfulfilled()
    from_payload = PayloadOrderSource(PAYLOAD).fetch_unfulfilled()
    assert from_file == from_payload
