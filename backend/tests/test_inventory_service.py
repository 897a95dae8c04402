import pytest

from tracker.services import inventory_service
from tracker.services.errors import InvalidPayload
from tracker.services.inventory_service import InventoryRecord


def _rec(variant_id, qty, product_title="T-Shirt", variant_title="", sku="", product_id="p1"):
    return InventoryRecord(
        variant_id=variant_id,
        inventory_quantity=qty,
        product_id=product_id,
        product_title=product_title,
        variant_title=variant_title,
        sku=sku,
    )


@pytest.fixture
def stocked(db_session):
    inventory_service.bulk_upsert_inventory(db_session, [
        _rec("v1", 50, "Apple T-Shirt", "Red", "APP-RED"),
        _rec("v2", 0, "Apple T-Shirt", "Blue", "APP-BLUE"),
        _rec("v3", 25, "Banana Pants", "Yellow", "BAN-YEL"),
        _rec("v4", 0, "Cherry Hat", "", "CHE-HAT"),
    ])


class TestUpsert:
    def test_inserts_new_record(self, db_session):
        inventory_service.upsert_inventory(
            db_session, _rec("variant-1", 50, "T-Shirt", "Red / Large", "TS-RED-L")
        )
        item = inventory_service.get_inventory(db_session, "variant-1")
        assert (item.product_title, item.variant_title, item.sku) == ("T-Shirt", "Red / Large", "TS-RED-L")
        assert item.inventory_quantity == 50
        assert item.last_synced_at is not None

    def test_updates_existing_record(self, db_session):
        inventory_service.upsert_inventory(db_session, _rec("variant-1", 50))
        inventory_service.upsert_inventory(db_session, _rec("variant-1", 25, "T-Shirt Updated"))

        item = inventory_service.get_inventory(db_session, "variant-1")
        assert item.inventory_quantity == 25
        assert item.product_title == "T-Shirt Updated"

    @pytest.mark.parametrize("qty", [0, -5])
    def test_keeps_zero_and_negative_levels(self, db_session, qty):
        inventory_service.upsert_inventory(db_session, _rec("variant-1", qty))
        item = inventory_service.get_inventory(db_session, "variant-1")
        assert item.inventory_quantity == qty
        assert item.is_out_of_stock

    def test_bulk_updates_in_place(self, db_session):
        inventory_service.bulk_upsert_inventory(db_session, [_rec("v1", 10)])
        assert inventory_service.bulk_upsert_inventory(db_session, [_rec("v1", 5), _rec("v2", 1)]) == 2

        assert inventory_service.get_inventory(db_session, "v1").inventory_quantity == 5
        assert len(inventory_service.list_inventory(db_session)) == 2


class TestListing:
    def test_out_of_stock_first_then_title(self, db_session, stocked):
        items = inventory_service.list_inventory(db_session)
        assert [i.variant_id for i in items] == ["v2", "v4", "v1", "v3"]

    def test_out_of_stock_only(self, db_session, stocked):
        items = inventory_service.list_inventory(db_session, out_of_stock_only=True)
        assert {i.variant_id for i in items} == {"v2", "v4"}

    @pytest.mark.parametrize("term,expected", [
        ("Apple", {"v1", "v2"}),
        ("apple", {"v1", "v2"}),
        ("Yellow", {"v3"}),
        ("BAN", {"v3"}),
        ("nothing", set()),
    ])
    def test_search_matches_titles_and_sku(self, db_session, stocked, term, expected):
        items = inventory_service.list_inventory(db_session, search=term)
        assert {i.variant_id for i in items} == expected

    def test_filters_combine(self, db_session, stocked):
        [item] = inventory_service.list_inventory(db_session, out_of_stock_only=True, search="Apple")
        assert (item.variant_title, item.inventory_quantity) == ("Blue", 0)


class TestStats:
    def test_mixed_inventory(self, db_session, stocked):
        stats = inventory_service.inventory_stats(db_session)
        assert stats.to_dict() == {
            "total_variants": 4,
            "in_stock_count": 2,
            "out_of_stock_count": 2,
            "total_inventory": 75,
        }

    def test_empty_inventory_reports_zeros(self, db_session):
        stats = inventory_service.inventory_stats(db_session)
        assert (stats.total_variants, stats.in_stock_count, stats.out_of_stock_count, stats.total_inventory) == (0, 0, 0, 0)

    def test_all_out_of_stock(self, db_session):
        inventory_service.bulk_upsert_inventory(db_session, [_rec("v1", 0), _rec("v2", 0)])
        stats = inventory_service.inventory_stats(db_session)
        assert (stats.in_stock_count, stats.out_of_stock_count) == (0, 2)


def test_clear_removes_everything(db_session, stocked):
    assert inventory_service.clear_inventory(db_session) == 4
    assert inventory_service.list_inventory(db_session) == []


def test_parse_inventory_wire_shape():
    [record] = inventory_service.parse_inventory({"inventory": [
        {"variantId": "gid://shopify/ProductVariant/1", "productId": "gid://shopify/Product/9",
         "productTitle": "Mug", "variantTitle": "Blue", "sku": "MUG-B", "inventoryQuantity": -2},
    ]})
    assert record == InventoryRecord(
        variant_id="gid://shopify/ProductVariant/1",
        inventory_quantity=-2,
        product_id="gid://shopify/Product/9",
        product_title="Mug",
        variant_title="Blue",
        sku="MUG-B",
    )


@pytest.mark.parametrize("payload", [
    {"inventory": [{"inventoryQuantity": 3}]},
    {"inventory": [{"variantId": "v", "inventoryQuantity": "3"}]},
    ["not", "an", "object"],
])
def test_parse_inventory_rejects_malformed_rows(payload):
    with pytest.raises(InvalidPayload):
        inventory_service.parse_inventory(payload)
