import pytest

from tracker.models import Order, SyncHistory
from tracker.services import order_service, sync_service, task_service
from tracker.services.errors import InvalidPayload, SyncError
from tracker.services.order_source import PayloadOrderSource
from tests.conftest import line


def _payload(*orders):
    return {"orders": [
        {
            "orderId": oid,
            "orderName": f"#{oid}",
            "orderDate": date,
            "lineItems": [
                {"lineItemId": lid, "variantId": vid, "productTitle": "Mug", "fulfillableQuantity": qty}
                for lid, vid, qty in items
            ],
        }
        for oid, date, items in orders
    ]}


class ExplodingSource:
    def fetch_unfulfilled(self):
        raise ConnectionError("shop unreachable")


def test_successful_sync_records_history(db_session):
    source = PayloadOrderSource(_payload(
        ("o1", "2025-01-01T00:00:00Z", [("l1", "V1", 2), ("l2", "V2", 1)]),
        ("o2", "2025-01-02T00:00:00Z", [("l3", "V1", 1)]),
    ))
    result = sync_service.run_sync(db_session, source)

    assert result.message == "Synced 2 orders with 2 unique variants"
    assert task_service.get_task(db_session, "V1").total_quantity == 3

    history = sync_service.get_sync_history(db_session)
    assert len(history) == 1
    assert (history[0].status, history[0].orders_fetched, history[0].variants_updated) == ("success", 2, 2)


def test_fetch_failure_leaves_state_untouched(db_session, seed):
    seed([{"order_id": "o1", "order_date": "2025-01-01T00:00:00Z", "lines": [line("l1", "V1", 2)]}])

    with pytest.raises(SyncError) as exc_info:
        sync_service.run_sync(db_session, ExplodingSource())
    assert exc_info.value.details["phase"] == "fetch"

    assert order_service.get_order(db_session, "o1") is not None
    assert task_service.get_task(db_session, "V1").total_quantity == 2

    entry = db_session.query(SyncHistory).one()
    assert entry.status == "error"
    assert "shop unreachable" in entry.error_message


def test_commit_failure_rolls_back_and_logs(db_session, seed, monkeypatch):
    seed([{"order_id": "o1", "order_date": "2025-01-01T00:00:00Z", "lines": [line("l1", "V1", 2)]}])

    from tracker.services import reconciliation_service

    def boom(*args, **kwargs):
        raise RuntimeError("constraint trouble")

    monkeypatch.setattr(reconciliation_service, "refresh_order_statuses", boom)

    with pytest.raises(SyncError) as exc_info:
        sync_service.run_sync(db_session, PayloadOrderSource(_payload(
            ("o9", "2025-02-01T00:00:00Z", [("l9", "V9", 1)]),
        )))
    assert exc_info.value.details["phase"] == "commit"

    assert {o.order_id for o in db_session.query(Order).all()} == {"o1"}
    entry = db_session.query(SyncHistory).one()
    assert entry.status == "error"
    assert entry.orders_fetched == 1


def test_resync_preserves_progress_and_archive(db_session):
    first = PayloadOrderSource(_payload(
        ("o1", "2025-01-01T00:00:00Z", [("l1", "V1", 3)]),
        ("o2", "2025-01-02T00:00:00Z", [("l2", "V1", 3)]),
        ("o3", "2025-01-03T00:00:00Z", [("l3", "V2", 2)]),
    ))
    sync_service.run_sync(db_session, first)

    from tracker.services import production_service
    production_service.mark_produced(db_session, "V1", 4)
    production_service.mark_complete(db_session, "V2")
    order_service.archive(db_session, "o3")

    # Upstream still lists everything, unaware of local progress or archival
    sync_service.run_sync(db_session, first)

    v1 = task_service.get_task(db_session, "V1")
    assert (v1.total_quantity, v1.made_quantity) == (6, 4)
    assert task_service.get_task(db_session, "V2") is None
    assert order_service.get_order(db_session, "o1").status == "fulfilled"
    assert order_service.get_order(db_session, "o2").fulfilled_items == 1
    assert order_service.get_order(db_session, "o3").status == "archived"


def test_history_is_newest_first_and_limited(db_session):
    for i in range(3):
        sync_service.log_sync(db_session, status="success", orders_fetched=i)
    entries = sync_service.get_sync_history(db_session, limit=2)
    assert [e.orders_fetched for e in entries] == [2, 1]


def test_malformed_payload_is_rejected_and_logged(db_session, seed):
    seed([{"order_id": "o1", "order_date": "2025-01-01T00:00:00Z", "lines": [line("l1", "V1", 2)]}])

    with pytest.raises(InvalidPayload) as exc_info:
        sync_service.run_sync(db_session, PayloadOrderSource({"orders": [{"orderName": "#9"}]}))
    assert exc_info.value.details["phase"] == "fetch"

    assert order_service.get_order(db_session, "o1") is not None
    entry = db_session.query(SyncHistory).one()
    assert entry.status == "error"
    assert "orderId" in entry.error_message
