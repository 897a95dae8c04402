import pytest

from tracker.services import order_service, production_service, task_service
from tracker.services.errors import ExceedsCapacity, InvalidQuantity, NotFound
from tests.conftest import assert_consistent, line


@pytest.fixture
def two_orders(seed):
    seed([
        {"order_id": "o1", "order_date": "2025-01-01T09:00:00Z", "lines": [line("l1", "V1", 2)]},
        {"order_id": "o2", "order_date": "2025-01-02T09:00:00Z", "lines": [line("l2", "V1", 3)]},
    ])


def _fulfilled(session, line_item_id):
    items = {li.line_item_id: li for o in order_service.list_orders(session) for li in o.line_items}
    return items[line_item_id].fulfilled_quantity


def test_mark_produced_fills_oldest_order_first(db_session, two_orders):
    result = production_service.mark_produced(db_session, "V1", 2)

    assert (result.task.made_quantity, result.task.status) == (2, "in_progress")
    assert [o.order_id for o in result.newly_fulfilled_orders] == ["o1"]
    assert _fulfilled(db_session, "l1") == 2
    assert _fulfilled(db_session, "l2") == 0
    assert order_service.get_order(db_session, "o2").status == "pending"
    assert_consistent(db_session)


def test_mark_produced_reports_each_order_once(db_session, two_orders):
    production_service.mark_produced(db_session, "V1", 1)
    result = production_service.mark_produced(db_session, "V1", 3)

    assert [o.order_id for o in result.newly_fulfilled_orders] == ["o1"]
    assert order_service.get_order(db_session, "o2").status == "in_progress"
    assert_consistent(db_session)


def test_exceeding_total_changes_nothing(db_session, two_orders):
    production_service.mark_produced(db_session, "V1", 3)

    with pytest.raises(ExceedsCapacity) as exc_info:
        production_service.mark_produced(db_session, "V1", 3)
    assert str(exc_info.value) == "Cannot mark 3 - would exceed total (5)"

    assert task_service.get_task(db_session, "V1").made_quantity == 3
    assert _fulfilled(db_session, "l2") == 1
    assert_consistent(db_session)


@pytest.mark.parametrize("qty", [0, -1, 1.5, None, "abc"])
def test_invalid_quantity_is_rejected(db_session, two_orders, qty):
    with pytest.raises(InvalidQuantity):
        production_service.mark_produced(db_session, "V1", qty)
    assert task_service.get_task(db_session, "V1").made_quantity == 0


def test_unknown_variant_is_not_found(db_session, two_orders):
    with pytest.raises(NotFound):
        production_service.mark_produced(db_session, "nope", 1)


def test_mark_complete_allocates_remaining_and_is_idempotent(db_session, two_orders):
    production_service.mark_produced(db_session, "V1", 1)

    result = production_service.mark_complete(db_session, "V1")
    assert (result.task.made_quantity, result.task.status) == (5, "completed")
    assert {o.order_id for o in result.newly_fulfilled_orders} == {"o1", "o2"}

    again = production_service.mark_complete(db_session, "V1")
    assert again.task.made_quantity == 5
    assert again.newly_fulfilled_orders == []
    assert_consistent(db_session)


def test_reset_withdraws_from_newest_orders(db_session, two_orders):
    production_service.mark_produced(db_session, "V1", 4)

    result = production_service.reset_task(db_session, "V1")
    assert (result.task.made_quantity, result.task.status) == (0, "pending")
    assert _fulfilled(db_session, "l1") == 0
    assert _fulfilled(db_session, "l2") == 0
    assert order_service.get_order(db_session, "o1").status == "pending"
    assert_consistent(db_session)


def test_reset_leaves_archived_orders_alone(db_session, seed):
    seed([
        {"order_id": "o1", "order_date": "2025-01-01T09:00:00Z", "lines": [line("l1", "V1", 2, fulfilled=2)],
         "status": "archived"},
        {"order_id": "o2", "order_date": "2025-01-02T09:00:00Z", "lines": [line("l2", "V1", 3, fulfilled=1)]},
    ])

    production_service.reset_task(db_session, "V1")

    archived = order_service.get_line_items(db_session, "o1")
    assert archived[0].fulfilled_quantity == 2
    assert order_service.get_order(db_session, "o1").status == "archived"
    assert _fulfilled(db_session, "l2") == 0
    assert_consistent(db_session)
