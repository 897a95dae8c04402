"""
Pytest fixtures for tracker backend tests.

Provides an in-memory database, a per-test clean session, and a seeding
helper that lays down orders/line items with progress the way a sync plus
operator activity would.
"""

from datetime import datetime

import pytest

from tracker import create_app
from tracker.extensions import db
from tracker.models import Order, OrderLineItem, Task
from tracker.services import order_service, task_service
from tracker.services.reconciliation_service import recalculate_task_totals_from_orders
from tracker.services.task_service import VariantInfo


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SHOPIFY_STORE_URL': 'test-shop.myshopify.com',
        'ORDER_SOURCE_PATH': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def line(line_item_id, variant_id, quantity, fulfilled=0, product_title="T-Shirt", variant_title=""):
    """Shorthand for one seeded line item."""
    return {
        "line_item_id": line_item_id,
        "variant_id": variant_id,
        "quantity": quantity,
        "fulfilled": fulfilled,
        "product_title": product_title,
        "variant_title": variant_title or variant_id,
    }


def seed_orders(session, orders):
    """
    Insert orders with line items (and any pre-existing progress), then build
    the task view from them so every invariant holds before the test acts.

    orders: [{"order_id", "order_date", "lines": [line(...)], "status": optional "archived"}]
    """
    for entry in orders:
        lines = entry["lines"]
        order_service.upsert_order(
            session,
            order_id=entry["order_id"],
            order_name=entry.get("order_name", f"#{entry['order_id']}"),
            order_date=entry["order_date"],
            total_items=sum(li["quantity"] for li in lines),
            commit=False,
        )
        for li in lines:
            item = order_service.upsert_line_item(
                session,
                order_id=entry["order_id"],
                line_item_id=li["line_item_id"],
                variant_id=li["variant_id"],
                quantity=li["quantity"],
                product_title=li["product_title"],
                variant_title=li["variant_title"],
                sku=f"SKU-{li['variant_id']}",
                commit=False,
            )
            item.fulfilled_quantity = li["fulfilled"]

    order_service.refresh_order_statuses(session, commit=False)

    variant_totals = {}
    for entry in orders:
        for li in entry["lines"]:
            variant_totals.setdefault(li["variant_id"], li)
    for variant_id, li in variant_totals.items():
        task_service.upsert_task(
            session,
            VariantInfo(variant_id=variant_id, product_title=li["product_title"], variant_title=li["variant_title"]),
            1,
            commit=False,
        )
    recalculate_task_totals_from_orders(session, commit=False)

    for entry in orders:
        if entry.get("status") == "archived":
            order_service.archive(session, entry["order_id"], commit=False)

    session.commit()


def assert_consistent(session):
    """Every task matches the non-archived line items of its variant; statuses are derived."""
    from tracker.services.quantity_ledger import derive_order_status, derive_task_status

    expected = {}
    rows = (
        session.query(OrderLineItem, Order)
        .join(Order, OrderLineItem.order_id == Order.order_id)
        .filter(Order.status != "archived")
        .all()
    )
    for item, _order in rows:
        total, made = expected.get(item.variant_id, (0, 0))
        expected[item.variant_id] = (total + item.quantity, made + item.fulfilled_quantity)

    tasks = {t.variant_id: t for t in session.query(Task).all()}
    assert set(tasks) == {v for v, (total, _) in expected.items() if total > 0}
    for variant_id, task in tasks.items():
        total, made = expected[variant_id]
        assert (task.total_quantity, task.made_quantity) == (total, made), variant_id
        assert 0 <= task.made_quantity <= task.total_quantity
        assert task.status == derive_task_status(task.made_quantity, task.total_quantity)

    for order in session.query(Order).filter(Order.status != "archived").all():
        assert 0 <= order.fulfilled_items <= order.total_items
        assert order.status == derive_order_status(order.fulfilled_items, order.total_items)


@pytest.fixture
def seed(db_session):
    def _seed(orders):
        seed_orders(db_session, orders)
    return _seed


def dt(value: str) -> datetime:
    return datetime.fromisoformat(value)
