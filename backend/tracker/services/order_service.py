# Overview: Order store; orders, their line items, and the sticky archived state.

"""
Order invariants:
- non-archived: 0 <= fulfilled_items <= total_items, status derived from the counters
- archived: sticky; counters and line items are left untouched so unarchive can
  restore the status they imply
- upserts from sync never reset fulfilled_items / fulfilled_quantity

Archiving removes the order's quantity from the task view:
    task.total_quantity -= line.quantity
    task.made_quantity  -= line.fulfilled_quantity
(both floored at 0) and unarchiving adds them back, re-creating the task from
line-item metadata if it had been deleted in the meantime.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, func, select

from ..models import Order, OrderLineItem, Task
from ..time_utils import coerce_order_date, utcnow
from .concurrency import atomic
from .errors import NotFound
from .quantity_ledger import derive_order_status, derive_task_status
from .task_service import adjust_task_quantities, delete_zero_total, get_task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveResult:
    order_id: str
    already_archived: bool = False
    tasks_deleted: int = 0


@dataclass(frozen=True)
class UnarchiveResult:
    order_id: str
    not_archived: bool = False
    status: str | None = None


def apply_order_status(order: Order) -> Order:
    """Re-derive status from the counters; archived orders are left alone."""
    if not order.is_archived:
        order.status = derive_order_status(order.fulfilled_items, order.total_items)
    return order


def get_order(session, order_id: str) -> Order | None:
    return session.query(Order).filter_by(order_id=order_id).first()


def require_order(session, order_id: str) -> Order:
    order = get_order(session, order_id)
    if order is None:
        raise NotFound("Order not found", details={"order_id": order_id})
    return order


def _line_items_for(session, order_id: str) -> list[OrderLineItem]:
    return (
        session.query(OrderLineItem)
        .filter_by(order_id=order_id)
        .order_by(OrderLineItem.id.asc())
        .all()
    )


def list_orders(session, *, include_archived: bool = False) -> list[Order]:
    status_order = case(
        (Order.status == "in_progress", 1),
        (Order.status == "pending", 2),
        (Order.status == "fulfilled", 3),
        (Order.status == "archived", 4),
        else_=5,
    )
    q = session.query(Order)
    if not include_archived:
        q = q.filter(Order.status != "archived")
    return q.order_by(status_order, Order.order_date.asc(), Order.id.asc()).all()


def list_archived_orders(session) -> list[Order]:
    return (
        session.query(Order)
        .filter(Order.status == "archived")
        .order_by(Order.order_date.asc(), Order.id.asc())
        .all()
    )


def get_line_items(session, order_id: str) -> list[OrderLineItem]:
    return (
        session.query(OrderLineItem)
        .filter_by(order_id=order_id)
        .order_by(OrderLineItem.product_title.asc(), OrderLineItem.variant_title.asc())
        .all()
    )


def upsert_order(
    session,
    *,
    order_id: str,
    order_name: str,
    order_date: datetime | str,
    total_items: int,
    commit: bool = True,
) -> Order:
    """Insert or refresh an order header. fulfilled_items and archived status are preserved."""
    order_dt = coerce_order_date(order_date)

    def _op():
        order = get_order(session, order_id)
        if order is None:
            order = Order(order_id=order_id, fulfilled_items=0, status="pending")
            session.add(order)
        order.order_name = order_name
        order.order_date = order_dt
        order.total_items = total_items
        order.last_synced_at = utcnow()
        apply_order_status(order)
        session.flush()
        return order

    return atomic(session, _op, commit=commit)


def upsert_line_item(
    session,
    *,
    order_id: str,
    line_item_id: str,
    variant_id: str,
    quantity: int,
    variant_title: str = "",
    product_title: str = "",
    sku: str = "",
    image_url: str | None = None,
    commit: bool = True,
) -> OrderLineItem:
    """Insert a line item, or refresh the quantity of an existing one. fulfilled_quantity is preserved."""
    if quantity < 0:
        raise ValueError("quantity must be >= 0")

    def _op():
        item = session.query(OrderLineItem).filter_by(line_item_id=line_item_id).first()
        if item is None:
            item = OrderLineItem(
                order_id=order_id,
                line_item_id=line_item_id,
                variant_id=variant_id,
                variant_title=variant_title or "",
                product_title=product_title or "",
                sku=sku or "",
                image_url=image_url,
                fulfilled_quantity=0,
            )
            session.add(item)
        item.quantity = quantity
        session.flush()
        return item

    return atomic(session, _op, commit=commit)


def refresh_order_statuses(session, *, commit: bool = True) -> int:
    """
    Recompute fulfilled_items from line items and re-derive status for every
    non-archived order. Returns the number of orders examined.
    """
    def _op():
        session.flush()
        sums = dict(
            session.query(
                OrderLineItem.order_id,
                func.coalesce(func.sum(OrderLineItem.fulfilled_quantity), 0),
            )
            .group_by(OrderLineItem.order_id)
            .all()
        )
        orders = session.query(Order).filter(Order.status != "archived").all()
        for order in orders:
            order.fulfilled_items = int(sums.get(order.order_id, 0))
            apply_order_status(order)
        session.flush()
        return len(orders)

    return atomic(session, _op, commit=commit)


def archive(session, order_id: str, *, commit: bool = True) -> ArchiveResult:
    """Take an order out of active tracking without losing what is needed to restore it."""
    def _op():
        order = require_order(session, order_id)
        if order.is_archived:
            return ArchiveResult(order_id=order_id, already_archived=True)

        for item in _line_items_for(session, order_id):
            adjust_task_quantities(
                session,
                item.variant_id,
                total_delta=-item.quantity,
                made_delta=-item.fulfilled_quantity,
            )

        order.status = "archived"
        session.flush()
        deleted = delete_zero_total(session, commit=False)
        logger.info("Archived order %s (%d task(s) emptied)", order.order_name, deleted)
        return ArchiveResult(order_id=order_id, tasks_deleted=deleted)

    return atomic(session, _op, commit=commit)


def unarchive(session, order_id: str, *, commit: bool = True) -> UnarchiveResult:
    """Return an archived order's quantities to the task view and restore its derived status."""
    def _op():
        order = require_order(session, order_id)
        if not order.is_archived:
            return UnarchiveResult(order_id=order_id, not_archived=True, status=order.status)

        for item in _line_items_for(session, order_id):
            task = get_task(session, item.variant_id)
            if task is None:
                task = Task(
                    variant_id=item.variant_id,
                    variant_title=item.variant_title,
                    product_title=item.product_title,
                    sku=item.sku,
                    image_url=item.image_url,
                    total_quantity=item.quantity,
                    made_quantity=item.fulfilled_quantity,
                )
                task.status = derive_task_status(task.made_quantity, task.total_quantity)
                session.add(task)
                session.flush()
            else:
                adjust_task_quantities(
                    session,
                    item.variant_id,
                    total_delta=item.quantity,
                    made_delta=item.fulfilled_quantity,
                )

        order.status = derive_order_status(order.fulfilled_items, order.total_items)
        session.flush()
        logger.info("Unarchived order %s -> %s", order.order_name, order.status)
        return UnarchiveResult(order_id=order_id, status=order.status)

    return atomic(session, _op, commit=commit)


def archive_all_fulfilled(session, *, commit: bool = True) -> int:
    def _op():
        ids = [
            row.order_id
            for row in session.query(Order.order_id).filter(Order.status == "fulfilled").all()
        ]
        count = 0
        for oid in ids:
            if not archive(session, oid, commit=False).already_archived:
                count += 1
        return count

    return atomic(session, _op, commit=commit)


def unarchive_all(session, *, commit: bool = True) -> int:
    def _op():
        ids = [
            row.order_id
            for row in session.query(Order.order_id).filter(Order.status == "archived").all()
        ]
        count = 0
        for oid in ids:
            if not unarchive(session, oid, commit=False).not_archived:
                count += 1
        return count

    return atomic(session, _op, commit=commit)


def delete_archived(session, *, commit: bool = True) -> int:
    """Permanently remove archived orders and their line items. Not reversible."""
    def _op():
        archived_ids = select(Order.order_id).where(Order.status == "archived")
        session.query(OrderLineItem).filter(
            OrderLineItem.order_id.in_(archived_ids)
        ).delete(synchronize_session=False)
        deleted = (
            session.query(Order)
            .filter(Order.status == "archived")
            .delete(synchronize_session=False)
        )
        session.expire_all()
        logger.info("Permanently deleted %d archived order(s)", deleted)
        return deleted

    return atomic(session, _op, commit=commit)
