# Overview: Reconciliation engine; merges a fresh order snapshot with local progress and archival state.

"""
The order source has no notion of "units produced" or of local archival, so a
fresh snapshot can only be trusted for orders that carry neither.

reconcile() steps, all in the caller's transaction:
1. skip_ids = archived orders | orders with fulfilled_items > 0
2. delete non-archived zero-progress orders (and their line items)
3. upsert every snapshot order not in skip_ids
4. upsert every variant aggregate into the task store (made_quantity kept)
5. recompute task totals from non-archived line items, then drop zero-total tasks
6. re-derive every non-archived order's status

Step 5 is required whenever an order was skipped (the aggregates may include
quantity from an order archived locally). It also runs when a local task's
variant is missing from the snapshot, so its total cannot go stale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select

from ..models import Order, OrderLineItem, Task
from .concurrency import atomic
from .order_service import refresh_order_statuses, upsert_line_item, upsert_order
from .order_source import OrderSnapshot
from .task_service import VariantInfo, delete_zero_total, set_task_quantities, upsert_task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    orders_cleared: int
    orders_stored: int
    orders_skipped: int
    variants_updated: int
    recalculated: bool
    tasks_deleted: int

    def to_dict(self) -> dict:
        return {
            "orders_cleared": self.orders_cleared,
            "orders_stored": self.orders_stored,
            "orders_skipped": self.orders_skipped,
            "variants_updated": self.variants_updated,
            "recalculated": self.recalculated,
            "tasks_deleted": self.tasks_deleted,
        }


def order_ids_to_skip(session) -> set[str]:
    """Archived orders plus orders the operator has already made progress on."""
    rows = (
        session.query(Order.order_id)
        .filter((Order.status == "archived") | (Order.fulfilled_items > 0))
        .all()
    )
    return {row.order_id for row in rows}


def clear_orders_without_progress(session) -> int:
    """Delete non-archived orders with no progress; the source is authoritative for those."""
    clearable = select(Order.order_id).where(
        Order.status != "archived",
        Order.fulfilled_items == 0,
    )
    session.query(OrderLineItem).filter(
        OrderLineItem.order_id.in_(clearable)
    ).delete(synchronize_session="fetch")
    deleted = (
        session.query(Order)
        .filter(Order.status != "archived", Order.fulfilled_items == 0)
        .delete(synchronize_session="fetch")
    )
    return deleted


def recalculate_task_totals_from_orders(session, *, commit: bool = True) -> int:
    """
    Full recompute of the task view:
        total = SUM(quantity), made = SUM(fulfilled_quantity)
    over line items of non-archived orders, per variant. Tasks with no such
    lines drop to zero and are deleted. Returns the number of tasks deleted.
    """
    def _op():
        session.flush()
        rows = (
            session.query(
                OrderLineItem.variant_id,
                func.coalesce(func.sum(OrderLineItem.quantity), 0),
                func.coalesce(func.sum(OrderLineItem.fulfilled_quantity), 0),
            )
            .join(Order, OrderLineItem.order_id == Order.order_id)
            .filter(Order.status != "archived")
            .group_by(OrderLineItem.variant_id)
            .all()
        )
        totals = {variant_id: (int(total), int(made)) for variant_id, total, made in rows}

        for task in session.query(Task).all():
            total, made = totals.get(task.variant_id, (0, 0))
            set_task_quantities(session, task.variant_id, total, made)

        deleted = delete_zero_total(session, commit=False)
        logger.info("Recalculated task totals from non-archived orders (%d task(s) removed)", deleted)
        return deleted

    return atomic(session, _op, commit=commit)


def reconcile(session, snapshot: OrderSnapshot, *, commit: bool = True) -> ReconcileResult:
    def _op():
        skip_ids = order_ids_to_skip(session)
        logger.info("Preserving %d order(s) (archived or with progress)", len(skip_ids))

        cleared = clear_orders_without_progress(session)

        stored = skipped = 0
        for order in snapshot.orders_for_storage:
            if order.order_id in skip_ids:
                logger.debug("Skipping preserved order %s", order.order_name)
                skipped += 1
                continue
            upsert_order(
                session,
                order_id=order.order_id,
                order_name=order.order_name,
                order_date=order.order_date,
                total_items=sum(li.fulfillable_quantity for li in order.line_items),
                commit=False,
            )
            for li in order.line_items:
                upsert_line_item(
                    session,
                    order_id=order.order_id,
                    line_item_id=li.line_item_id,
                    variant_id=li.variant_id,
                    quantity=li.fulfillable_quantity,
                    variant_title=li.variant_title,
                    product_title=li.product_title,
                    sku=li.sku,
                    image_url=li.image_url,
                    commit=False,
                )
            stored += 1

        snapshot_variants = {agg.variant_id for agg in snapshot.aggregated}
        stale_variants = {
            row.variant_id
            for row in session.query(Task.variant_id).all()
            if row.variant_id not in snapshot_variants
        }

        for agg in snapshot.aggregated:
            upsert_task(
                session,
                VariantInfo(
                    variant_id=agg.variant_id,
                    variant_title=agg.variant_title,
                    product_title=agg.product_title,
                    sku=agg.sku,
                    image_url=agg.image_url,
                ),
                agg.total_quantity,
                commit=False,
            )

        recalculated = bool(skip_ids) or bool(stale_variants)
        tasks_deleted = 0
        if recalculated:
            tasks_deleted = recalculate_task_totals_from_orders(session, commit=False)

        refresh_order_statuses(session, commit=False)

        logger.info(
            "Reconciled snapshot: stored %d order(s), skipped %d preserved, %d variant(s)",
            stored, skipped, len(snapshot.aggregated),
        )
        return ReconcileResult(
            orders_cleared=cleared,
            orders_stored=stored,
            orders_skipped=skipped,
            variants_updated=len(snapshot.aggregated),
            recalculated=recalculated,
            tasks_deleted=tasks_deleted,
        )

    return atomic(session, _op, commit=commit)
