# Overview: Task store; per-variant required vs. produced quantity.

"""
Task invariants:
- 0 <= made_quantity <= total_quantity
- status == derive_task_status(made_quantity, total_quantity) after every write
- upserts from sync never touch made_quantity (operator progress survives resyncs)
- tasks whose total reaches 0 are deleted, not displayed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case

from ..models import Task
from ..time_utils import utcnow
from .concurrency import atomic
from .errors import ExceedsCapacity, NotFound
from .quantity_ledger import derive_task_status, validate_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantInfo:
    """Display metadata for a variant; opaque to the quantity rules."""
    variant_id: str
    variant_title: str = ""
    product_title: str = ""
    sku: str = ""
    image_url: str | None = None


def _apply_status(task: Task) -> Task:
    task.status = derive_task_status(task.made_quantity, task.total_quantity)
    return task


def get_task(session, variant_id: str) -> Task | None:
    return session.query(Task).filter_by(variant_id=variant_id).first()


def require_task(session, variant_id: str) -> Task:
    task = get_task(session, variant_id)
    if task is None:
        raise NotFound(f"Task not found for variant: {variant_id}", details={"variant_id": variant_id})
    return task


def list_tasks(session) -> list[Task]:
    """In-progress first, then pending, then completed; most remaining work first."""
    status_order = case(
        (Task.status == "in_progress", 1),
        (Task.status == "pending", 2),
        (Task.status == "completed", 3),
        else_=4,
    )
    return (
        session.query(Task)
        .order_by(
            status_order,
            (Task.total_quantity - Task.made_quantity).desc(),
            Task.product_title.asc(),
        )
        .all()
    )


def upsert_task(session, variant: VariantInfo, total_quantity: int, *, commit: bool = True) -> Task:
    """
    Insert or refresh a task from source data. made_quantity is preserved.

    The source total does not know about local progress, so lowering it can
    leave made_quantity above total_quantity. Callers that lower totals must
    follow up with recalculate_task_totals_from_orders in the same
    transaction; reconcile() does.
    """
    if total_quantity < 0:
        raise ValueError("total_quantity must be >= 0")

    def _op():
        task = get_task(session, variant.variant_id)
        if task is None:
            task = Task(variant_id=variant.variant_id, made_quantity=0)
            session.add(task)
        task.variant_title = variant.variant_title or ""
        task.product_title = variant.product_title or ""
        task.sku = variant.sku or ""
        task.image_url = variant.image_url
        task.total_quantity = total_quantity
        task.last_synced_at = utcnow()
        _apply_status(task)
        session.flush()
        return task

    return atomic(session, _op, commit=commit)


def record_produced(session, variant_id: str, quantity, *, commit: bool = True) -> Task:
    """
    Add produced units to a task.

    Strict: made + qty > total raises ExceedsCapacity and nothing changes.
    Clamping only happens in adjust_task_quantities (archival paths).
    """
    qty = validate_quantity(quantity)

    def _op():
        task = require_task(session, variant_id)
        new_made = task.made_quantity + qty
        if new_made > task.total_quantity:
            raise ExceedsCapacity(
                f"Cannot mark {qty} - would exceed total ({task.total_quantity})",
                details={
                    "variant_id": variant_id,
                    "requested": qty,
                    "made_quantity": task.made_quantity,
                    "total_quantity": task.total_quantity,
                },
            )
        task.made_quantity = new_made
        _apply_status(task)
        session.flush()
        return task

    return atomic(session, _op, commit=commit)


def mark_complete(session, variant_id: str, *, commit: bool = True) -> Task:
    """made = total. Calling it again is a no-op."""
    def _op():
        task = require_task(session, variant_id)
        task.made_quantity = task.total_quantity
        _apply_status(task)
        session.flush()
        return task

    return atomic(session, _op, commit=commit)


def reset(session, variant_id: str, *, commit: bool = True) -> Task:
    def _op():
        task = require_task(session, variant_id)
        task.made_quantity = 0
        _apply_status(task)
        session.flush()
        return task

    return atomic(session, _op, commit=commit)


def adjust_task_quantities(
    session,
    variant_id: str,
    *,
    total_delta: int = 0,
    made_delta: int = 0,
) -> Task | None:
    """
    Shift a task's totals by signed deltas, flooring at zero and keeping made <= total.

    Used by archive/unarchive only; no commit. Returns None when the task is absent.
    """
    task = get_task(session, variant_id)
    if task is None:
        return None
    task.total_quantity = max(0, task.total_quantity + total_delta)
    task.made_quantity = min(max(0, task.made_quantity + made_delta), task.total_quantity)
    _apply_status(task)
    return task


def set_task_quantities(session, variant_id: str, total_quantity: int, made_quantity: int) -> Task | None:
    """Overwrite both quantities (full recompute path); no commit."""
    task = get_task(session, variant_id)
    if task is None:
        return None
    task.total_quantity = max(0, total_quantity)
    task.made_quantity = min(max(0, made_quantity), task.total_quantity)
    _apply_status(task)
    return task


def delete_zero_total(session, *, commit: bool = True) -> int:
    """Remove every task whose total has dropped to zero."""
    def _op():
        session.flush()
        deleted = (
            session.query(Task)
            .filter(Task.total_quantity <= 0)
            .delete(synchronize_session="fetch")
        )
        if deleted:
            logger.info("Deleted %d zero-total task(s)", deleted)
        return deleted

    return atomic(session, _op, commit=commit)
