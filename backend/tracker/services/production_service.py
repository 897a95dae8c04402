# Overview: Operator actions on tasks; each keeps tasks and order lines in step in one transaction.

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..models import Order, Task
from .allocation_service import allocate, deallocate
from .concurrency import run_in_transaction
from .quantity_ledger import validate_quantity
from .task_service import mark_complete as complete_task
from .task_service import record_produced, require_task
from .task_service import reset as reset_made

logger = logging.getLogger(__name__)


@dataclass
class ProductionResult:
    task: Task
    newly_fulfilled_orders: list[Order] = field(default_factory=list)

    def to_dict(self, *, store_url: str | None = None) -> dict:
        return {
            "task": self.task.to_dict(),
            "newly_fulfilled_orders": [
                o.to_dict(store_url=store_url) for o in self.newly_fulfilled_orders
            ],
        }


def mark_produced(session, variant_id: str, quantity) -> ProductionResult:
    """Record produced units against the task and allocate them to the oldest orders."""
    qty = validate_quantity(quantity)

    def _op():
        task = record_produced(session, variant_id, qty, commit=False)
        allocation = allocate(session, variant_id, qty, commit=False)
        logger.info(
            "Variant %s: +%d made (%d/%d), %d order(s) newly fulfilled",
            variant_id, qty, task.made_quantity, task.total_quantity,
            len(allocation.newly_fulfilled_orders),
        )
        return ProductionResult(task=task, newly_fulfilled_orders=allocation.newly_fulfilled_orders)

    return run_in_transaction(session, _op)


def mark_complete(session, variant_id: str) -> ProductionResult:
    """Finish a task; whatever was still remaining is allocated to orders."""
    def _op():
        task = require_task(session, variant_id)
        remaining = task.total_quantity - task.made_quantity
        task = complete_task(session, variant_id, commit=False)
        newly_fulfilled: list[Order] = []
        if remaining > 0:
            newly_fulfilled = allocate(session, variant_id, remaining, commit=False).newly_fulfilled_orders
        return ProductionResult(task=task, newly_fulfilled_orders=newly_fulfilled)

    return run_in_transaction(session, _op)


def reset_task(session, variant_id: str) -> ProductionResult:
    """Undo a task's progress, withdrawing it from the newest orders first."""
    def _op():
        task = require_task(session, variant_id)
        if task.made_quantity > 0:
            deallocate(session, variant_id, task.made_quantity, commit=False)
        task = reset_made(session, variant_id, commit=False)
        logger.info("Variant %s reset to 0/%d", variant_id, task.total_quantity)
        return ProductionResult(task=task)

    return run_in_transaction(session, _op)
