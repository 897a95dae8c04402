# Overview: Allocation engine; distributes produced units across outstanding order lines.

"""
Allocation (oldest promise first):
- candidates: line items for the variant on non-archived orders with
  fulfilled_quantity < quantity
- order: orders.order_date ASC, then line item id ASC (insertion order)
- each line takes min(room, remaining); excess beyond outstanding demand is
  simply not allocated (record_produced already validated against the task)
- touched orders are re-derived afterwards; only orders that moved into
  "fulfilled" during this call are reported

Deallocation (undo the most recent claim first):
- candidates: line items for the variant on non-archived orders with
  fulfilled_quantity > 0
- order: orders.order_date DESC, then line item id DESC

There is no allocation log. When allocations for different calls interleave,
deallocation is a heuristic rather than an exact undo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..models import Order, OrderLineItem
from .concurrency import atomic
from .order_service import apply_order_status
from .quantity_ledger import clamp_subtract, validate_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allocation:
    order_id: str
    line_item_id: str
    quantity: int


@dataclass
class AllocationResult:
    variant_id: str
    requested: int
    allocations: list[Allocation] = field(default_factory=list)
    newly_fulfilled_orders: list[Order] = field(default_factory=list)

    @property
    def applied(self) -> int:
        return sum(a.quantity for a in self.allocations)

    @property
    def unapplied(self) -> int:
        return self.requested - self.applied

    def to_dict(self, *, store_url: str | None = None) -> dict:
        return {
            "variant_id": self.variant_id,
            "requested": self.requested,
            "applied": self.applied,
            "allocations": [
                {"order_id": a.order_id, "line_item_id": a.line_item_id, "quantity": a.quantity}
                for a in self.allocations
            ],
            "newly_fulfilled_orders": [
                o.to_dict(store_url=store_url) for o in self.newly_fulfilled_orders
            ],
        }


def _candidate_rows(session, variant_id: str, *, newest_first: bool):
    q = (
        session.query(OrderLineItem, Order)
        .join(Order, OrderLineItem.order_id == Order.order_id)
        .filter(
            OrderLineItem.variant_id == variant_id,
            Order.status != "archived",
        )
    )
    if newest_first:
        q = q.filter(OrderLineItem.fulfilled_quantity > 0).order_by(
            Order.order_date.desc(), OrderLineItem.id.desc()
        )
    else:
        q = q.filter(OrderLineItem.fulfilled_quantity < OrderLineItem.quantity).order_by(
            Order.order_date.asc(), OrderLineItem.id.asc()
        )
    return q.all()


def allocate(session, variant_id: str, quantity, *, commit: bool = True) -> AllocationResult:
    """Apply `quantity` newly produced units of a variant to the oldest outstanding lines."""
    qty = validate_quantity(quantity)

    def _op():
        session.flush()
        result = AllocationResult(variant_id=variant_id, requested=qty)
        remaining = qty
        touched: dict[str, tuple[Order, str]] = {}

        for item, order in _candidate_rows(session, variant_id, newest_first=False):
            if remaining <= 0:
                break
            take = min(item.quantity - item.fulfilled_quantity, remaining)
            if take <= 0:
                continue
            if order.order_id not in touched:
                touched[order.order_id] = (order, order.status)
            item.fulfilled_quantity += take
            order.fulfilled_items += take
            remaining -= take
            result.allocations.append(
                Allocation(order_id=order.order_id, line_item_id=item.line_item_id, quantity=take)
            )

        for order, status_before in touched.values():
            apply_order_status(order)
            if order.status == "fulfilled" and status_before != "fulfilled":
                result.newly_fulfilled_orders.append(order)

        session.flush()
        if remaining:
            logger.info("Variant %s: %d unit(s) produced beyond outstanding order demand", variant_id, remaining)
        return result

    return atomic(session, _op, commit=commit)


def deallocate(session, variant_id: str, quantity, *, commit: bool = True) -> AllocationResult:
    """Withdraw `quantity` units of a variant, newest orders first."""
    qty = validate_quantity(quantity)

    def _op():
        session.flush()
        result = AllocationResult(variant_id=variant_id, requested=qty)
        remaining = qty
        touched: dict[str, Order] = {}

        for item, order in _candidate_rows(session, variant_id, newest_first=True):
            if remaining <= 0:
                break
            take = min(item.fulfilled_quantity, remaining)
            if take <= 0:
                continue
            touched[order.order_id] = order
            item.fulfilled_quantity -= take
            order.fulfilled_items = clamp_subtract(order.fulfilled_items, take)
            remaining -= take
            result.allocations.append(
                Allocation(order_id=order.order_id, line_item_id=item.line_item_id, quantity=take)
            )

        for order in touched.values():
            apply_order_status(order)

        session.flush()
        return result

    return atomic(session, _op, commit=commit)
