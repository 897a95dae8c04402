# Overview: Pure quantity and status rules shared by tasks, orders and line items.

"""
Status derivation (authoritative):

    made == 0      -> pending
    made >= total  -> completed (tasks) / fulfilled (orders)
    otherwise      -> in_progress

total == 0 with made == 0 is pending; zero-total tasks are deleted by the
task service rather than displayed. "archived" is never derived here.
Both rules are monotonic: raising made with total fixed never lowers the rank.
"""

from __future__ import annotations

from .errors import InvalidQuantity


_TASK_RANK = {"pending": 0, "in_progress": 1, "completed": 2}
_ORDER_RANK = {"pending": 0, "in_progress": 1, "fulfilled": 2}


def _derive(made: int, total: int, done_label: str) -> str:
    if made == 0:
        return "pending"
    if made >= total:
        return done_label
    return "in_progress"


def derive_task_status(made: int, total: int) -> str:
    return _derive(made, total, "completed")


def derive_order_status(fulfilled: int, total: int) -> str:
    return _derive(fulfilled, total, "fulfilled")


def status_rank(status: str) -> int:
    """Progress rank of a derived status; archived has no rank."""
    if status in _TASK_RANK:
        return _TASK_RANK[status]
    if status in _ORDER_RANK:
        return _ORDER_RANK[status]
    raise ValueError(f"status {status!r} has no progress rank")


def clamp_subtract(value: int, amount: int) -> int:
    """value - amount, floored at zero."""
    return max(0, value - amount)


def validate_quantity(value) -> int:
    """
    Accept a positive integer and return it.

    Rejects bools, floats, strings, zero and negatives with InvalidQuantity.
    Text input (CLI arguments) is converted by the caller before it gets here.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity("Quantity must be a positive integer", details={"quantity": value})
    if value < 1:
        raise InvalidQuantity("Quantity must be a positive integer", details={"quantity": value})
    return value
