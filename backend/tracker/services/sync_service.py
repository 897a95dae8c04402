# Overview: One sync cycle: fetch from the order source, reconcile, record history.

"""
Failure boundary:
- fetch phase: nothing local has been touched yet; failure is logged as an
  error history row and local state is unchanged. Malformed order data
  surfaces as InvalidPayload; any other fetch failure becomes SyncError
- commit phase: reconciliation runs as one transaction; on failure it is
  rolled back before the error history row is written

Never delete before the new data is in hand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models import SyncHistory
from .errors import InvalidPayload, SyncError, TrackerError
from .order_source import OrderSnapshot, OrderSource, build_snapshot
from .reconciliation_service import ReconcileResult, reconcile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    snapshot: OrderSnapshot
    reconcile: ReconcileResult
    history: SyncHistory

    @property
    def message(self) -> str:
        return (
            f"Synced {self.snapshot.orders_fetched} orders with "
            f"{self.snapshot.variant_count} unique variants"
        )

    def to_dict(self) -> dict:
        return {
            "orders_count": self.snapshot.orders_fetched,
            "variants_count": self.snapshot.variant_count,
            "message": self.message,
            "reconcile": self.reconcile.to_dict(),
            "history": self.history.to_dict(),
        }


def log_sync(
    session,
    *,
    status: str,
    orders_fetched: int = 0,
    variants_updated: int = 0,
    error_message: str | None = None,
) -> SyncHistory:
    entry = SyncHistory(
        status=status,
        orders_fetched=orders_fetched or 0,
        variants_updated=variants_updated or 0,
        error_message=error_message,
    )
    session.add(entry)
    session.commit()
    return entry


def get_sync_history(session, limit: int = 10) -> list[SyncHistory]:
    return (
        session.query(SyncHistory)
        .order_by(SyncHistory.synced_at.desc(), SyncHistory.id.desc())
        .limit(limit)
        .all()
    )


def run_sync(session, source: OrderSource) -> SyncResult:
    """Fetch unfulfilled orders and reconcile them into the local stores."""
    logger.info("Starting order sync...")

    try:
        snapshot = build_snapshot(source.fetch_unfulfilled())
    except InvalidPayload as exc:
        logger.warning("Rejected malformed order data: %s", exc)
        log_sync(session, status="error", error_message=f"fetch failed: {exc}")
        exc.details.setdefault("phase", "fetch")
        raise
    except Exception as exc:
        logger.exception("Order fetch failed; local state left untouched")
        log_sync(session, status="error", error_message=f"fetch failed: {exc}")
        raise SyncError(f"Failed to fetch orders: {exc}", details={"phase": "fetch"}) from exc

    try:
        result = reconcile(session, snapshot)
    except Exception as exc:
        # reconcile() has already rolled back its transaction
        logger.exception("Reconciliation failed; changes rolled back")
        message = str(exc) if isinstance(exc, TrackerError) else f"{type(exc).__name__}: {exc}"
        log_sync(
            session,
            status="error",
            orders_fetched=snapshot.orders_fetched,
            error_message=f"commit failed: {message}",
        )
        raise SyncError(f"Failed to apply sync: {message}", details={"phase": "commit"}) from exc

    history = log_sync(
        session,
        status="success",
        orders_fetched=snapshot.orders_fetched,
        variants_updated=result.variants_updated,
    )
    logger.info("Sync completed: %d orders, %d variants", snapshot.orders_fetched, snapshot.variant_count)
    return SyncResult(snapshot=snapshot, reconcile=result, history=history)
