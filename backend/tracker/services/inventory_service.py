# Overview: Shop inventory levels per variant; bulk loading, filtered listing and summary stats.

"""
Inventory is a read model of what the shop reports in stock. It never feeds
task or order quantities.

Listing order: out-of-stock (quantity <= 0) first, then product title, then
variant title. Search matches product title, variant title or SKU,
case-insensitively.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from sqlalchemy import case, func, or_

from ..models import InventoryItem
from ..time_utils import utcnow
from .concurrency import atomic
from .errors import InvalidPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InventoryRecord:
    variant_id: str
    inventory_quantity: int = 0
    product_id: str = ""
    product_title: str = ""
    variant_title: str = ""
    sku: str = ""
    image_url: str | None = None


@dataclass(frozen=True)
class InventoryStats:
    total_variants: int
    in_stock_count: int
    out_of_stock_count: int
    total_inventory: int

    def to_dict(self) -> dict:
        return {
            "total_variants": self.total_variants,
            "in_stock_count": self.in_stock_count,
            "out_of_stock_count": self.out_of_stock_count,
            "total_inventory": self.total_inventory,
        }


def _parse_record(raw: Mapping[str, Any]) -> InventoryRecord:
    qty = raw.get("inventoryQuantity") or 0
    if isinstance(qty, bool) or not isinstance(qty, int):
        raise ValueError(f"inventoryQuantity must be an integer: {qty!r}")
    return InventoryRecord(
        variant_id=str(raw["variantId"]),
        inventory_quantity=qty,
        product_id=str(raw.get("productId") or ""),
        product_title=raw.get("productTitle") or "",
        variant_title=raw.get("variantTitle") or "",
        sku=raw.get("sku") or "",
        image_url=raw.get("imageUrl"),
    )


def parse_inventory(payload: Mapping[str, Any]) -> list[InventoryRecord]:
    """{"inventory": [{"variantId", "productId", ..., "inventoryQuantity"}]} -> records."""
    if not isinstance(payload, Mapping):
        raise InvalidPayload("Inventory payload must be an object with an 'inventory' list")

    records = []
    for index, raw in enumerate(payload.get("inventory") or []):
        try:
            records.append(_parse_record(raw))
        except KeyError as exc:
            raise InvalidPayload(
                f"Inventory row #{index} is missing {exc.args[0]!r}",
                details={"index": index, "missing": exc.args[0]},
            ) from exc
        except (TypeError, ValueError, AttributeError) as exc:
            raise InvalidPayload(f"Inventory row #{index} is malformed: {exc}", details={"index": index}) from exc
    return records


def get_inventory(session, variant_id: str) -> InventoryItem | None:
    return session.query(InventoryItem).filter_by(variant_id=variant_id).one_or_none()


def upsert_inventory(session, record: InventoryRecord, *, commit: bool = True) -> InventoryItem:
    def _op():
        item = get_inventory(session, record.variant_id)
        if item is None:
            item = InventoryItem(variant_id=record.variant_id)
            session.add(item)
        item.product_id = record.product_id
        item.product_title = record.product_title
        item.variant_title = record.variant_title
        item.sku = record.sku
        item.image_url = record.image_url
        item.inventory_quantity = record.inventory_quantity
        item.last_synced_at = utcnow()
        session.flush()
        return item

    return atomic(session, _op, commit=commit)


def bulk_upsert_inventory(session, records: Iterable[InventoryRecord]) -> int:
    """Upsert every record in one transaction; returns how many were written."""
    records = list(records)

    def _op():
        for record in records:
            upsert_inventory(session, record, commit=False)
        logger.info("Bulk upserted %d inventory record(s)", len(records))
        return len(records)

    return atomic(session, _op)


def list_inventory(session, *, out_of_stock_only: bool = False, search: str = "") -> list[InventoryItem]:
    q = session.query(InventoryItem)
    if out_of_stock_only:
        q = q.filter(InventoryItem.inventory_quantity <= 0)

    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        q = q.filter(
            or_(
                InventoryItem.product_title.ilike(pattern),
                InventoryItem.variant_title.ilike(pattern),
                InventoryItem.sku.ilike(pattern),
            )
        )

    out_of_stock_first = case((InventoryItem.inventory_quantity <= 0, 0), else_=1)
    return q.order_by(
        out_of_stock_first,
        InventoryItem.product_title.asc(),
        InventoryItem.variant_title.asc(),
    ).all()


def inventory_stats(session) -> InventoryStats:
    """Counts over every stored variant; an empty table reports zeros."""
    total, out_of_stock, in_stock, units = session.query(
        func.count(InventoryItem.id),
        func.coalesce(func.sum(case((InventoryItem.inventory_quantity <= 0, 1), else_=0)), 0),
        func.coalesce(func.sum(case((InventoryItem.inventory_quantity > 0, 1), else_=0)), 0),
        func.coalesce(func.sum(InventoryItem.inventory_quantity), 0),
    ).one()
    return InventoryStats(
        total_variants=int(total),
        in_stock_count=int(in_stock),
        out_of_stock_count=int(out_of_stock),
        total_inventory=int(units),
    )


def clear_inventory(session) -> int:
    def _op():
        deleted = session.query(InventoryItem).delete(synchronize_session="fetch")
        logger.info("Cleared %d inventory record(s)", deleted)
        return deleted

    return atomic(session, _op)
