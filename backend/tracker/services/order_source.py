# Overview: Order Source contract, snapshot shaping, and the JSON-backed adapters.

"""
An Order Source returns unfulfilled orders:

    {"orders": [{"orderId", "orderName", "orderDate",
                 "lineItems": [{"lineItemId", "variantId", "variantTitle", "productTitle",
                                "sku", "imageUrl", "fulfillableQuantity"}]}]}

build_snapshot() keeps only line items with positive fulfillable quantity
(and orders that still have one), then derives the two views reconciliation
consumes: per-order rows for storage and per-variant aggregates.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Protocol

from ..time_utils import coerce_order_date
from .errors import InvalidPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceLineItem:
    line_item_id: str
    variant_id: str
    fulfillable_quantity: int
    variant_title: str = ""
    product_title: str = ""
    sku: str = ""
    image_url: str | None = None


@dataclass(frozen=True)
class SourceOrder:
    order_id: str
    order_name: str
    order_date: datetime
    line_items: list[SourceLineItem] = field(default_factory=list)


@dataclass(frozen=True)
class VariantAggregate:
    variant_id: str
    total_quantity: int
    variant_title: str = ""
    product_title: str = ""
    sku: str = ""
    image_url: str | None = None


@dataclass(frozen=True)
class OrderSnapshot:
    """What one fetch produced: raw order count plus the two derived views."""
    orders_fetched: int
    orders_for_storage: list[SourceOrder]
    aggregated: list[VariantAggregate]

    @property
    def variant_count(self) -> int:
        return len(self.aggregated)


class OrderSource(Protocol):
    def fetch_unfulfilled(self) -> list[SourceOrder]:
        ...


def _parse_line_item(raw: Mapping[str, Any]) -> SourceLineItem:
    qty = raw.get("fulfillableQuantity", 0)
    if isinstance(qty, bool) or not isinstance(qty, int):
        raise ValueError(f"fulfillableQuantity must be an integer: {qty!r}")
    return SourceLineItem(
        line_item_id=str(raw["lineItemId"]),
        variant_id=str(raw["variantId"]),
        fulfillable_quantity=qty,
        variant_title=raw.get("variantTitle") or "",
        product_title=raw.get("productTitle") or "",
        sku=raw.get("sku") or "",
        image_url=raw.get("imageUrl"),
    )


def _parse_order(raw: Mapping[str, Any]) -> SourceOrder:
    return SourceOrder(
        order_id=str(raw["orderId"]),
        order_name=raw.get("orderName") or str(raw["orderId"]),
        order_date=coerce_order_date(raw["orderDate"]),
        line_items=[_parse_line_item(li) for li in raw.get("lineItems") or []],
    )


def parse_orders(payload: Mapping[str, Any]) -> list[SourceOrder]:
    """Parse the wire shape into SourceOrder rows; malformed input raises InvalidPayload."""
    if not isinstance(payload, Mapping):
        raise InvalidPayload("Order payload must be an object with an 'orders' list")

    orders = []
    for index, raw in enumerate(payload.get("orders") or []):
        try:
            orders.append(_parse_order(raw))
        except KeyError as exc:
            raise InvalidPayload(
                f"Order #{index} is missing {exc.args[0]!r}",
                details={"index": index, "missing": exc.args[0]},
            ) from exc
        except (TypeError, ValueError, AttributeError) as exc:
            raise InvalidPayload(f"Order #{index} is malformed: {exc}", details={"index": index}) from exc
    return orders


def build_snapshot(orders: list[SourceOrder]) -> OrderSnapshot:
    storage: list[SourceOrder] = []
    by_variant: dict[str, VariantAggregate] = {}

    for order in orders:
        kept = [li for li in order.line_items if li.fulfillable_quantity > 0]
        if not kept:
            continue
        storage.append(
            SourceOrder(
                order_id=order.order_id,
                order_name=order.order_name,
                order_date=order.order_date,
                line_items=kept,
            )
        )
        for li in kept:
            existing = by_variant.get(li.variant_id)
            if existing is None:
                by_variant[li.variant_id] = VariantAggregate(
                    variant_id=li.variant_id,
                    total_quantity=li.fulfillable_quantity,
                    variant_title=li.variant_title,
                    product_title=li.product_title,
                    sku=li.sku,
                    image_url=li.image_url,
                )
            else:
                by_variant[li.variant_id] = replace(
                    existing, total_quantity=existing.total_quantity + li.fulfillable_quantity
                )

    logger.info(
        "Snapshot: %d order(s) fetched, %d stored, %d variant(s)",
        len(orders), len(storage), len(by_variant),
    )
    return OrderSnapshot(
        orders_fetched=len(orders),
        orders_for_storage=storage,
        aggregated=list(by_variant.values()),
    )


class PayloadOrderSource:
    """Order Source over an already-received mapping (e.g. a POSTed sync body)."""

    def __init__(self, payload: Mapping[str, Any]):
        self.payload = payload

    def fetch_unfulfilled(self) -> list[SourceOrder]:
        return parse_orders(self.payload)


class FileOrderSource:
    """Order Source over a JSON export on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def fetch_unfulfilled(self) -> list[SourceOrder]:
        logger.info("Reading unfulfilled orders from %s", self.path)
        with self.path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
        return parse_orders(payload)
