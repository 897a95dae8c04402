from __future__ import annotations

import re

from ..extensions import db
from ..time_utils import to_utc_z


ORDER_STATUSES = ("pending", "in_progress", "fulfilled", "archived")

_ORDER_GID_RE = re.compile(r"Order/(\d+)")


def extract_numeric_order_id(order_id: str | None) -> str:
    """'gid://shopify/Order/660688109584' -> '660688109584' (other ids pass through)."""
    if not order_id:
        return ""
    match = _ORDER_GID_RE.search(order_id)
    return match.group(1) if match else order_id


def shopify_admin_url(store_url: str | None, order_id: str) -> str | None:
    if not store_url:
        return None
    return f"https://{store_url}/admin/orders/{extract_numeric_order_id(order_id)}"


class Order(db.Model):
    """
    External sales order tracked locally for fulfillment progress.

    STATUS:
    - pending / in_progress / fulfilled are derived from (fulfilled_items, total_items)
    - archived is sticky: recomputation never touches an archived order, and
      archive/unarchive leave the counters alone so unarchive can restore
      the status they imply.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'in_progress', 'fulfilled', 'archived')",
            name="ck_orders_status",
        ),
        db.CheckConstraint("fulfilled_items >= 0", name="ck_orders_fulfilled_nonneg"),
        db.Index("ix_orders_status", "status"),
        db.Index("ix_orders_order_date", "order_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    order_name = db.Column(db.String(128), nullable=False)
    order_date = db.Column(db.DateTime, nullable=False)

    total_items = db.Column(db.Integer, nullable=False, default=0)
    fulfilled_items = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="pending")

    last_synced_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    line_items = db.relationship(
        "OrderLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineItem.id",
    )

    @property
    def remaining_items(self) -> int:
        return self.total_items - self.fulfilled_items

    @property
    def is_archived(self) -> bool:
        return self.status == "archived"

    def __repr__(self) -> str:
        return f"<Order order_id={self.order_id!r} {self.fulfilled_items}/{self.total_items} status={self.status}>"

    def to_dict(self, *, include_line_items: bool = False, store_url: str | None = None) -> dict:
        data = {
            "id": self.id,
            "order_id": self.order_id,
            "order_name": self.order_name,
            "order_date": to_utc_z(self.order_date),
            "total_items": self.total_items,
            "fulfilled_items": self.fulfilled_items,
            "remaining_items": self.remaining_items,
            "status": self.status,
            "last_synced_at": to_utc_z(self.last_synced_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_line_items:
            data["line_items"] = [
                li.to_dict()
                for li in sorted(self.line_items, key=lambda li: (li.product_title, li.variant_title))
            ]
        if store_url:
            data["shopify_admin_url"] = shopify_admin_url(store_url, self.order_id)
        return data


class OrderLineItem(db.Model):
    """One variant's quantity within one order. Owned by its Order."""
    __tablename__ = "order_line_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_line_items_quantity_nonneg"),
        db.CheckConstraint("fulfilled_quantity >= 0", name="ck_line_items_fulfilled_nonneg"),
        db.Index("ix_line_items_order_variant", "order_id", "variant_id"),
        {"sqlite_autoincrement": True},
    )

    # Autoincrement id doubles as insertion order for FIFO tie-breaks
    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(
        db.String(255),
        db.ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_item_id = db.Column(db.String(255), nullable=False, unique=True)
    variant_id = db.Column(db.String(255), nullable=False, index=True)
    variant_title = db.Column(db.String(255), nullable=False, default="")
    product_title = db.Column(db.String(255), nullable=False, default="")
    sku = db.Column(db.String(128), nullable=False, default="")
    image_url = db.Column(db.Text, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    fulfilled_quantity = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    order = db.relationship("Order", back_populates="line_items")

    @property
    def remaining_quantity(self) -> int:
        return self.quantity - self.fulfilled_quantity

    def __repr__(self) -> str:
        return (
            f"<OrderLineItem line_item_id={self.line_item_id!r} variant_id={self.variant_id!r} "
            f"{self.fulfilled_quantity}/{self.quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "line_item_id": self.line_item_id,
            "variant_id": self.variant_id,
            "variant_title": self.variant_title,
            "product_title": self.product_title,
            "sku": self.sku,
            "image_url": self.image_url,
            "quantity": self.quantity,
            "fulfilled_quantity": self.fulfilled_quantity,
            "remaining_quantity": self.remaining_quantity,
        }
