from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    Shop-side stock level for one variant, as last loaded.

    Independent of production tasks: inventory_quantity is whatever the shop
    reports and may be zero or negative (oversold).
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.Index("ix_inventory_quantity", "inventory_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    variant_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    product_id = db.Column(db.String(255), nullable=False, default="")
    product_title = db.Column(db.String(255), nullable=False, default="")
    variant_title = db.Column(db.String(255), nullable=False, default="")
    sku = db.Column(db.String(128), nullable=False, default="")
    image_url = db.Column(db.Text, nullable=True)

    inventory_quantity = db.Column(db.Integer, nullable=False, default=0)

    last_synced_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_out_of_stock(self) -> bool:
        return self.inventory_quantity <= 0

    def __repr__(self) -> str:
        return f"<InventoryItem variant_id={self.variant_id!r} qty={self.inventory_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "variant_id": self.variant_id,
            "product_id": self.product_id,
            "product_title": self.product_title,
            "variant_title": self.variant_title,
            "sku": self.sku,
            "image_url": self.image_url,
            "inventory_quantity": self.inventory_quantity,
            "is_out_of_stock": self.is_out_of_stock,
            "last_synced_at": to_utc_z(self.last_synced_at),
            "updated_at": to_utc_z(self.updated_at),
        }
