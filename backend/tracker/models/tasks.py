from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


TASK_STATUSES = ("pending", "in_progress", "completed")


class Task(db.Model):
    """
    Per-variant production task.

    Quantities are a materialized view over the line items of non-archived
    orders for the same variant:
    - total_quantity == SUM(quantity)
    - made_quantity  == SUM(fulfilled_quantity)

    status is always derived from (made_quantity, total_quantity); it is only
    written by task_service after a quantity change.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        db.CheckConstraint("status IN ('pending', 'in_progress', 'completed')", name="ck_tasks_status"),
        db.CheckConstraint("total_quantity >= 0", name="ck_tasks_total_nonneg"),
        db.CheckConstraint("made_quantity >= 0", name="ck_tasks_made_nonneg"),
        db.Index("ix_tasks_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    variant_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    variant_title = db.Column(db.String(255), nullable=False, default="")
    product_title = db.Column(db.String(255), nullable=False, default="")
    sku = db.Column(db.String(128), nullable=False, default="")
    image_url = db.Column(db.Text, nullable=True)

    total_quantity = db.Column(db.Integer, nullable=False, default=0)
    made_quantity = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="pending")

    last_synced_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def remaining_quantity(self) -> int:
        return self.total_quantity - self.made_quantity

    def __repr__(self) -> str:
        return (
            f"<Task variant_id={self.variant_id!r} made={self.made_quantity}"
            f"/{self.total_quantity} status={self.status}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "variant_id": self.variant_id,
            "variant_title": self.variant_title,
            "product_title": self.product_title,
            "sku": self.sku,
            "image_url": self.image_url,
            "total_quantity": self.total_quantity,
            "made_quantity": self.made_quantity,
            "remaining_quantity": self.remaining_quantity,
            "status": self.status,
            "last_synced_at": to_utc_z(self.last_synced_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
