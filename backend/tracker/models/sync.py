from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class SyncHistory(db.Model):
    """Append-only record of sync attempts (successful or failed)."""
    __tablename__ = "sync_history"
    __table_args__ = (
        db.CheckConstraint("status IN ('success', 'error')", name="ck_sync_history_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    synced_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    orders_fetched = db.Column(db.Integer, nullable=False, default=0)
    variants_updated = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False)
    error_message = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<SyncHistory id={self.id} status={self.status} orders={self.orders_fetched}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "synced_at": to_utc_z(self.synced_at),
            "orders_fetched": self.orders_fetched,
            "variants_updated": self.variants_updated,
            "status": self.status,
            "error_message": self.error_message,
        }
