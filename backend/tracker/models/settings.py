from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class AppSetting(db.Model):
    """
    Key-value settings for this shop's tracker (one database per shop).

    value holds JSON text; settings_service owns encoding and validation.
    """
    __tablename__ = "app_settings"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    key = db.Column(db.String(128), nullable=False, unique=True)
    value = db.Column(db.Text, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
        }
