# Overview: Persisted tracker settings; currently the auto-sync schedule.

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from ..models import AppSetting
from .concurrency import atomic
from .errors import InvalidSetting

logger = logging.getLogger(__name__)


AUTO_SYNC_ENABLED = "sync.auto_enabled"
AUTO_SYNC_INTERVAL_MINUTES = "sync.auto_interval_minutes"
DEFAULT_AUTO_SYNC_INTERVAL_MINUTES = 5


@dataclass(frozen=True)
class AutoSyncSettings:
    enabled: bool = False
    interval_minutes: int = DEFAULT_AUTO_SYNC_INTERVAL_MINUTES

    @property
    def message(self) -> str:
        if self.enabled:
            return f"Auto-sync enabled (every {self.interval_minutes} min)"
        return "Auto-sync disabled"

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "interval_minutes": self.interval_minutes,
            "message": self.message,
        }


def get_setting(session, key: str, default: Any = None) -> Any:
    row = session.query(AppSetting).filter_by(key=key).one_or_none()
    if row is None or row.value is None:
        return default
    return json.loads(row.value)


def set_setting(session, key: str, value: Any, *, commit: bool = True) -> AppSetting:
    def _op():
        row = session.query(AppSetting).filter_by(key=key).one_or_none()
        if row is None:
            row = AppSetting(key=key)
            session.add(row)
        row.value = json.dumps(value)
        session.flush()
        return row

    return atomic(session, _op, commit=commit)


def validate_interval_minutes(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidSetting(
            "Interval must be a positive integer of 1 or more",
            details={"interval_minutes": value},
        )
    return value


def get_auto_sync_settings(session) -> AutoSyncSettings:
    return AutoSyncSettings(
        enabled=bool(get_setting(session, AUTO_SYNC_ENABLED, False)),
        interval_minutes=get_setting(session, AUTO_SYNC_INTERVAL_MINUTES, DEFAULT_AUTO_SYNC_INTERVAL_MINUTES),
    )


def save_auto_sync_settings(session, *, enabled: bool, interval_minutes) -> AutoSyncSettings:
    """Validate then persist both values together; an invalid interval changes nothing."""
    interval = validate_interval_minutes(interval_minutes)

    def _op():
        set_setting(session, AUTO_SYNC_ENABLED, bool(enabled), commit=False)
        set_setting(session, AUTO_SYNC_INTERVAL_MINUTES, interval, commit=False)
        return AutoSyncSettings(enabled=bool(enabled), interval_minutes=interval)

    settings = atomic(session, _op)
    logger.info(settings.message)
    return settings
