# Overview: Error taxonomy shared by the task, order, allocation and sync services.

from __future__ import annotations


class TrackerError(Exception):
    """Base for expected, operator-facing failures."""
    code = "tracker_error"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class NotFound(TrackerError):
    """Referenced variant or order is absent."""
    code = "not_found"
    http_status = 404


class InvalidQuantity(TrackerError):
    """Quantity is non-positive or not an integer."""
    code = "invalid_quantity"


class ExceedsCapacity(TrackerError):
    """Produced quantity would push a task past its total."""
    code = "exceeds_capacity"
    http_status = 409


class ConstraintViolation(TrackerError):
    """Persistence layer rejected a write (duplicate key, check constraint)."""
    code = "constraint_violation"
    http_status = 409


class SyncError(TrackerError):
    """A sync cycle failed; the failure has already been written to sync history."""
    code = "sync_failed"
    http_status = 502


class InvalidPayload(TrackerError):
    """Order data handed to a sync is malformed (missing keys, bad dates or quantities)."""
    code = "invalid_payload"


class InvalidSetting(TrackerError):
    """A settings value failed validation."""
    code = "invalid_setting"
