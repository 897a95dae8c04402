# Overview: Transaction and retry helpers; every multi-row operation runs through here.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from .errors import ConstraintViolation

logger = logging.getLogger(__name__)


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (database locked) and StaleDataError.
    Anything else rolls back and propagates on the first attempt.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() and commit as a single transaction.

    Any exception rolls the whole unit back, so a failure half way through
    (e.g. a task decremented but the order not yet archived) never reaches
    the database. IntegrityError is surfaced as ConstraintViolation.
    """
    def _op():
        try:
            result = func()
            session.commit()
            return result
        except IntegrityError as exc:
            session.rollback()
            raise ConstraintViolation(
                "Database rejected the write",
                details={"reason": str(exc.orig)},
            ) from exc
        except (OperationalError, StaleDataError):
            raise
        except Exception:
            session.rollback()
            raise

    return run_with_retry(session, _op, attempts=attempts, backoff_base=backoff_base)


def atomic(session, func, *, commit: bool = True):
    """Run func in its own transaction, or inline when the caller owns the transaction."""
    if commit:
        return run_in_transaction(session, func)
    return func()
