# Overview: Service-layer helpers for row locking and bounded retries.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


UNIQUE_VIOLATION_MARKERS = (
    "unique constraint failed",    # SQLite
    "duplicate key value",         # PostgreSQL
    "duplicate entry",             # MySQL
    "uq_variants_owner_serial",
)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def is_unique_violation(exc: BaseException) -> bool:
    """True when an IntegrityError was caused by a unique constraint."""
    if not isinstance(exc, IntegrityError):
        return False
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode == "23505":
        return True
    message = str(exc.orig).lower()
    return any(marker in message for marker in UNIQUE_VIOLATION_MARKERS)


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
    exponential: bool = True,
    retry_on: tuple[type[BaseException], ...] = (OperationalError, StaleDataError),
    should_retry=None,
    label: str = "db operation",
):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Defaults retry OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts) with exponential backoff. Callers narrow
    the policy with should_retry(exc) and may switch to a fixed delay.

    The session is rolled back before every retry. After the last attempt
    the original exception propagates.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            if should_retry is not None and not should_retry(exc):
                raise
            if attempt >= attempts - 1:
                current_app.logger.warning("%s failed after %d attempts", label, attempts)
                raise
            current_app.logger.warning(
                "%s conflict, retrying (attempt %d/%d): %s",
                label, attempt + 1, attempts, exc.__class__.__name__,
            )
            delay = backoff_base * (2 ** attempt) if exponential else backoff_base
            time.sleep(delay)

