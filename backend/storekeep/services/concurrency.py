# Overview: Service-layer operations for concurrency; row locks, version conflicts and read retry.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..errors import InvalidStateError, REASON_CONCURRENT_UPDATE


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The version_id counter on transactional rows still catches lost updates.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a read-only DB operation with retry on transient lock failures.

    Only OperationalError (deadlocks, busy database) is retried. Writes are
    never routed through here: a failed write is fatal for the request.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def flush_transition(entity, label: str) -> None:
    """
    Flush a state transition so a stale version counter fails here,
    inside the service, rather than at commit time.
    """
    try:
        db.session.flush()
    except StaleDataError:
        db.session.rollback()
        raise InvalidStateError(
            f"{label} was modified by another request",
            reason=REASON_CONCURRENT_UPDATE,
        ) from None
