# Overview: Row-locking and retry helpers shared by services that mutate existing rows.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for read-modify-write operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but PostgreSQL honors it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on lock/deadlock failures.

    The session is rolled back before each retry so func always starts
    from a clean transaction.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
