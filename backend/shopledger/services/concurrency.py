# Overview: Transaction and locking helpers shared by every issuance routine.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; on SQLite the whole write
    transaction is serialized by BEGIN IMMEDIATE instead (see
    run_in_transaction). populate_existing() makes sure a row already in the
    identity map is re-read under the lock.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Domain errors are never retried.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Transaction conflict (%s), retrying attempt %d/%d",
                type(exc).__name__, attempt + 2, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def begin_write_transaction() -> None:
    """
    Take the database write lock up front on SQLite.

    pysqlite only opens a transaction lazily before the first DML statement,
    so reads done before that point are not serialized. BEGIN IMMEDIATE
    acquires the RESERVED lock immediately; a concurrent writer blocks on it
    (busy timeout) or fails with OperationalError and is retried.
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.dbapi_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_in_transaction(func):
    """
    Run `func` as one all-or-nothing database transaction.

    Commits when func returns, rolls back on any exception. Lock conflicts
    re-run func from scratch (including its number allocation) up to
    TX_RETRY_ATTEMPTS times.
    """
    def _op():
        try:
            begin_write_transaction()
            result = func()
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            raise

    return run_with_retry(
        _op,
        attempts=current_app.config.get("TX_RETRY_ATTEMPTS", 3),
        backoff_base=current_app.config.get("TX_RETRY_BACKOFF", 0.1),
    )
