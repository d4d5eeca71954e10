"""
ORM-level append-only enforcement.

Inventory movements, ledger entries and unit identity revisions are audit
records: once flushed they are never updated or deleted. Corrections are
new rows (a compensating movement, a reversing ledger entry, a further
revision).

SQLAlchemy fires mapper events before the UPDATE/DELETE is sent; the
listeners below raise AppendOnlyViolation there, which aborts the flush and
the surrounding transaction.

Bulk Core statements (table.delete()) bypass mapper events. They are only
used by test fixtures and `flask system reset-db`.
"""

from sqlalchemy import event

from ..errors import AppendOnlyViolation


def _reject_update(mapper, connection, target):
    raise AppendOnlyViolation(
        f"{type(target).__name__} is append-only and cannot be modified",
        details={"id": target.id},
    )


def _reject_delete(mapper, connection, target):
    raise AppendOnlyViolation(
        f"{type(target).__name__} is append-only and cannot be deleted",
        details={"id": target.id},
    )


def register_append_only(*models) -> None:
    for model in models:
        if not event.contains(model, "before_update", _reject_update):
            event.listen(model, "before_update", _reject_update)
        if not event.contains(model, "before_delete", _reject_delete):
            event.listen(model, "before_delete", _reject_delete)
