# accounting/services/unit_of_work.py

"""
UNIT OF WORK

Explicit transaction handle passed to every ledger operation.

Ownership rule:
- Whoever opens a UnitOfWork (the `with` block) owns commit/rollback.
- Functions that receive a UnitOfWork never commit; they may open a
  savepoint so their own failure rolls back only their writes before the
  error propagates to the owner.

Usage:
    with UnitOfWork() as uow:
        post_journal_entry(entry, user_id, uow=uow)
        post_journal_entry(cogs_entry, user_id, uow=uow)
    # both commit together, or neither does
"""

from __future__ import annotations

from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, connections, transaction


class UnitOfWork:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self._atomic = None

    def __enter__(self) -> "UnitOfWork":
        if self._atomic is not None:
            raise RuntimeError("UnitOfWork is already active")
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb):
        atomic, self._atomic = self._atomic, None
        return atomic.__exit__(exc_type, exc, tb)

    @property
    def is_active(self) -> bool:
        return self._atomic is not None and connections[self.using].in_atomic_block

    def assert_active(self) -> None:
        if not self.is_active:
            raise RuntimeError(
                "Ledger writes require an active UnitOfWork (use `with UnitOfWork() as uow:`)"
            )

    @contextmanager
    def savepoint(self):
        self.assert_active()
        with transaction.atomic(using=self.using):
            yield self
