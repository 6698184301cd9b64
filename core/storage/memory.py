"""
In-process store for tests and offline mode.

Transactions are serialized by a single lock and work on a copy of the
tables; the copy replaces the live tables only when the block exits
cleanly. Rows are replaced, never mutated in place, so the copy is shallow.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator
from uuid import UUID

from core.exceptions import PersistenceError
from core.storage.base import LedgerStore, Row, StoreTransaction
from core.storage.schema import TABLE_COLUMNS, check_columns

logger = logging.getLogger(__name__)

Tables = dict[str, dict[UUID, Row]]


def _key(row_id: UUID | str) -> UUID:
    return row_id if isinstance(row_id, UUID) else UUID(str(row_id))


class _MemoryTransaction(StoreTransaction):
    def __init__(self, tables: Tables):
        self._tables = tables

    def insert(self, table: str, row: Row) -> Row:
        check_columns(table, row.keys())
        key = _key(row["id"])
        if key in self._tables[table]:
            raise PersistenceError(f"Duplicate id {key} in {table}")
        stored = {column: row.get(column) for column in TABLE_COLUMNS[table]}
        self._tables[table][key] = stored
        return dict(stored)

    def update(self, table: str, row_id: UUID, fields: Row) -> Row | None:
        check_columns(table, fields.keys())
        key = _key(row_id)
        current = self._tables[table].get(key)
        if current is None:
            return None
        updated = {**current, **fields}
        self._tables[table][key] = updated
        return dict(updated)

    def get(self, table: str, row_id: UUID, *, for_update: bool = False) -> Row | None:
        # The store-wide lock already serializes transactions; for_update adds nothing.
        check_columns(table, ())
        row = self._tables[table].get(_key(row_id))
        return dict(row) if row is not None else None

    def exists_where(self, table: str, column: str, value: Any) -> bool:
        check_columns(table, (column,))
        return any(row.get(column) == value for row in self._tables[table].values())

    def delete(self, table: str, row_id: UUID) -> bool:
        check_columns(table, ())
        return self._tables[table].pop(_key(row_id), None) is not None

    def delete_where(self, table: str, column: str, value: Any) -> int:
        check_columns(table, (column,))
        doomed = [key for key, row in self._tables[table].items() if row.get(column) == value]
        for key in doomed:
            del self._tables[table][key]
        return len(doomed)


class MemoryLedgerStore(LedgerStore):
    """Ephemeral LedgerStore. Contents vanish with the process."""

    def __init__(self):
        self._tables: Tables = {name: {} for name in TABLE_COLUMNS}
        self._lock = threading.RLock()
        self._closed = False
        logger.info("In-memory ledger store created")

    def _check_open(self) -> None:
        if self._closed:
            raise PersistenceError("Store is closed")

    def get(self, table: str, row_id: UUID) -> Row | None:
        check_columns(table, ())
        with self._lock:
            self._check_open()
            row = self._tables[table].get(_key(row_id))
            return dict(row) if row is not None else None

    def list(
        self,
        table: str,
        *,
        filters: Row | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        newest_first: bool = True,
        limit: int | None = None,
    ) -> list[Row]:
        check_columns(table, (filters or {}).keys())
        with self._lock:
            self._check_open()
            rows = [dict(row) for row in self._tables[table].values()]

        if filters:
            rows = [r for r in rows if all(r.get(k) == v for k, v in filters.items())]
        if created_from is not None:
            rows = [r for r in rows if r["created_at"] >= created_from]
        if created_to is not None:
            rows = [r for r in rows if r["created_at"] <= created_to]

        # Insertion order breaks created_at ties, latest insert first when descending.
        if newest_first:
            rows.reverse()
        rows.sort(key=lambda r: r["created_at"], reverse=newest_first)

        return rows[:limit] if limit is not None else rows

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        with self._lock:
            self._check_open()
            working = {name: dict(rows) for name, rows in self._tables.items()}
            yield _MemoryTransaction(working)
            self._tables = working

    def close(self) -> None:
        with self._lock:
            self._closed = True
        logger.info("In-memory ledger store closed")
