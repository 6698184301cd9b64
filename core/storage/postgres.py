"""
PostgreSQL-backed LedgerStore.

SQL is composed with psycopg2.sql so table and column names are quoted
identifiers checked against the schema, never interpolated strings.
Every psycopg2 failure leaves the store as PersistenceError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator
from uuid import UUID

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json

from clients.postgres_client import PostgresClient, PostgresTransaction
from core.exceptions import PersistenceError
from core.storage.base import LedgerStore, Row, StoreTransaction
from core.storage.schema import SCHEMA_SQL, TABLE_COLUMNS, check_columns

logger = logging.getLogger(__name__)


def _adapt(value: Any) -> Any:
    """Wrap dicts for JSONB columns; everything else adapts natively."""
    if isinstance(value, dict):
        return Json(value)
    return value


class _PostgresStoreTransaction(StoreTransaction):
    def __init__(self, tx: PostgresTransaction):
        self._tx = tx

    def insert(self, table: str, row: Row) -> Row:
        check_columns(table, row.keys())
        columns = list(row.keys())
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        return self._tx.execute(query, tuple(_adapt(row[c]) for c in columns))[0]

    def update(self, table: str, row_id: UUID, fields: Row) -> Row | None:
        check_columns(table, fields.keys())
        if not fields:
            return self.get(table, row_id)
        columns = list(fields.keys())
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(c)) for c in columns
            ),
        )
        params = tuple(_adapt(fields[c]) for c in columns) + (row_id,)
        return self._tx.execute_single(query, params)

    def get(self, table: str, row_id: UUID, *, for_update: bool = False) -> Row | None:
        check_columns(table, ())
        query = sql.SQL("SELECT * FROM {} WHERE id = %s" + (" FOR UPDATE" if for_update else "")).format(
            sql.Identifier(table)
        )
        return self._tx.execute_single(query, (row_id,))

    def exists_where(self, table: str, column: str, value: Any) -> bool:
        check_columns(table, (column,))
        query = sql.SQL("SELECT EXISTS (SELECT 1 FROM {} WHERE {} = %s) AS found").format(
            sql.Identifier(table), sql.Identifier(column)
        )
        return self._tx.execute_single(query, (value,))["found"]

    def delete(self, table: str, row_id: UUID) -> bool:
        check_columns(table, ())
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(sql.Identifier(table))
        self._tx.execute(query, (row_id,))
        return self._tx.rowcount > 0

    def delete_where(self, table: str, column: str, value: Any) -> int:
        check_columns(table, (column,))
        query = sql.SQL("DELETE FROM {} WHERE {} = %s").format(
            sql.Identifier(table), sql.Identifier(column)
        )
        self._tx.execute(query, (value,))
        return self._tx.rowcount


class PostgresLedgerStore(LedgerStore):
    """
    Durable LedgerStore on a PostgresClient.

    Usage:
        store = PostgresLedgerStore(PostgresClient(database_url))
        store.create_schema()
        ...
        store.close()
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        try:
            self.postgres.execute(SCHEMA_SQL)
        except psycopg2.Error as e:
            raise PersistenceError(f"Could not create schema: {e}") from e
        logger.info("Ledger schema ensured")

    def get(self, table: str, row_id: UUID) -> Row | None:
        check_columns(table, ())
        query = sql.SQL("SELECT * FROM {} WHERE id = %s").format(sql.Identifier(table))
        try:
            return self.postgres.execute_single(query, (row_id,))
        except psycopg2.Error as e:
            raise PersistenceError(f"Read from {table} failed: {e}") from e

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
        filters = filters or {}
        check_columns(table, filters.keys())

        conditions = [sql.SQL("{} = %s").format(sql.Identifier(c)) for c in filters]
        params: list[Any] = list(filters.values())
        if created_from is not None:
            conditions.append(sql.SQL("created_at >= %s"))
            params.append(created_from)
        if created_to is not None:
            conditions.append(sql.SQL("created_at <= %s"))
            params.append(created_to)

        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table))
        if conditions:
            query += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
        query += sql.SQL(" ORDER BY created_at DESC" if newest_first else " ORDER BY created_at ASC")
        if limit is not None:
            query += sql.SQL(" LIMIT %s")
            params.append(limit)

        try:
            return self.postgres.execute(query, tuple(params))
        except psycopg2.Error as e:
            raise PersistenceError(f"List from {table} failed: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        try:
            with self.postgres.transaction() as tx:
                yield _PostgresStoreTransaction(tx)
        except psycopg2.Error as e:
            logger.error(f"Transaction rolled back: {e}")
            raise PersistenceError(f"Transaction failed: {e}") from e

    def close(self) -> None:
        self.postgres.close()

