"""
Persistence provider interface.

Services depend on LedgerStore only. Two implementations exist:
PostgresLedgerStore (durable) and MemoryLedgerStore (ephemeral, for tests
and offline mode). Business rules never live in a store.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any
from uuid import UUID

Row = dict[str, Any]


class StoreTransaction(ABC):
    """A group of reads and writes that commit or roll back together."""

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """Insert a row, return it as stored."""

    @abstractmethod
    def update(self, table: str, row_id: UUID, fields: Row) -> Row | None:
        """Update some fields of a row by id. None if the row does not exist."""

    @abstractmethod
    def get(self, table: str, row_id: UUID, *, for_update: bool = False) -> Row | None:
        """
        Read a row by id.

        for_update locks the row until the transaction ends, so concurrent
        writers of the same row serialize.
        """

    @abstractmethod
    def exists_where(self, table: str, column: str, value: Any) -> bool:
        """Whether any row has column equal to value, as seen by this transaction."""

    @abstractmethod
    def delete(self, table: str, row_id: UUID) -> bool:
        """Delete a row by id. False if it did not exist."""

    @abstractmethod
    def delete_where(self, table: str, column: str, value: Any) -> int:
        """Delete every row whose column equals value. Returns the count."""


class LedgerStore(ABC):
    """Row storage for ledger entities."""

    @abstractmethod
    def get(self, table: str, row_id: UUID) -> Row | None:
        """Read a row by id outside any transaction."""

    @abstractmethod
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
        """
        List rows ordered by created_at.

        Args:
            table: Table name
            filters: Column equality filters
            created_from: Inclusive lower bound on created_at
            created_to: Inclusive upper bound on created_at
            newest_first: Order descending (default) or ascending
            limit: Maximum rows
        """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[StoreTransaction]:
        """Open an atomic unit of work. Raising inside the block rolls it back."""

    @abstractmethod
    def close(self) -> None:
        """Release resources. The store cannot be used afterwards."""
