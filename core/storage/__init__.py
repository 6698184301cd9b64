"""Persistence providers for ledger rows."""

from core.storage.base import LedgerStore, StoreTransaction, Row
from core.storage.memory import MemoryLedgerStore
from core.storage.schema import (
    CUSTOMERS,
    INCOME_ENTRIES,
    RECEIVABLES,
    RECEIVABLE_PAYMENTS,
    EXPENSE_ENTRIES,
    ACTIVITIES,
)
