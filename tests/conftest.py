"""Shared test fixtures for ledger test suite."""

import os
import pytest
from decimal import Decimal
from uuid import UUID
from pathlib import Path

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

from core.activity import ActivityLogger
from core.models import IncomeEntryCreate, IncomeType
from core.storage import MemoryLedgerStore
from utils.user_context import Actor, Role, actor_context, clear_current_actor


# =============================================================================
# TEST ACTOR CONSTANTS
# =============================================================================

TEST_ADMIN_ID = UUID("00000000-0000-0000-0000-000000000001")
TEST_EDITOR_ID = UUID("00000000-0000-0000-0000-000000000002")
TEST_VIEWER_ID = UUID("00000000-0000-0000-0000-000000000003")

# Durable-store tests run only against a disposable database
TEST_DATABASE_URL = os.getenv("LEDGER_TEST_DATABASE_URL")


# =============================================================================
# ACTOR CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_actor_context():
    """Ensure clean actor context before and after each test."""
    clear_current_actor()
    yield
    clear_current_actor()


@pytest.fixture
def as_admin():
    with actor_context(Actor(TEST_ADMIN_ID, Role.ADMIN)) as actor:
        yield actor


@pytest.fixture
def as_editor():
    with actor_context(Actor(TEST_EDITOR_ID, Role.EDITOR)) as actor:
        yield actor


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def db():
    """Session-scoped PostgresClient on the test database."""
    if not TEST_DATABASE_URL:
        pytest.skip("LEDGER_TEST_DATABASE_URL not set")

    from clients.postgres_client import PostgresClient

    client = PostgresClient(TEST_DATABASE_URL, min_connections=1, max_connections=5)
    yield client
    client.close()


@pytest.fixture(scope="session")
def postgres_store(db):
    """Session-scoped PostgresLedgerStore with the schema in place."""
    from core.storage.postgres import PostgresLedgerStore

    store = PostgresLedgerStore(db)
    store.create_schema()
    return store


def _truncate_all(db) -> None:
    from psycopg2 import sql
    from core.storage.schema import TABLE_COLUMNS

    db.execute(sql.SQL("TRUNCATE {} CASCADE").format(
        sql.SQL(", ").join(sql.Identifier(table) for table in TABLE_COLUMNS)
    ))


@pytest.fixture(params=["memory", "postgres"])
def store(request):
    """Every store-backed test runs against both persistence providers."""
    if request.param == "memory":
        memory = MemoryLedgerStore()
        yield memory
        memory.close()
        return

    postgres = request.getfixturevalue("postgres_store")
    _truncate_all(postgres.postgres)
    yield postgres


@pytest.fixture
def memory_store():
    store = MemoryLedgerStore()
    yield store
    store.close()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def activity(store):
    return ActivityLogger(store)


@pytest.fixture
def receivable_service(store, activity):
    from core.services.receivable_service import ReceivableService
    return ReceivableService(store, activity)


@pytest.fixture
def income_service(store, activity, receivable_service):
    from core.services.income_service import IncomeService
    return IncomeService(store, activity, receivable_service)


@pytest.fixture
def customer_service(store, activity):
    from core.services.customer_service import CustomerService
    return CustomerService(store, activity)


@pytest.fixture
def expense_service(store, activity):
    from core.services.expense_service import ExpenseService
    return ExpenseService(store, activity)


@pytest.fixture
def report_service(store):
    from core.services.report_service import ReportService
    return ReportService(store)


@pytest.fixture
def record_deposit(income_service, receivable_service):
    """Record a deposit sale; returns (income entry, receivable it opened)."""

    def _record(amount: str, total: str, customer_id: UUID | None = None):
        entry = income_service.record(IncomeEntryCreate(
            customer_id=customer_id,
            type=IncomeType.DEPOSIT,
            amount=Decimal(amount),
            is_deposit=True,
            total_amount=Decimal(total),
            description="Menu printing",
        ))
        return entry, receivable_service.get_for_income_entry(entry.id)

    return _record
