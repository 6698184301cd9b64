"""
Application assembly.

The store is built once from configuration, handed to every service, and
closed when the app shuts down. Nothing below this module reaches for a
global database handle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.identity import IdentityProvider
from auth.security_middleware import AuthMiddleware
from clients.postgres_client import PostgresClient
from clients.vault_client import get_database_url
from core.activity import ActivityLogger
from core.config import LedgerConfig, StorageBackend
from core.services.customer_service import CustomerService
from core.services.expense_service import ExpenseService
from core.services.income_service import IncomeService
from core.services.receivable_service import ReceivableService
from core.services.report_service import ReportService
from core.storage import LedgerStore, MemoryLedgerStore

logger = logging.getLogger(__name__)


def configure_logging(config: LedgerConfig) -> None:
    """Configure the root logger once per process."""
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_store(config: LedgerConfig) -> LedgerStore:
    """
    Construct the configured persistence provider.

    For PostgreSQL the schema is created if missing.
    """
    if config.storage_backend == StorageBackend.MEMORY:
        logger.warning("Using in-memory store; data will not survive a restart")
        return MemoryLedgerStore()

    from core.storage.postgres import PostgresLedgerStore

    client = PostgresClient(
        config.database_url or get_database_url(),
        min_connections=config.db_min_connections,
        max_connections=config.db_max_connections,
        connect_timeout=config.db_connect_timeout_seconds,
    )
    store = PostgresLedgerStore(client)
    store.create_schema()
    return store


def build_services(store: LedgerStore, config: LedgerConfig) -> dict:
    """Wire every service to the one store."""
    activity = ActivityLogger(store, default_limit=config.recent_activity_limit)
    receivable = ReceivableService(store, activity)

    return {
        "activity": activity,
        "receivable": receivable,
        "income": IncomeService(store, activity, receivable),
        "expense": ExpenseService(store, activity),
        "customer": CustomerService(store, activity),
        "report": ReportService(store, expiring_window_days=config.expiring_window_days),
    }


def create_app(
    config: LedgerConfig,
    identity_provider: IdentityProvider,
    store: LedgerStore | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration
        identity_provider: Resolves session tokens to actors
        store: Pre-built store (tests); built from config when omitted

    Returns:
        App whose shutdown closes the store
    """
    configure_logging(config)
    if store is None:
        store = build_store(config)
    services = build_services(store, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        store.close()
        logger.info("Ledger store closed")

    app = FastAPI(title="Back-office ledger", lifespan=lifespan)
    app.state.store = store
    app.state.services = services

    # Starlette runs the last-added middleware first.
    app.add_middleware(AuthMiddleware, identity_provider=identity_provider)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok", "storage_backend": config.storage_backend.value}

    app.include_router(create_data_router(services, config.expiring_window_days), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app
