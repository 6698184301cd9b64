"""API test fixtures - TestClients per role on an app backed by the in-memory store."""

from datetime import timedelta
from unittest.mock import Mock
from uuid import UUID

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from auth.exceptions import InvalidTokenError
from auth.identity import IdentityProvider
from auth.types import Session
from core.config import LedgerConfig, StorageBackend
from core.storage import MemoryLedgerStore
from utils.timezone import now_utc
from utils.user_context import Role


# token -> (user id, role)
SESSIONS = {
    "admin-token": (UUID("00000000-0000-0000-0000-0000000000a1"), Role.ADMIN),
    "editor-token": (UUID("00000000-0000-0000-0000-0000000000e1"), Role.EDITOR),
    "viewer-token": (UUID("00000000-0000-0000-0000-0000000000f1"), Role.VIEWER),
}


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def mock_identity_provider():
    """Identity provider knowing one session per role."""

    def validate_session(token: str) -> Session:
        if token not in SESSIONS:
            raise InvalidTokenError(token)
        user_id, role = SESSIONS[token]
        now = now_utc()
        return Session(
            token=token,
            user_id=user_id,
            role=role,
            created_at=now,
            expires_at=now + timedelta(hours=24),
        )

    mock = Mock(spec=IdentityProvider)
    mock.validate_session.side_effect = validate_session
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def ledger_store():
    store = MemoryLedgerStore()
    yield store
    store.close()


@pytest.fixture
def app(mock_identity_provider, ledger_store):
    """Full application: middleware, error handlers, data/actions routes."""
    config = LedgerConfig(storage_backend=StorageBackend.MEMORY)
    return create_app(config, mock_identity_provider, store=ledger_store)


@pytest.fixture
def services(app):
    return app.state.services


def _client(app, token: str | None = None) -> TestClient:
    c = TestClient(app, raise_server_exceptions=False)
    if token:
        c.cookies.set("session_token", token)
    return c


@pytest.fixture
def client(app):
    """Editor client: may read and write."""
    return _client(app, "editor-token")


@pytest.fixture
def admin_client(app):
    return _client(app, "admin-token")


@pytest.fixture
def viewer_client(app):
    return _client(app, "viewer-token")


@pytest.fixture
def unauthed_client(app):
    """Unauthenticated test client (no session cookie)."""
    return _client(app)


# =============================================================================
# HELPERS
# =============================================================================


@pytest.fixture
def act(client):
    """POST an action as the editor; returns the response."""

    def _act(domain: str, action: str, data: dict, as_client=None):
        return (as_client or client).post(
            "/api/actions", json={"domain": domain, "action": action, "data": data}
        )

    return _act


@pytest.fixture
def deposit(act):
    """Record a deposit sale through the API; returns the income entry JSON."""

    def _deposit(amount: str, total: str, **extra):
        response = act("income", "record", {
            "type": "deposit",
            "amount": amount,
            "is_deposit": True,
            "total_amount": total,
            **extra,
        })
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _deposit


@pytest.fixture
def editor_user_id():
    """User id behind editor-token."""
    return SESSIONS["editor-token"][0]
