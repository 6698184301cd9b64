"""Tests for AuthMiddleware - session validation and actor context."""

from datetime import timedelta
from unittest.mock import Mock
from uuid import uuid4

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from auth.exceptions import InvalidTokenError, SessionExpiredError
from auth.identity import IdentityProvider
from auth.security_middleware import AuthMiddleware
from auth.types import Session
from utils.timezone import now_utc
from utils.user_context import Role, get_current_actor, get_current_user_id


def _session(token: str = "valid-token", role: Role = Role.EDITOR, user_id=None) -> Session:
    now = now_utc()
    return Session(
        token=token,
        user_id=user_id or uuid4(),
        role=role,
        created_at=now,
        expires_at=now + timedelta(hours=1),
    )


@pytest.fixture
def mock_identity_provider():
    """Mock IdentityProvider."""
    return Mock(spec=IdentityProvider)


@pytest.fixture
def app_with_middleware(mock_identity_provider):
    """FastAPI app with auth middleware."""
    app = FastAPI()

    app.add_middleware(
        AuthMiddleware,
        identity_provider=mock_identity_provider,
    )

    @app.get("/api/data")
    async def protected_route(request: Request):
        actor = get_current_actor()
        return {
            "user_id": str(actor.user_id),
            "role": actor.role.value,
            "state_user_id": str(request.state.actor.user_id),
        }

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/docs")
    async def docs():
        return {"docs": True}

    @app.get("/openapi.json")
    async def openapi():
        return {"openapi": "3.0"}

    return app


@pytest.fixture
def client(app_with_middleware):
    return TestClient(app_with_middleware)


class TestPublicPaths:
    """Test that public paths skip authentication."""

    @pytest.mark.parametrize("path", ["/health", "/docs", "/openapi.json"])
    def test_no_token_succeeds(self, client, path):
        response = client.get(path)

        assert response.status_code == 200

    def test_public_path_ignores_bad_token(self, client, mock_identity_provider):
        """Public paths never consult the identity provider."""
        mock_identity_provider.validate_session.side_effect = SessionExpiredError("expired")
        client.cookies.set("session_token", "expired-token")

        response = client.get("/health")

        assert response.status_code == 200
        mock_identity_provider.validate_session.assert_not_called()


class TestProtectedPaths:
    """Test protected path authentication."""

    def test_no_token_returns_401(self, client):
        response = client.get("/api/data")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_AUTHENTICATED"

    def test_expired_session_returns_401(self, client, mock_identity_provider):
        mock_identity_provider.validate_session.side_effect = SessionExpiredError("expired")
        client.cookies.set("session_token", "expired-token")

        response = client.get("/api/data")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "SESSION_EXPIRED"

    def test_unknown_token_returns_401(self, client, mock_identity_provider):
        mock_identity_provider.validate_session.side_effect = InvalidTokenError("unknown")
        client.cookies.set("session_token", "bogus")

        response = client.get("/api/data")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_cookie_session_sets_actor(self, client, mock_identity_provider):
        """Valid session puts the actor in context and request state."""
        session = _session(role=Role.ADMIN)
        mock_identity_provider.validate_session.return_value = session
        client.cookies.set("session_token", "valid-token")

        response = client.get("/api/data")

        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == str(session.user_id)
        assert body["state_user_id"] == str(session.user_id)
        assert body["role"] == "admin"
        mock_identity_provider.validate_session.assert_called_once_with("valid-token")

    def test_bearer_header_accepted(self, client, mock_identity_provider):
        mock_identity_provider.validate_session.return_value = _session("header-token")

        response = client.get("/api/data", headers={"Authorization": "Bearer header-token"})

        assert response.status_code == 200
        mock_identity_provider.validate_session.assert_called_once_with("header-token")

    def test_non_bearer_scheme_ignored(self, client):
        response = client.get("/api/data", headers={"Authorization": "Basic dXNlcjpwYXNz"})

        assert response.status_code == 401

    def test_context_cleared_after_request(self, client, mock_identity_provider):
        mock_identity_provider.validate_session.return_value = _session()
        client.cookies.set("session_token", "valid-token")

        client.get("/api/data")

        assert get_current_user_id() is None
