"""Security middleware for FastAPI - session validation and actor context."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.exceptions import InvalidTokenError, SessionExpiredError
from auth.identity import IdentityProvider
from api.base import error_response, ErrorCodes
from utils.user_context import set_current_actor, clear_current_actor


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates the session and sets the actor context.

    For protected routes:
    1. Extracts the token from the 'session_token' cookie or a Bearer header
    2. Validates it via the IdentityProvider
    3. Sets the actor in request.state and in the actor context (for audit)
    4. Clears context after request completes

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, identity_provider: IdentityProvider):
        super().__init__(app)
        self._identity_provider = identity_provider

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path):
                return True
        return False

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        token = request.cookies.get("session_token")
        if token:
            return token
        authorization = request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return None

    @staticmethod
    def _unauthorized(request: Request, code: str, message: str) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        return JSONResponse(
            status_code=401,
            content=error_response(code, message, request_id).model_dump(mode="json"),
        )

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if self._is_public_path(request.url.path):
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            return self._unauthorized(request, ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            session = self._identity_provider.validate_session(token)
        except SessionExpiredError:
            return self._unauthorized(request, ErrorCodes.SESSION_EXPIRED, "Session has expired")
        except InvalidTokenError:
            return self._unauthorized(request, ErrorCodes.INVALID_TOKEN, "Invalid session token")

        actor = session.to_actor()
        set_current_actor(actor)
        request.state.actor = actor
        request.state.session = session

        try:
            return await call_next(request)
        finally:
            clear_current_actor()
