"""Request-scoped middleware for API requests."""

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request ID to every request and logs its outcome.

    An incoming X-Request-ID is kept so ids can be traced across services.
    Must be the outermost middleware so every response carries the header.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "%s %s -> %d (%.1f ms, request_id=%s)",
            request.method, request.url.path, response.status_code, elapsed_ms, request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response


def request_id_of(request: Request) -> str | None:
    """Request id assigned by RequestIDMiddleware, if it ran."""
    return getattr(request.state, "request_id", None)
