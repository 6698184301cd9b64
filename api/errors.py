"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from api.middleware import request_id_of
from auth.exceptions import AuthorizationError
from core.exceptions import (
    EntityInUseError,
    InvalidAmountError,
    InvalidDepositError,
    LedgerError,
    NotFoundError,
    OverpaymentRejectedError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

# First match wins; order subclasses before their bases.
_LEDGER_ERRORS: list[tuple[type[LedgerError], int, str]] = [
    (NotFoundError, 404, ErrorCodes.NOT_FOUND),
    (OverpaymentRejectedError, 409, ErrorCodes.OVERPAYMENT_REJECTED),
    (EntityInUseError, 409, ErrorCodes.ENTITY_IN_USE),
    (InvalidAmountError, 400, ErrorCodes.INVALID_AMOUNT),
    (InvalidDepositError, 400, ErrorCodes.INVALID_DEPOSIT),
    (PersistenceError, 503, ErrorCodes.PERSISTENCE_FAILURE),
]


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, request_id_of(request)).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        for error_type, status_code, code in _LEDGER_ERRORS:
            if isinstance(exc, error_type):
                break
        else:
            status_code, code = 400, ErrorCodes.INVALID_REQUEST

        if isinstance(exc, PersistenceError):
            logger.error(f"Persistence failure: {exc}")
            return _error(request, status_code, code, "The ledger store is unavailable")

        return _error(request, status_code, code, str(exc))

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(request: Request, exc: AuthorizationError):
        return _error(request, 403, ErrorCodes.AUTHORIZATION_DENIED, str(exc))

    @app.exception_handler(ValidationError)
    async def model_validation_error_handler(request: Request, exc: ValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors(include_url=False)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(KeyError)
    async def key_error_handler(request: Request, exc: KeyError):
        return _error(request, 400, ErrorCodes.INVALID_REQUEST, f"Missing field {exc}")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
