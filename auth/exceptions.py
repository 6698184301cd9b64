"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidTokenError(AuthError):
    """Session token is unknown or malformed."""


class SessionExpiredError(AuthError):
    """Session has expired and user must re-authenticate."""


class AuthorizationError(AuthError):
    """Authenticated, but the actor's role does not permit the operation."""
