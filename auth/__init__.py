"""Authentication boundary: identity provider seam and request middleware."""

from auth.exceptions import AuthError, AuthorizationError, InvalidTokenError, SessionExpiredError
from auth.identity import IdentityProvider
from auth.types import Session
