"""Seam to the external identity provider.

Login, password hashing and session storage live outside this service.
The ledger only asks one question: which session does this token belong to?
"""

from abc import ABC, abstractmethod

from auth.types import Session


class IdentityProvider(ABC):
    """Resolves session tokens issued by the identity provider."""

    @abstractmethod
    def validate_session(self, token: str) -> Session:
        """
        Resolve a token to its session.

        Raises:
            InvalidTokenError: Token is unknown
            SessionExpiredError: Token is known but expired
        """
