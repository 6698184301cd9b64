"""
HashiCorp Vault client for ledger secret management.

Uses AppRole authentication. Fails fast on missing configuration.
All paths scoped to 'ledger/' prefix - no escape to other secrets.
"""

import os
import logging
from typing import Dict

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

# Project scope - all secrets under this path
_SECRET_PREFIX = "ledger"

_POSTGRES_SCHEMES = ("postgresql://", "postgres://")

# Singleton instance and cache
_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, str] = {}


def _ensure_vault_client() -> "VaultClient":
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


class VaultClient:
    """Vault client with AppRole auth, env-based config, and fail-fast behavior."""

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_namespace: str | None = None,
    ):
        """Initialize with environment variables. Fails fast on missing config."""
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        self.vault_role_id = os.getenv("VAULT_ROLE_ID")
        self.vault_secret_id = os.getenv("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")

        if not self.vault_role_id or not self.vault_secret_id:
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        client_kwargs = {"url": self.vault_addr}
        if self.vault_namespace:
            client_kwargs["namespace"] = self.vault_namespace

        self.client = hvac.Client(**client_kwargs)
        self._authenticate_approle()

        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

        logger.info(f"Vault client initialized: {self.vault_addr}")

    def _authenticate_approle(self) -> None:
        """Authenticate using AppRole credentials."""
        try:
            auth_response = self.client.auth.approle.login(
                role_id=self.vault_role_id,
                secret_id=self.vault_secret_id,
            )
            self.client.token = auth_response["auth"]["client_token"]
        except Exception as e:
            logger.error(f"AppRole authentication failed: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")

    def get_secret(self, path: str, field: str) -> str:
        """
        Retrieve single field from KV v2 secret.

        Path is automatically scoped to the 'ledger/' prefix: callers pass
        'database', Vault sees 'ledger/database'.

        Raises:
            PermissionError: Path not accessible or doesn't exist.
            KeyError: Field not found in secret.
        """
        full_path = f"{_SECRET_PREFIX}/{path}"

        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            logger.error(f"Secret path not found: {full_path}")
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")

        secret_data = response["data"]["data"]
        if field not in secret_data:
            raise KeyError(
                f"Field '{field}' not found in secret '{full_path}'. "
                f"Available: {', '.join(secret_data.keys())}"
            )
        return secret_data[field]


def get_database_url() -> str:
    """
    Get the ledger's PostgreSQL connection URL from Vault (cached for the process).

    Only consulted when LEDGER_DATABASE_URL is not set.

    Raises:
        KeyError: The 'ledger/database' secret has no 'url' field.
        ValueError: The stored value is not a PostgreSQL URL.
    """
    cache_key = f"{_SECRET_PREFIX}/database/url"

    if cache_key not in _secret_cache:
        try:
            url = _ensure_vault_client().get_secret("database", "url")
        except KeyError as e:
            raise KeyError(
                f"Ledger database URL missing: add a 'url' field to "
                f"'{_SECRET_PREFIX}/database' or set LEDGER_DATABASE_URL ({e})"
            ) from e
        if not url.startswith(_POSTGRES_SCHEMES):
            raise ValueError(
                f"'{_SECRET_PREFIX}/database' url must start with one of {', '.join(_POSTGRES_SCHEMES)}"
            )
        _secret_cache[cache_key] = url
    return _secret_cache[cache_key]
