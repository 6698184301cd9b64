"""Application configuration.

Values come from LEDGER_* environment variables, after a .env file (if any)
has been loaded. Secrets are not configured here: the database URL is read
from Vault unless `database_url` is set explicitly.
"""

import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

_ENV_PREFIX = "LEDGER_"


class StorageBackend(str, Enum):
    """Which LedgerStore implementation to construct."""

    POSTGRES = "postgres"
    MEMORY = "memory"


class LedgerConfig(BaseModel):
    """
    Ledger application configuration.

    The memory backend keeps everything in-process and loses it on exit;
    use it for tests and offline demos only.
    """

    storage_backend: StorageBackend = Field(
        default=StorageBackend.POSTGRES,
        description="Persistence provider: 'postgres' or 'memory'",
    )
    database_url: str | None = Field(
        default=None,
        description="PostgreSQL URL; when unset it is read from Vault",
    )
    db_min_connections: int = Field(
        default=2,
        description="Connections kept open in the pool",
        ge=1,
        le=50,
    )
    db_max_connections: int = Field(
        default=20,
        description="Upper bound on pooled connections",
        ge=1,
        le=200,
    )
    db_connect_timeout_seconds: int = Field(
        default=30,
        description="Timeout when opening a database connection",
        ge=1,
        le=300,
    )
    recent_activity_limit: int = Field(
        default=10,
        description="Default size of the recent activity feed",
        ge=1,
        le=100,
    )
    expiring_window_days: int = Field(
        default=30,
        description="Default look-ahead when listing expiring subscriptions",
        ge=1,
        le=365,
    )
    log_level: str = Field(
        default="INFO",
        description="Root logger level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )

    @model_validator(mode="after")
    def check_pool_bounds(self) -> "LedgerConfig":
        """Pool maximum must not be below its minimum."""
        if self.db_max_connections < self.db_min_connections:
            raise ValueError("db_max_connections must be >= db_min_connections")
        return self


def load_config(env_file: str | Path | None = None) -> LedgerConfig:
    """
    Build configuration from the environment.

    Args:
        env_file: Optional .env path. Variables already set in the process
            environment win over the file.

    Returns:
        Validated configuration

    Raises:
        pydantic.ValidationError: If a variable has an invalid value
    """
    load_dotenv(dotenv_path=env_file, override=False)

    values = {}
    for name in LedgerConfig.model_fields:
        raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            values[name] = raw.upper() if name == "log_level" else raw

    return LedgerConfig(**values)
