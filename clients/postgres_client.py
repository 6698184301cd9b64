"""
PostgreSQL client with connection pooling and explicit transactions.

Uses psycopg2 with ThreadedConnectionPool. The pool belongs to the client
instance: construct one client at process start, pass it to whatever needs
the database, and close it on shutdown.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

# Global JSONB registration flag
_jsonb_registered = False


def _convert_params(params: Tuple | Dict | None) -> Tuple | Dict | None:
    """Convert UUID objects to strings."""
    if params is None:
        return None

    def convert(value: Any) -> Any:
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, list):
            return [convert(v) for v in value]
        if isinstance(value, tuple):
            return tuple(convert(v) for v in value)
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        return value

    return convert(params)


class PostgresTransaction:
    """
    Cursor handle for a group of statements that commit or roll back together.

    Obtained from PostgresClient.transaction(); never constructed directly.
    """

    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, query, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute within the transaction, return row dicts (empty if none)."""
        self._cursor.execute(query, _convert_params(params))
        if self._cursor.description:
            return [dict(row) for row in self._cursor.fetchall()]
        return []

    def execute_single(self, query, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute within the transaction, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement."""
        return self._cursor.rowcount


class PostgresClient:
    """
    PostgreSQL client owning a threaded connection pool.

    Usage:
        db = PostgresClient(database_url)

        rows = db.execute("SELECT * FROM receivables ORDER BY created_at DESC")

        with db.transaction() as tx:
            tx.execute("SELECT * FROM receivables WHERE id = %s FOR UPDATE", (rid,))
            tx.execute("UPDATE receivables SET ... WHERE id = %s", (..., rid))

        db.close()
    """

    def __init__(
        self,
        database_url: str,
        min_connections: int = 2,
        max_connections: int = 20,
        connect_timeout: int = 30,
    ):
        global _jsonb_registered

        self._database_url = database_url
        self._pool: psycopg2.pool.ThreadedConnectionPool | None = psycopg2.pool.ThreadedConnectionPool(
            minconn=min_connections,
            maxconn=max_connections,
            dsn=database_url,
            connect_timeout=connect_timeout,
        )

        if not _jsonb_registered:
            psycopg2.extras.register_default_jsonb(globally=True)
            _jsonb_registered = True

        logger.info("Connection pool created (min=%d, max=%d)", min_connections, max_connections)

    @property
    def closed(self) -> bool:
        return self._pool is None

    @contextmanager
    def get_connection(self):
        """Borrow a connection from the pool; rolled back on error, always returned."""
        if self._pool is None:
            raise RuntimeError("PostgresClient is closed")

        conn = self._pool.getconn()
        if conn is None:
            raise RuntimeError("Could not get connection from pool")

        try:
            yield conn
        except Exception:
            if not conn.closed:
                conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def transaction(self) -> Iterator[PostgresTransaction]:
        """
        Run a group of statements atomically.

        Commits when the block exits normally, rolls back if it raises.
        Row locks taken with SELECT ... FOR UPDATE are held until then.
        """
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                yield PostgresTransaction(cur)
            conn.commit()

    def execute(self, query, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        with self.transaction() as tx:
            return tx.execute(query, params)

    def execute_single(self, query, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def close(self) -> None:
        """Close connection pool. The client cannot be used afterwards."""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("Connection pool closed")
