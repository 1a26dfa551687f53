"""PostgreSQL database client for local development.

Connection pool plus a few query helpers, used by the repositories when
``USE_LOCAL_DB=1`` instead of Supabase. A single ``get_cursor()`` block commits
once, which the quota-checked hotspot insert relies on.
"""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Generator

from psycopg2 import pool
from psycopg2.extras import RealDictCursor

logger = logging.getLogger(__name__)


class PostgresClient:
    """PostgreSQL database client with connection pooling."""

    def __init__(self) -> None:
        self.enabled = os.getenv("USE_LOCAL_DB", "0") == "1"
        self._pool: Any = None

        if self.enabled:
            try:
                self._pool = pool.ThreadedConnectionPool(
                    minconn=1,
                    maxconn=int(os.getenv("POSTGRES_POOL_SIZE", "10")),
                    host=os.getenv("POSTGRES_HOST", "localhost"),
                    port=int(os.getenv("POSTGRES_PORT", "5432")),
                    database=os.getenv("POSTGRES_DB", "hotspot_pages"),
                    user=os.getenv("POSTGRES_USER", "hotspot_pages"),
                    password=os.getenv("POSTGRES_PASSWORD", "hotspot_pages_dev_password"),
                )
                logger.info("PostgreSQL pool ready for %s", os.getenv("POSTGRES_DB", "hotspot_pages"))
            except Exception as exc:  # pragma: no cover
                raise RuntimeError(f"Failed to initialize PostgreSQL connection pool: {exc}") from exc

    @contextmanager
    def get_connection(self) -> Generator[Any, None, None]:
        """Borrow a pooled connection; commit on success, roll back on error."""
        if not self.enabled or self._pool is None:
            raise RuntimeError("Local PostgreSQL database is not enabled")

        conn = None
        try:
            conn = self._pool.getconn()
            yield conn
            conn.commit()
        except Exception:
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                self._pool.putconn(conn)

    @contextmanager
    def get_cursor(self, dict_cursor: bool = True) -> Generator[Any, None, None]:
        """Cursor on a pooled connection; everything run on it commits together."""
        with self.get_connection() as conn:
            cursor_factory = RealDictCursor if dict_cursor else None
            cursor = conn.cursor(cursor_factory=cursor_factory)
            try:
                yield cursor
            finally:
                cursor.close()

    def execute_one(self, query: str, params: tuple = ()) -> dict[str, Any] | None:
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            result = cursor.fetchone()
            return dict(result) if result else None

    def execute_many(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def execute_insert(self, query: str, params: tuple = ()) -> dict[str, Any]:
        """Run an INSERT/UPDATE ... RETURNING and return the row.

        Raises:
            RuntimeError: If the statement returned no row.
        """
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            result = cursor.fetchone()
            if not result:
                raise RuntimeError("Query did not return a row")
            return dict(result)

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Run an UPDATE or DELETE and return the affected row count."""
        with self.get_cursor(dict_cursor=False) as cursor:
            cursor.execute(query, params)
            return cursor.rowcount


_POSTGRES_CLIENT: PostgresClient | None = None


def get_postgres_client() -> PostgresClient | None:
    """Return the shared client when ``USE_LOCAL_DB=1``, else ``None``."""
    global _POSTGRES_CLIENT
    if os.getenv("USE_LOCAL_DB", "0") != "1":
        return None
    if _POSTGRES_CLIENT is None:
        _POSTGRES_CLIENT = PostgresClient()
    return _POSTGRES_CLIENT
