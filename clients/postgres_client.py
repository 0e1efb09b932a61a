"""
PostgreSQL client with connection pooling.

Uses psycopg2 with ThreadedConnectionPool. Owner isolation is explicit:
services filter every query on owner_id, so pooled connections carry no
per-request session state.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

Params = Tuple | Dict | None


def _adapt(value: Any) -> Any:
    """UUIDs to strings, recursively; psycopg2 has no UUID adapter by default."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, list):
        return [_adapt(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_adapt(v) for v in value)
    if isinstance(value, dict):
        return {k: _adapt(v) for k, v in value.items()}
    return value


class PostgresClient:
    """
    PostgreSQL client returning rows as dicts.

    Every call runs in its own transaction: committed on success,
    rolled back if the statement raises.

    Usage:
        db = PostgresClient(database_url)
        rows = db.execute("SELECT * FROM invoices WHERE owner_id = %s", (owner_id,))
    """

    # One pool per DSN, shared by every client built for it
    _pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()
    _jsonb_registered = False

    def __init__(self, database_url: str, min_connections: int = 2, max_connections: int = 20):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._min_connections,
                    maxconn=self._max_connections,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
                # JSONB columns (client, items, audit changes) come back as Python objects
                if not PostgresClient._jsonb_registered:
                    psycopg2.extras.register_default_jsonb(globally=True)
                    PostgresClient._jsonb_registered = True
                self._pools[self._database_url] = pool
                logger.info(f"Connection pool created (min={self._min_connections}, max={self._max_connections})")
            return pool

    @contextmanager
    def _cursor(self, dict_rows: bool = True) -> Iterator[Any]:
        pool = self._pool()
        conn = pool.getconn()
        if conn is None:
            raise RuntimeError("Could not get connection from pool")

        factory = psycopg2.extras.RealDictCursor if dict_rows else None
        try:
            with conn.cursor(cursor_factory=factory) as cur:
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        with self._cursor() as cur:
            cur.execute(query, _adapt(params))
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_scalar(self, query: str, params: Params = None) -> Any:
        """Execute query, return first value of first row or None."""
        with self._cursor(dict_rows=False) as cur:
            cur.execute(query, _adapt(params))
            row = cur.fetchone()
            return row[0] if row else None

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """
        Execute INSERT/UPDATE/DELETE ... RETURNING.

        Raises:
            psycopg2.errors.UniqueViolation: Constraint hit; the transaction
                is rolled back before this propagates
        """
        with self._cursor() as cur:
            cur.execute(query, _adapt(params))
            return [dict(row) for row in cur.fetchall()]

    @classmethod
    def close_all_pools(cls) -> None:
        """Close every pool; called on application shutdown."""
        with cls._pools_lock:
            for pool in cls._pools.values():
                pool.closeall()
            cls._pools.clear()
        logger.info("Connection pools closed")
