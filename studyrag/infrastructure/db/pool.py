"""
Name: PostgreSQL Connection Pool

Responsibilities:
  - Own the process-wide psycopg ConnectionPool
  - Prepare every new connection (pgvector adapter, statement_timeout)

Collaborators:
  - main.py lifespan: init_pool() on startup, close_pool() on shutdown
  - PostgresChunkStore: get_pool() per operation

Constraints:
  - Only one pool per process; init_pool() twice is an error
"""

import threading
from functools import partial
from typing import Optional

from pgvector.psycopg import register_vector
from psycopg_pool import ConnectionPool

from ...logger import logger


class _PoolHolder:
    def __init__(self) -> None:
        self.pool: Optional[ConnectionPool] = None
        self.lock = threading.Lock()

    def swap(self, new_pool: Optional[ConnectionPool]) -> Optional[ConnectionPool]:
        old, self.pool = self.pool, new_pool
        return old


_holder = _PoolHolder()


def _prepare_connection(conn, statement_timeout_ms: int) -> None:
    register_vector(conn)
    if statement_timeout_ms > 0:
        conn.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
        conn.commit()


def init_pool(
    database_url: str,
    min_size: int,
    max_size: int,
    statement_timeout_ms: int = 0,
) -> ConnectionPool:
    """R: Open the pool. Raises RuntimeError if one is already open."""
    with _holder.lock:
        if _holder.pool is not None:
            raise RuntimeError("Connection pool already initialized")
        pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=partial(_prepare_connection, statement_timeout_ms=statement_timeout_ms),
            open=True,
        )
        _holder.swap(pool)
    logger.info(
        "postgres pool opened",
        extra={"min_size": min_size, "max_size": max_size},
    )
    return pool


def get_pool() -> ConnectionPool:
    pool = _holder.pool
    if pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    return pool


def close_pool() -> None:
    """R: Close and forget the pool; no-op when none is open."""
    with _holder.lock:
        pool = _holder.swap(None)
    if pool is not None:
        pool.close()
        logger.info("postgres pool closed")


# R: Test hook, same effect as close_pool()
reset_pool = close_pool
