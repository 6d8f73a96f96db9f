"""
Database connection pool and base query helpers for the API service.

This module builds a psycopg v3 AsyncConnectionPool configured for production use
and the private helpers every data-access module runs its SQL through. The pool is
never a module-level singleton: it is constructed once in the FastAPI lifespan and
passed explicitly as the first argument of each data-access function.
"""

import logging
import os
from typing import Sequence

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)


def _build_conninfo() -> str:
    """
    Read the libpq connection string from the environment.

    Returns:
        The value of DATABASE_URL.

    Raises:
        RuntimeError: If DATABASE_URL is not set. This is the one configuration
            error that aborts application startup.
    """
    conninfo = os.getenv("DATABASE_URL")
    if not conninfo:
        raise RuntimeError("DATABASE_URL environment variable is not set")
    return conninfo


def create_pool(conninfo: str | None = None) -> AsyncConnectionPool:
    """
    Create an inert connection pool.

    The pool is created with open=False and must be opened by the caller
    (the FastAPI lifespan handler or the schema init script).

    Args:
        conninfo: Optional explicit connection string. Defaults to DATABASE_URL.
    """
    return AsyncConnectionPool(
        conninfo=conninfo or _build_conninfo(),
        min_size=int(os.getenv("POSTGRES_POOL_MIN_SIZE", "2")),   # warm connections for steady-state traffic
        max_size=int(os.getenv("POSTGRES_POOL_MAX_SIZE", "10")),  # burst capacity
        max_lifetime=1800,    # Recycle connections after 30 minutes to prevent staleness
        max_idle=300,         # Close idle connections above min_size after 5 minutes
        timeout=5.0,          # Wait up to 5s for a connection before raising PoolTimeout
        kwargs={"row_factory": dict_row},
        open=False,
    )


# ===============================
#     PRIVATE BASE METHODS
# ===============================

async def _execute_read(
    pool: AsyncConnectionPool,
    query: str,
    params: Sequence[object] | None = None,
) -> list[dict]:
    """
    Execute a read query and return all rows.

    Args:
        pool: Connection pool to borrow a connection from.
        query: SQL query string with parameter placeholders (%s).
        params: Optional sequence of parameters to bind to the query.

    Returns:
        List of rows, each a dict keyed by column name.
    """
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()


async def _execute_read_one(
    pool: AsyncConnectionPool,
    query: str,
    params: Sequence[object] | None = None,
) -> dict | None:
    """
    Execute a read query and return a single row, or None if no rows match.
    """
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchone()


async def _execute_write(
    pool: AsyncConnectionPool,
    query: str,
    params: Sequence[object] | None = None,
    fetch_one: bool = False,
):
    """
    Execute a write query (INSERT, UPDATE, DELETE) with an explicit commit.

    The connection is used within a transaction. On clean exit, the transaction
    is explicitly committed. If an exception occurs, the transaction is rolled
    back automatically by the connection context manager.

    Args:
        pool: Connection pool to borrow a connection from.
        query: SQL query string with parameter placeholders (%s).
        params: Optional sequence of parameters to bind to the query.
        fetch_one: If True, fetch and return the first row (e.g., for RETURNING clauses).

    Returns:
        If fetch_one is True, returns the first row as a dict, otherwise None.
    """
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            result = await cur.fetchone() if fetch_one else None
        await conn.commit()
        return result


async def _execute_on_conn(
    conn,
    query: str,
    params: Sequence[object] | None = None,
    fetch: bool = False,
):
    """
    Execute a statement on a caller-managed connection.

    The caller owns the transaction scope: nothing is committed here.

    Returns:
        All fetched rows if fetch is True, otherwise None.
    """
    async with conn.cursor() as cur:
        await cur.execute(query, params)
        return await cur.fetchall() if fetch else None


# ===============================
#        PUBLIC METHODS
# ===============================

async def open_pool(pool: AsyncConnectionPool) -> None:
    """Open the pool and fail fast if Postgres is unreachable."""
    await pool.open()
    await pool.check()
    logger.info("Postgres pool opened (min=%d, max=%d)", pool.min_size, pool.max_size)


async def close_pool(pool: AsyncConnectionPool) -> None:
    """Close all pooled connections."""
    await pool.close()
    logger.info("Postgres pool closed")


async def check_postgres(pool: AsyncConnectionPool) -> str:
    """
    Ping Postgres via the pool to verify connectivity.

    This validates that the pool can successfully obtain a connection
    and execute a simple query. Used by the /health endpoint.

    Returns:
        'ok' if the check succeeds, otherwise an error message string.
    """
    try:
        async with pool.connection() as conn:
            await conn.execute("SELECT 1")
        return "ok"
    except Exception as e:
        return str(e)
