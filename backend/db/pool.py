"""Shared async PostgreSQL connection pool."""

from __future__ import annotations

import asyncio
from typing import Optional

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from app.config import DATABASE_URL, logger

_pool: Optional[AsyncConnectionPool] = None
_pool_lock: Optional[asyncio.Lock] = None


def _conninfo() -> str:
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL environment variable is required")
    if "application_name" in DATABASE_URL:
        return DATABASE_URL
    separator = "&" if "?" in DATABASE_URL else "?"
    return f"{DATABASE_URL}{separator}application_name=board_api"


async def get_async_pool() -> AsyncConnectionPool:
    """Return the process-wide pool, opening it on first use.

    Connections are health-checked on checkout, so one dropped by a database
    restart is replaced instead of being handed to a query.
    """

    global _pool, _pool_lock
    if _pool and not _pool.closed:
        return _pool

    if _pool_lock is None:
        _pool_lock = asyncio.Lock()

    async with _pool_lock:
        if _pool and not _pool.closed:
            return _pool

        pool = AsyncConnectionPool(
            conninfo=_conninfo(),
            kwargs={"autocommit": True, "prepare_threshold": 0, "row_factory": dict_row},
            min_size=1,
            max_size=10,
            timeout=30.0,
            reconnect_timeout=300.0,
            check=AsyncConnectionPool.check_connection,
            open=False,
        )
        await pool.open()
        _pool = pool
        logger.info("Postgres pool opened")
        return _pool


async def close_async_pool() -> None:
    """Close the shared pool on shutdown."""

    global _pool
    if _pool and not _pool.closed:
        await _pool.close()
        logger.info("Postgres pool closed")
    _pool = None
