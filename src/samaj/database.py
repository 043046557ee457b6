"""
═══════════════════════════════════════════════════════════════════════════════
Samaj — Database connection pool
═══════════════════════════════════════════════════════════════════════════════

asyncpg pool for the membership database, configured from
``samaj.config.get_settings()``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg

from samaj.config import get_settings
from samaj.exceptions import StoreError

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Module-level pool singleton
# ═══════════════════════════════════════════════════════════════════════════════
_pool: asyncpg.Pool | None = None


async def get_pool() -> asyncpg.Pool:
    """
    Returns the global PostgreSQL pool.

    The pool is created on the first call with the bounds from SamajSettings.
    """
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.database_pool_min,
            max_size=settings.database_pool_max,
            command_timeout=60,
        )
        logger.info(
            "Samaj DB pool created (min=%d, max=%d)",
            settings.database_pool_min, settings.database_pool_max,
        )
    return _pool


async def close_pool() -> None:
    """Closes the global pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Samaj DB pool closed")


@asynccontextmanager
async def get_connection() -> AsyncGenerator[asyncpg.Connection, None]:
    """
    Acquires a connection from the pool and gives it back afterwards.

    Driver and connection failures are re-raised as ``StoreError`` so the
    services only ever deal with the domain taxonomy::

        async with get_connection() as conn:
            row = await conn.fetchrow("SELECT * FROM profiles WHERE id = $1", member_id)
    """
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            yield conn
    except (asyncpg.PostgresError, OSError) as exc:
        logger.error("Samaj DB operation failed: %s", exc)
        raise StoreError(f"Data store error: {exc}") from exc


async def check_connection() -> bool:
    """Checks that PostgreSQL answers (health check)."""
    try:
        async with get_connection() as conn:
            result = await conn.fetchval("SELECT 1")
            return result == 1
    except Exception as e:
        logger.error("Samaj DB health check failed: %s", e)
        return False
