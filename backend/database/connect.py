import asyncio
import logging
from typing import Optional

import asyncpg

from utils import settings

logger = logging.getLogger(__name__)

# Global connection pool, created on first use
_pool: Optional[asyncpg.Pool] = None
_pool_lock = asyncio.Lock()


def is_db_configured() -> bool:
    """Whether enough credentials are present to open a pool"""
    return bool(settings.DB_HOST and settings.DB_NAME and settings.DB_USER)


async def init_db_pool(
    min_size: int = settings.DB_POOL_MIN_SIZE,
    max_size: int = settings.DB_POOL_MAX_SIZE,
    command_timeout: float = settings.DB_COMMAND_TIMEOUT
) -> asyncpg.Pool:
    """
    Initialize async database connection pool

    Concurrent callers share a single initialization: the pool is checked
    again after the lock is taken.

    Args:
        min_size: Minimum number of connections in pool
        max_size: Maximum number of connections in pool
        command_timeout: Command timeout in seconds

    Returns:
        asyncpg.Pool instance

    Raises:
        RuntimeError if database credentials are not configured
    """
    global _pool

    if _pool is not None:
        return _pool

    async with _pool_lock:
        if _pool is not None:
            return _pool

        if not is_db_configured():
            raise RuntimeError("Database credentials are not configured.")

        try:
            _pool = await asyncpg.create_pool(
                host=settings.DB_HOST,
                database=settings.DB_NAME,
                user=settings.DB_USER,
                password=settings.DB_PASSWORD,
                port=settings.DB_PORT,
                min_size=min_size,
                max_size=max_size,
                command_timeout=command_timeout
            )
            logger.info(f"Database pool initialized successfully (min={min_size}, max={max_size})")
            return _pool
        except Exception as e:
            logger.error(f"Error initializing database pool: {e}")
            raise


async def get_db_pool() -> asyncpg.Pool:
    """
    Get the database connection pool, creating it on first use

    Returns:
        asyncpg.Pool instance
    """
    if _pool is None:
        return await init_db_pool()
    return _pool


async def close_db_pool():
    """Close the database connection pool"""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed successfully")


async def test_connection() -> bool:
    """Test database connection"""
    try:
        pool = await get_db_pool()
        async with pool.acquire() as conn:
            result = await conn.fetchval("SELECT 1")
            return result == 1
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        return False
