"""
Async database connection pool using asyncpg.

The catalog is read-only from this service's point of view, so a single
primary pool is enough. Catalog queries are short round-trips; the pool
bounds concurrency and recycles idle connections.
"""
from typing import Optional

import asyncpg

from grocery_search.core.logging import get_logger

logger = get_logger(__name__)

_pool: Optional[asyncpg.Pool] = None


async def initialize_database_pool(
    database_url: str,
    min_size: int = 2,
    max_size: int = 10,
    command_timeout: float = 10.0,
) -> bool:
    """
    Initialize the global connection pool.

    Returns:
        True if initialization successful, False otherwise
    """
    global _pool

    try:
        logger.info("db_pool_initializing", url_prefix=database_url.split("@")[-1][:40])
        _pool = await asyncpg.create_pool(
            database_url,
            min_size=min_size,
            max_size=max_size,
            max_inactive_connection_lifetime=600,
            command_timeout=command_timeout,
        )
        logger.info("db_pool_initialized", min_size=min_size, max_size=max_size)
        return True

    except (asyncpg.PostgresError, OSError) as e:
        logger.error(
            "db_pool_initialization_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        _pool = None
        return False


async def close_database_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool:
        try:
            await _pool.close()
            logger.info("db_pool_closed")
        except Exception as e:
            logger.error("db_pool_close_failed", error=str(e), error_type=type(e).__name__)
        finally:
            _pool = None


def get_pool() -> Optional[asyncpg.Pool]:
    """Get the global pool (None until initialized or after a failed init)."""
    return _pool
