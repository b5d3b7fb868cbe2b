"""Database connection pool management.

This module provides utilities for creating and closing the asyncpg
connection pools that back the procedure drivers.
"""

import asyncio
import logging

import asyncpg
from asyncpg import Pool

from sp_mcp.config.settings import DatabaseConfig
from sp_mcp.models.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)


async def create_pool(config: DatabaseConfig) -> Pool:
    """Create a connection pool for a single database.

    Args:
        config: Database configuration containing connection parameters
            and pool settings.

    Returns:
        Pool: An asyncpg connection pool instance.

    Raises:
        DatabaseConnectionError: If the pool cannot be created.

    Example:
        >>> config = DatabaseConfig(host="localhost", name="store")
        >>> pool = await create_pool(config)
    """
    try:
        pool = await asyncpg.create_pool(
            host=config.host,
            port=config.port,
            database=config.name,
            user=config.user,
            password=config.password,
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
            timeout=config.pool_timeout,
            command_timeout=config.command_timeout,
        )
    except (asyncpg.PostgresError, OSError) as e:
        raise DatabaseConnectionError(
            message=f"Failed to connect to {config.safe_dsn}: {e!s}",
            details={"database": config.name},
        ) from e

    if pool is None:
        raise DatabaseConnectionError(
            message=f"Failed to create connection pool for {config.name}",
            details={"database": config.name},
        )

    logger.info("Connection pool created for %s", config.safe_dsn)
    return pool


async def close_pools(pools: dict[str, Pool], timeout: float = 10.0) -> None:
    """Close all connection pools, terminating any that do not close in time.

    Args:
        pools: Mapping of database names to pools.
        timeout: Seconds to wait for each graceful close.
    """
    for db_name, pool in pools.items():
        try:
            await asyncio.wait_for(pool.close(), timeout=timeout)
            logger.info("Connection pool for '%s' closed gracefully", db_name)
        except asyncio.TimeoutError:
            logger.warning("Graceful close timed out for '%s', forcing termination", db_name)
            pool.terminate()
        except Exception as e:
            logger.error("Error closing pool for '%s': %s", db_name, e)
            pool.terminate()
