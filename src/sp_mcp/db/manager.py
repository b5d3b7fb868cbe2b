"""Connection manager for per-database procedure services."""

import asyncio
import logging

from asyncpg import Pool

from sp_mcp.config.settings import DatabaseConfig, ProcedureConfig
from sp_mcp.db.driver import build_mode_drivers
from sp_mcp.db.pool import close_pools, create_pool
from sp_mcp.services.procedure_service import ProcedureService

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages connection pools and procedure services for several databases.

    Each registered database (one per tenant store) gets its own pool, created
    lazily on first use, and its own ``ProcedureService``.
    """

    def __init__(self, procedure_config: ProcedureConfig | None = None) -> None:
        """Initialize connection manager.

        Args:
            procedure_config: Procedure settings shared by every service.
        """
        self.procedure_config = procedure_config or ProcedureConfig()
        self._configs: dict[str, DatabaseConfig] = {}
        self._pools: dict[str, Pool] = {}
        self._services: dict[str, ProcedureService] = {}
        self._default_db: str | None = None
        self._pool_lock = asyncio.Lock()
        self._service_lock = asyncio.Lock()

    @property
    def default_database(self) -> str | None:
        return self._default_db

    def register_database(self, config: DatabaseConfig, set_as_default: bool = False) -> None:
        """Register a database configuration.

        Args:
            config: Database configuration.
            set_as_default: Whether to set this as the default database.
        """
        self._configs[config.name] = config
        if set_as_default or self._default_db is None:
            self._default_db = config.name

    async def get_pool(self, db_name: str) -> Pool:
        """Get or create the connection pool for a database.

        Raises:
            ValueError: If the database is not registered.
            DatabaseConnectionError: If pool creation fails.
        """
        if db_name not in self._configs:
            raise ValueError(f"Database '{db_name}' is not configured")

        if db_name in self._pools:
            return self._pools[db_name]

        async with self._pool_lock:
            if db_name not in self._pools:
                logger.info("Initializing connection pool for '%s'", db_name)
                try:
                    self._pools[db_name] = await create_pool(self._configs[db_name])
                except Exception as e:
                    logger.error("Failed to create pool for '%s': %s", db_name, e)
                    raise

        return self._pools[db_name]

    async def get_service(self, db_name: str | None = None) -> ProcedureService:
        """Get the procedure service for a database, the default one if None.

        Raises:
            ValueError: If the database is unknown or no default is set.
        """
        target_db = db_name or self._default_db
        if not target_db:
            raise ValueError("No database specified and no default database configured")

        if target_db not in self._configs:
            raise ValueError(f"Database '{target_db}' is not configured")

        if target_db in self._services:
            return self._services[target_db]

        async with self._service_lock:
            if target_db not in self._services:
                pool = await self.get_pool(target_db)
                drivers = build_mode_drivers(pool, self.procedure_config)
                self._services[target_db] = ProcedureService(
                    driver=drivers[self.procedure_config.default_mode],
                    mode_drivers=drivers,
                    procedure_config=self.procedure_config,
                )

        return self._services[target_db]

    async def close_all(self) -> None:
        """Close all connection pools."""
        if self._pools:
            try:
                await close_pools(self._pools)
            finally:
                self._pools.clear()
                self._services.clear()
