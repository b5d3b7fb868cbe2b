"""Database drivers and connection management.

This package provides the ``ProcedureDriver`` protocol, its asyncpg
implementation and pool management for PostgreSQL.
"""

from sp_mcp.db.driver import AsyncpgProcedureDriver, ProcedureDriver, build_mode_drivers
from sp_mcp.db.manager import ConnectionManager
from sp_mcp.db.pool import close_pools, create_pool

__all__ = [
    "AsyncpgProcedureDriver",
    "ProcedureDriver",
    "build_mode_drivers",
    "ConnectionManager",
    "create_pool",
    "close_pools",
]
