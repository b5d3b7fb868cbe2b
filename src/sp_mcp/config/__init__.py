"""Configuration management module."""

from sp_mcp.config.settings import (
    MAX_TIMEOUT_MS,
    DatabaseConfig,
    ObservabilityConfig,
    ProcedureConfig,
    Settings,
    get_settings,
    reset_settings,
)

__all__ = [
    "MAX_TIMEOUT_MS",
    "DatabaseConfig",
    "ObservabilityConfig",
    "ProcedureConfig",
    "Settings",
    "get_settings",
    "reset_settings",
]
