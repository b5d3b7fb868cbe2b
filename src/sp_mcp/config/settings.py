"""Configuration management for the stored-procedure MCP server.

This module defines all configuration settings using Pydantic for validation
and type safety. Configuration is loaded from environment variables with
sensible defaults.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sp_mcp.models.procedure import ExecutionMode

# Hard ceiling for caller-supplied execution timeouts (5 minutes).
MAX_TIMEOUT_MS = 300_000


class DatabaseConfig(BaseSettings):
    """PostgreSQL database connection configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    name: str = Field(default="postgres", description="Database name")
    user: str = Field(default="postgres", description="Database user")
    password: str = Field(default="", description="Database password")

    # Connection pool settings
    min_pool_size: int = Field(default=2, ge=1, le=100, description="Minimum pool size")
    max_pool_size: int = Field(default=10, ge=1, le=100, description="Maximum pool size")
    pool_timeout: float = Field(
        default=30.0, ge=1.0, le=300.0, description="Pool acquire timeout in seconds"
    )
    command_timeout: float = Field(
        default=60.0, ge=1.0, le=300.0, description="Command execution timeout in seconds"
    )

    @property
    def dsn(self) -> str:
        """Build PostgreSQL DSN connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"

    @property
    def safe_dsn(self) -> str:
        """Build DSN with masked password for logging."""
        return f"postgresql://{self.user}:***@{self.host}:{self.port}/{self.name}"


class ProcedureConfig(BaseSettings):
    """Procedure execution configuration."""

    model_config = SettingsConfigDict(env_prefix="PROCEDURE_")

    max_timeout_ms: int = Field(
        default=MAX_TIMEOUT_MS,
        ge=1,
        le=MAX_TIMEOUT_MS,
        description="Largest execution timeout a caller may request, in milliseconds",
    )
    default_mode: ExecutionMode = Field(
        default=ExecutionMode.GENERIC, description="Execution mode used when none is given"
    )
    statement_timeout: float = Field(
        default=30.0, ge=1.0, le=300.0, description="Server-side statement timeout in seconds"
    )
    record_id_fields: list[str] = Field(
        default_factory=lambda: ["USER_ID", "id", "ID", "user_id", "record_id", "ID_RECORD"],
        description="Row fields the legacy adapter reads a record id from, in order",
    )

    @field_validator("record_id_fields", mode="before")
    @classmethod
    def parse_comma_separated_list(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated string or list."""
        if isinstance(v, str):
            return [f.strip() for f in v.split(",") if f.strip()]
        return v


class ObservabilityConfig(BaseSettings):
    """Observability and monitoring configuration."""

    model_config = SettingsConfigDict(env_prefix="OBSERVABILITY_")

    metrics_enabled: bool = Field(default=True, description="Enable Prometheus metrics")
    metrics_port: int = Field(
        default=9090, ge=1024, le=65535, description="Metrics HTTP server port"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "text"] = Field(default="text", description="Log format")


class Settings(BaseSettings):
    """Main application settings aggregating all config sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    procedure: ProcedureConfig = Field(default_factory=ProcedureConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings: The global settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset global settings instance. Useful for testing."""
    global _settings
    _settings = None
