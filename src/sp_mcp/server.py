"""FastMCP server exposing stored-procedure execution tools.

Tools:
- ``execute_procedure``: run a ``CALL`` string in a chosen execution mode and
  return the normalized response plus a readable dump.
- ``validate_procedure``: dry-run validation that never touches the database.

The lifespan context loads settings, configures logging and metrics, and
owns the ``ConnectionManager`` whose pools are opened lazily.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from sp_mcp.config.settings import get_settings
from sp_mcp.db.manager import ConnectionManager
from sp_mcp.models.errors import SpMcpError
from sp_mcp.models.procedure import ExecutionConfig, ExecutionMode, StatusCode
from sp_mcp.observability.logging import configure_logging
from sp_mcp.observability.metrics import metrics
from sp_mcp.services.call_validator import validate_call, validate_execution_config
from sp_mcp.services.response_formatter import format_error, format_for_display

logger = logging.getLogger(__name__)

_manager: ConnectionManager | None = None

EXAMPLE_REQUEST = {
    "procedure": "CALL sp_check_if_cpf_exists_V2(1, 1, 1, 29014, UNIX_TIMESTAMP())",
    "mode": "generic",
}


def _error(code: str, message: str, **details: Any) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Set up and tear down server-wide resources."""
    global _manager

    settings = get_settings()
    configure_logging(
        level=settings.observability.log_level,
        log_format=settings.observability.log_format,
    )

    if settings.observability.metrics_enabled:
        metrics.start_metrics_server(settings.observability.metrics_port)
        logger.info("Metrics server listening on port %d", settings.observability.metrics_port)

    manager = ConnectionManager(settings.procedure)
    manager.register_database(settings.database, set_as_default=True)
    _manager = manager
    logger.info("Server ready, default database %s", settings.database.safe_dsn)

    try:
        yield
    finally:
        logger.info("Shutting down, closing connection pools")
        await manager.close_all()
        _manager = None


mcp = FastMCP("sp-mcp", lifespan=lifespan)


async def execute_procedure(
    procedure: str,
    mode: str = "generic",
    database: str | None = None,
    timeout_ms: int | None = None,
) -> dict[str, Any]:
    """Execute a stored procedure call and return the normalized response.

    Args:
        procedure: Full call string, e.g. ``CALL sp_get_all_users()``.
        mode: Execution mode: ``generic``, ``data`` or ``modify``.
        database: Registered database name; the default one if omitted.
        timeout_ms: Optional execution timeout, at most 300000 ms.

    Returns:
        dict: ``{success, procedure, mode, result, formattedResult}`` or
        ``{success: False, error}`` when the request itself is malformed.
    """
    if _manager is None:
        return _error("SERVER_NOT_INITIALIZED", "Server is not initialized")

    if not isinstance(procedure, str) or not procedure.strip():
        return _error(
            "INVALID_PARAMETER",
            "Parameter 'procedure' is required and must be a string",
            example=EXAMPLE_REQUEST,
        )

    try:
        execution_mode = ExecutionMode(mode)
    except ValueError:
        return _error(
            "INVALID_PARAMETER",
            f"Invalid mode '{mode}'. Use one of: {', '.join(m.value for m in ExecutionMode)}",
        )

    config_errors = validate_execution_config(
        ExecutionConfig(mode=execution_mode, timeout_ms=timeout_ms),
        max_timeout_ms=_manager.procedure_config.max_timeout_ms,
    )
    if config_errors:
        response = format_error("; ".join(config_errors), StatusCode.TIMEOUT)
    else:
        try:
            service = await _manager.get_service(database)
        except (ValueError, SpMcpError) as e:
            logger.error("Could not obtain procedure service: %s", e)
            return _error("DATABASE_UNAVAILABLE", str(e), database=database)
        response = await service.execute(procedure, execution_mode)

    return {
        "success": True,
        "procedure": procedure.strip(),
        "mode": execution_mode.value,
        "result": response.to_contract(),
        "formattedResult": format_for_display(response),
    }


async def validate_procedure(procedure: str, timeout_ms: int | None = None) -> dict[str, Any]:
    """Validate a stored procedure call without executing it.

    Returns:
        dict: ``{isValid, isSafe, procedureName, errors}``.
    """
    settings = get_settings()
    report = validate_call(procedure, timeout_ms, max_timeout_ms=settings.procedure.max_timeout_ms)
    return report.model_dump(mode="json", by_alias=True)


mcp.tool()(execute_procedure)
mcp.tool()(validate_procedure)
