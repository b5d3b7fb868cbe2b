"""Stored-procedure MCP server.

Executes ``CALL procedure(args)`` strings against a database and normalizes
every reply into a single success/error/data contract.
"""

__version__ = "0.1.0"

from sp_mcp.config.settings import Settings, get_settings
from sp_mcp.models.errors import (
    DatabaseError,
    ErrorCode,
    ExecutionTimeoutError,
    SpMcpError,
)
from sp_mcp.models.procedure import (
    ExecutionMode,
    FeedbackRow,
    LegacyResult,
    NormalizedResponse,
    OperationMetadata,
    StatusCode,
    ValidationReport,
)
from sp_mcp.services.legacy_adapter import LegacyProcedureAdapter, to_legacy_shape
from sp_mcp.services.procedure_service import ProcedureService

__all__ = [
    "__version__",
    # Config
    "Settings",
    "get_settings",
    # Models
    "ExecutionMode",
    "FeedbackRow",
    "LegacyResult",
    "NormalizedResponse",
    "OperationMetadata",
    "StatusCode",
    "ValidationReport",
    # Services
    "ProcedureService",
    "LegacyProcedureAdapter",
    "to_legacy_shape",
    # Errors
    "SpMcpError",
    "DatabaseError",
    "ExecutionTimeoutError",
    "ErrorCode",
]
