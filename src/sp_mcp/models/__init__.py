"""Data models module."""

from sp_mcp.models.errors import (
    DatabaseConnectionError,
    DatabaseError,
    ErrorCode,
    ErrorDetail,
    ExecutionTimeoutError,
    ResponseShapeError,
    SpMcpError,
)
from sp_mcp.models.procedure import (
    ExecutionConfig,
    ExecutionMode,
    FeedbackRow,
    LegacyResult,
    NormalizedResponse,
    OperationMetadata,
    RawResultSets,
    Row,
    StatusCode,
    ValidationReport,
)

__all__ = [
    # Procedure models
    "ExecutionConfig",
    "ExecutionMode",
    "FeedbackRow",
    "LegacyResult",
    "NormalizedResponse",
    "OperationMetadata",
    "RawResultSets",
    "Row",
    "StatusCode",
    "ValidationReport",
    # Error models
    "ErrorCode",
    "ErrorDetail",
    "SpMcpError",
    "DatabaseError",
    "DatabaseConnectionError",
    "ExecutionTimeoutError",
    "ResponseShapeError",
]
