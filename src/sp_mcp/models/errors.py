"""Custom exceptions and error codes for the stored-procedure MCP server.

These exceptions are raised by the infrastructure layer (driver, pool,
configuration). The procedure service never lets them escape: every one of
them is folded into a ``NormalizedResponse`` by the response formatter.
"""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the application."""

    INTERNAL_ERROR = "internal_error"
    DATABASE_ERROR = "database_error"
    DATABASE_CONNECTION_ERROR = "database_connection_error"
    EXECUTION_TIMEOUT = "execution_timeout"
    RESPONSE_SHAPE_ERROR = "response_shape_error"


class ErrorDetail:
    """Structured error detail information."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize error detail.

        Args:
            code: Error code identifier.
            message: Human-readable error message.
            details: Optional additional context.
        """
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"ErrorDetail(code={self.code}, message={self.message!r})"


class SpMcpError(Exception):
    """Base exception for all stored-procedure server errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize base error.

        Args:
            message: Human-readable error message.
            code: Error code identifier.
            details: Optional additional context.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_error_detail(self) -> ErrorDetail:
        """Convert exception to ErrorDetail."""
        return ErrorDetail(code=self.code, message=self.message, details=self.details)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code}, message={self.message!r})"


class DatabaseError(SpMcpError):
    """Raised for database operation failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize database error.

        Args:
            message: Error message describing database failure.
            details: Optional database error details (sqlstate, call text).
        """
        super().__init__(message=message, code=ErrorCode.DATABASE_ERROR, details=details)


class DatabaseConnectionError(SpMcpError):
    """Raised when a database connection cannot be established."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCode.DATABASE_CONNECTION_ERROR, details=details)


class ExecutionTimeoutError(SpMcpError):
    """Raised when a procedure call exceeds the driver statement timeout."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCode.EXECUTION_TIMEOUT, details=details)


class ResponseShapeError(SpMcpError):
    """Raised when a driver reply does not match the expected resultset shape."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize response shape error.

        Args:
            message: Description of the mismatch.
            details: Optional context (expected shape, received type).
        """
        super().__init__(message=message, code=ErrorCode.RESPONSE_SHAPE_ERROR, details=details)
