"""Service layer for the stored-procedure MCP server.

This package validates, sanitizes, executes and normalizes procedure calls.
"""

from sp_mcp.services.call_sanitizer import sanitize_call
from sp_mcp.services.call_validator import (
    extract_procedure_name,
    format_validation_error,
    is_safe_call,
    is_valid_call,
    is_valid_timeout,
    validate_call,
    validate_execution_config,
)
from sp_mcp.services.legacy_adapter import LegacyProcedureAdapter, to_legacy_shape
from sp_mcp.services.procedure_service import ProcedureService
from sp_mcp.services.response_formatter import (
    extract_data,
    format_data_only,
    format_error,
    format_for_display,
    format_generic,
    format_modify,
    get_error_message,
    has_success_with_data,
    to_compact_json,
)

__all__ = [
    "ProcedureService",
    "LegacyProcedureAdapter",
    "to_legacy_shape",
    # Validation
    "is_valid_call",
    "is_safe_call",
    "extract_procedure_name",
    "is_valid_timeout",
    "validate_call",
    "validate_execution_config",
    "format_validation_error",
    "sanitize_call",
    # Formatting
    "format_generic",
    "format_data_only",
    "format_modify",
    "format_error",
    "format_for_display",
    "to_compact_json",
    "extract_data",
    "has_success_with_data",
    "get_error_message",
]
