"""Normalization of raw driver replies into ``NormalizedResponse`` objects.

Each execution mode has its own entry point, and each one accepts only the
reply shape of that mode. The shape is checked at runtime before any field
is read; a mismatch becomes an ``EXECUTION_ERROR`` response. All public
functions are total: they never raise.
"""

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from sp_mcp.models.errors import ResponseShapeError
from sp_mcp.models.procedure import (
    FeedbackRow,
    NormalizedResponse,
    OperationMetadata,
    StatusCode,
)

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Procedure executed successfully"
FAILURE_MESSAGE = "Procedure execution error"
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


def _is_row_list(value: Any) -> bool:
    return (
        isinstance(value, Sequence)
        and not isinstance(value, (str, bytes))
        and all(isinstance(row, Mapping) for row in value)
    )


def _require_rows(value: Any, part: str) -> list[dict[str, Any]]:
    if not _is_row_list(value):
        raise ResponseShapeError(
            f"{part} must be a list of rows, got {type(value).__name__}",
            details={"part": part, "received_type": type(value).__name__},
        )
    return [dict(row) for row in value]


def _require_metadata(value: Any, part: str) -> OperationMetadata:
    if isinstance(value, OperationMetadata):
        return value
    if not isinstance(value, Mapping):
        raise ResponseShapeError(
            f"{part} must be a mapping, got {type(value).__name__}",
            details={"part": part, "received_type": type(value).__name__},
        )
    return OperationMetadata.model_validate(dict(value))


def _destructure_generic(
    raw: Any,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]], OperationMetadata | None]:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)) or len(raw) != 3:
        raise ResponseShapeError(
            "Generic reply must be [data_rows, feedback_rows, operation_metadata]",
            details={"received_type": type(raw).__name__},
        )
    data_part, feedback_part, metadata_part = raw
    data_rows = _require_rows(data_part, "data_rows")
    feedback_rows = [] if feedback_part is None else _require_rows(feedback_part, "feedback_rows")
    metadata = None if metadata_part is None else _require_metadata(metadata_part, "operation_metadata")
    return data_rows, feedback_rows, metadata


def _describe(err: Exception) -> str:
    return str(err) or type(err).__name__


def format_generic(raw: Any) -> NormalizedResponse:
    """Format the reply of a procedure returning data, feedback and metadata.

    Args:
        raw: Driver reply ``[data_rows, feedback_rows, operation_metadata]``.

    Returns:
        NormalizedResponse: When a feedback row exists, success is
        ``feedback.error_id == 0``. Without one the call always counts as
        successful, since reaching this point means no exception was raised.
    """
    try:
        data_rows, feedback_rows, metadata = _destructure_generic(raw)
        feedback = FeedbackRow.model_validate(feedback_rows[0]) if feedback_rows else None
    except (ResponseShapeError, PydanticValidationError) as e:
        logger.warning("Procedure reply could not be formatted: %s", _describe(e))
        return NormalizedResponse(
            success=False,
            status_code=StatusCode.EXECUTION_ERROR,
            message=f"Failed to format procedure response: {_describe(e)}",
            data=[],
            record_count=0,
        )

    success = feedback.is_success if feedback is not None else True
    message = (feedback.message if feedback is not None else "") or (
        SUCCESS_MESSAGE if success else FAILURE_MESSAGE
    )

    return NormalizedResponse(
        success=success,
        status_code=StatusCode.SUCCESS if success else StatusCode.PROCEDURE_ERROR,
        message=message,
        data=data_rows,
        feedback=feedback,
        operation_result=metadata,
        record_count=len(data_rows),
    )


def format_data_only(rows: Any) -> NormalizedResponse:
    """Format the reply of a procedure that returns a flat row list.

    This mode cannot express a procedure-level failure; only a raised
    execution error, handled upstream, or a malformed reply yields a failure.
    """
    try:
        data_rows = _require_rows(rows, "rows")
    except ResponseShapeError as e:
        return format_error(f"Failed to format procedure response: {e.message}")

    return NormalizedResponse(
        success=True,
        status_code=StatusCode.SUCCESS,
        message=SUCCESS_MESSAGE,
        data=data_rows,
        record_count=len(data_rows),
    )


def format_modify(meta: Any) -> NormalizedResponse:
    """Format the metadata reply of a modifying procedure.

    Success means at least one row was affected; otherwise the response
    carries ``NOT_FOUND``.
    """
    try:
        metadata = _require_metadata(meta, "operation_metadata")
    except (ResponseShapeError, PydanticValidationError) as e:
        return format_error(f"Failed to format procedure response: {_describe(e)}")

    affected = metadata.affected_rows
    success = affected > 0
    return NormalizedResponse(
        success=success,
        status_code=StatusCode.SUCCESS if success else StatusCode.NOT_FOUND,
        message=(
            f"Operation completed successfully. {affected} row(s) affected"
            if success
            else "No rows affected"
        ),
        data=metadata,
        operation_result=metadata,
        record_count=affected,
    )


def format_error(
    error: BaseException | str,
    status_code: int = StatusCode.EXECUTION_ERROR,
) -> NormalizedResponse:
    """Build a failure response from an exception or message.

    Args:
        error: Exception caught upstream, or a message.
        status_code: Status code to report. Must not be ``SUCCESS``.
    """
    if isinstance(error, BaseException):
        message = str(error) or UNKNOWN_ERROR_MESSAGE
    else:
        message = error or UNKNOWN_ERROR_MESSAGE
    if status_code == StatusCode.SUCCESS:
        status_code = StatusCode.EXECUTION_ERROR

    return NormalizedResponse(
        success=False,
        status_code=status_code,
        message=message,
        data=None,
        record_count=0,
    )


def format_for_display(response: NormalizedResponse) -> str:
    """Render a response as a multi-section text dump for logs and debugging."""
    lines = [
        "=== PROCEDURE RESULT ===",
        f"Status: {'SUCCESS' if response.success else 'ERROR'}",
        f"Code: {response.status_code}",
        f"Message: {response.message}",
        f"Records: {response.record_count}",
    ]

    if response.feedback is not None:
        lines.append("=== PROCEDURE FEEDBACK ===")
        lines.append(f"Return ID: {response.feedback.return_id}")
        lines.append(f"Error ID: {response.feedback.error_id}")
        lines.append(f"Message: {response.feedback.message}")

    if isinstance(response.data, list) and response.data:
        lines.append("=== RETURNED DATA ===")
        lines.append(json.dumps(response.data, indent=2, default=str))

    if response.operation_result is not None:
        lines.append("=== OPERATION RESULT ===")
        lines.append(f"Affected Rows: {response.operation_result.affected_rows}")
        lines.append(f"Insert ID: {response.operation_result.insert_id}")

    return "\n".join(lines)


def to_compact_json(response: NormalizedResponse) -> str:
    """Summarize a response as a single-line JSON object."""
    compact = {
        "success": response.success,
        "status": response.status_code,
        "message": response.message,
        "records": response.record_count,
        "hasData": response.data is not None and response.record_count > 0,
        "hasFeedback": response.feedback is not None,
    }
    return json.dumps(compact)


def extract_data(response: NormalizedResponse) -> Any:
    """Return the response data on success, ``None`` otherwise."""
    return response.data if response.success else None


def has_success_with_data(response: NormalizedResponse) -> bool:
    return response.success and response.record_count > 0


def get_error_message(response: NormalizedResponse) -> str | None:
    return None if response.success else response.message
