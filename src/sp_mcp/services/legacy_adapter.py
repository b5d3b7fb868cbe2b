"""Projection of normalized responses onto the legacy flat result shape.

Older callers expect ``{statusCode, message, recordId, data, quantity}``.
The normalized response stays canonical; this module only maps it one way.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from sp_mcp.models.procedure import LegacyResult, NormalizedResponse, StatusCode
from sp_mcp.services.procedure_service import ProcedureService

DEFAULT_RECORD_ID_FIELDS: tuple[str, ...] = (
    "USER_ID",
    "id",
    "ID",
    "user_id",
    "record_id",
    "ID_RECORD",
)

PROCESSING_SUCCESS_MESSAGE = "Information processed successfully"
PROCESSING_FAILURE_MESSAGE = "Unable to process the information"


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_record_id(
    response: NormalizedResponse,
    id_fields: Sequence[str] = DEFAULT_RECORD_ID_FIELDS,
) -> int:
    """Pick the record id: feedback return id, then an id-like field of the first row, then 0."""
    if response.feedback is not None:
        return response.feedback.return_id

    data = response.data
    if isinstance(data, list) and data and isinstance(data[0], Mapping):
        first_row = data[0]
        for field in id_fields:
            record_id = _as_int(first_row.get(field))
            if record_id is not None:
                return record_id

    return 0


def to_legacy_shape(
    response: NormalizedResponse,
    id_fields: Sequence[str] = DEFAULT_RECORD_ID_FIELDS,
) -> LegacyResult:
    """Project a normalized response onto the legacy result shape.

    The legacy contract reports success only when the call succeeded and
    identified a record (``record_id > 0``); everything else is reported as
    ``PROCEDURE_ERROR``. An empty message gets a generic one.
    """
    record_id = resolve_record_id(response, id_fields)
    succeeded = response.success and record_id > 0

    message = response.message.strip()
    if not message:
        message = PROCESSING_SUCCESS_MESSAGE if succeeded else PROCESSING_FAILURE_MESSAGE

    return LegacyResult(
        status_code=StatusCode.SUCCESS if succeeded else StatusCode.PROCEDURE_ERROR,
        message=message,
        record_id=record_id,
        data=response.data,
        quantity=response.record_count,
    )


class LegacyProcedureAdapter:
    """Entry point for callers that still consume the legacy result shape.

    Example:
        >>> adapter = LegacyProcedureAdapter(service)
        >>> result = await adapter.execute("CALL sp_auth_sign_in(1, 1, 'a@b.c')")
        >>> result.record_id
    """

    def __init__(self, service: ProcedureService) -> None:
        self.service = service

    async def execute(self, call: str) -> LegacyResult:
        response = await self.service.execute_generic(call)
        return to_legacy_shape(response, self.service.procedure_config.record_id_fields)
