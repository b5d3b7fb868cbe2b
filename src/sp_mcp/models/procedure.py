"""Procedure call and normalized response models.

This module defines the data models that cross the boundary of the
stored-procedure execution layer: execution modes, status codes, the optional
feedback row emitted by procedures, driver operation metadata and the
normalized response contract returned for every call.
"""

from collections.abc import Mapping, Sequence
from enum import IntEnum, StrEnum
from typing import Any, TypeAlias

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Row: TypeAlias = Mapping[str, Any]

# Reply of the driver collaborator. Its concrete shape depends on the
# execution mode and is checked at runtime by the response formatter.
RawResultSets: TypeAlias = Sequence[Any] | Mapping[str, Any]


class ExecutionMode(StrEnum):
    """How a procedure reply is shaped and normalized."""

    GENERIC = "generic"  # [data_rows, feedback_rows, operation_metadata]
    DATA_ONLY = "data"  # flat row list
    MODIFY = "modify"  # operation metadata only


class StatusCode(IntEnum):
    """Stable status codes exposed in every normalized response."""

    SUCCESS = 100200
    VALIDATION_ERROR = 100400
    NOT_FOUND = 100404
    TIMEOUT = 100408
    PROCEDURE_ERROR = 100422
    EXECUTION_ERROR = 100500


class _ContractModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FeedbackRow(_ContractModel):
    """Single-row resultset some procedures emit to report their outcome.

    The database columns are named ``sp_return_id``, ``sp_message`` and
    ``sp_error_id``; camelCase and snake_case keys are accepted as well.
    """

    return_id: int = Field(
        ...,
        validation_alias=AliasChoices("sp_return_id", "returnId", "return_id"),
        description="Identifier of the record affected by the procedure",
    )
    message: str = Field(
        default="",
        validation_alias=AliasChoices("sp_message", "message"),
        description="Procedure message",
    )
    error_id: int = Field(
        ...,
        validation_alias=AliasChoices("sp_error_id", "errorId", "error_id"),
        description="Procedure error id, 0 means success",
    )

    @field_validator("return_id", mode="before")
    @classmethod
    def null_return_id(cls, v: Any) -> Any:
        """A NULL return id means no record was identified."""
        return 0 if v is None else v

    @field_validator("message", mode="before")
    @classmethod
    def null_message(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_success(self) -> bool:
        return self.error_id == 0


class OperationMetadata(_ContractModel):
    """Statement metadata reported by the driver."""

    field_count: int = Field(default=0, ge=0)
    affected_rows: int = Field(default=0, ge=0)
    insert_id: int = Field(default=0, ge=0)
    info: str = Field(default="")
    server_status: int = Field(default=0)
    warning_status: int = Field(default=0)
    changed_rows: int = Field(default=0, ge=0)


class NormalizedResponse(_ContractModel):
    """Uniform success/error/data contract returned for every procedure call."""

    success: bool = Field(..., description="Whether the call succeeded")
    status_code: int = Field(..., description="Status code, see StatusCode")
    message: str = Field(..., description="Human-readable outcome message")
    data: Any = Field(default=None, description="Rows, operation metadata or None")
    feedback: FeedbackRow | None = Field(default=None, description="Procedure feedback row")
    operation_result: OperationMetadata | None = Field(
        default=None, description="Driver statement metadata"
    )
    record_count: int = Field(default=0, ge=0, description="Rows returned or affected")

    @model_validator(mode="after")
    def check_success_status(self) -> "NormalizedResponse":
        """A successful response always carries the SUCCESS status code."""
        if self.success and self.status_code != StatusCode.SUCCESS:
            raise ValueError(
                f"Successful response must use status code {StatusCode.SUCCESS.value}, "
                f"got {self.status_code}"
            )
        return self

    def to_contract(self) -> dict[str, Any]:
        """Dump the response with camelCase keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


class ValidationReport(_ContractModel):
    """Result of a dry-run validation of a procedure call."""

    is_valid: bool
    is_safe: bool
    procedure_name: str | None = None
    errors: list[str] = Field(default_factory=list)


class LegacyResult(_ContractModel):
    """Flat result shape consumed by pre-existing callers."""

    status_code: int
    message: str
    record_id: int = 0
    data: Any = None
    quantity: int = 0


class ExecutionConfig(BaseModel):
    """Caller-supplied execution options for a procedure call."""

    mode: ExecutionMode = Field(default=ExecutionMode.GENERIC)
    timeout_ms: int | None = Field(default=None, description="Execution timeout in milliseconds")
