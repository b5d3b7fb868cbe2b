"""Procedure execution service.

This module provides the ``ProcedureService`` class, which runs a procedure
call through validation, sanitization, driver execution and response
formatting. Every public execution method is total: any failure, including
an exception raised by the driver, is returned as a failed
``NormalizedResponse`` instead of being raised.
"""

import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from sp_mcp.config.settings import ProcedureConfig
from sp_mcp.models.procedure import (
    ExecutionMode,
    NormalizedResponse,
    StatusCode,
    ValidationReport,
)
from sp_mcp.observability.metrics import MetricsCollector
from sp_mcp.observability.tracing import TracingLogger, request_context
from sp_mcp.services import response_formatter
from sp_mcp.services.call_sanitizer import sanitize_call
from sp_mcp.services.call_validator import (
    extract_procedure_name,
    find_denied_tokens,
    is_safe_call,
    is_valid_call,
    validate_call,
)

if TYPE_CHECKING:
    from sp_mcp.db.driver import ProcedureDriver

logger = TracingLogger(__name__)

INVALID_CALL_MESSAGE = "Invalid procedure call. Use the format: CALL sp_name(params)"
UNSAFE_CALL_MESSAGE = "Procedure call contains disallowed commands"

_FORMATTERS: dict[ExecutionMode, Callable[[Any], NormalizedResponse]] = {
    ExecutionMode.GENERIC: response_formatter.format_generic,
    ExecutionMode.DATA_ONLY: response_formatter.format_data_only,
    ExecutionMode.MODIFY: response_formatter.format_modify,
}


def _status_label(response: NormalizedResponse) -> str:
    try:
        return StatusCode(response.status_code).name.lower()
    except ValueError:
        return str(response.status_code)


class ProcedureService:
    """Executes stored procedure calls and normalizes their replies.

    The pipeline for one call is: validate syntax, check safety (generic
    mode only), sanitize, execute through the driver, format. The service
    keeps no state between calls beyond its collaborators.

    Example:
        >>> service = ProcedureService(driver)
        >>> response = await service.execute_generic("CALL sp_check_cpf(1, 2)")
        >>> if response.success:
        ...     print(response.record_count)
    """

    def __init__(
        self,
        driver: "ProcedureDriver",
        mode_drivers: Mapping[ExecutionMode, "ProcedureDriver"] | None = None,
        procedure_config: ProcedureConfig | None = None,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        """Initialize procedure service.

        Args:
            driver: Driver collaborator used for every execution mode.
            mode_drivers: Optional per-mode drivers overriding ``driver``, for
                drivers whose reply shape is fixed per mode.
            procedure_config: Procedure execution settings.
            metrics_collector: Optional metrics collector.
        """
        self.driver = driver
        self.mode_drivers = dict(mode_drivers or {})
        self.procedure_config = procedure_config or ProcedureConfig()
        self.metrics = metrics_collector

    async def execute_generic(self, call: str) -> NormalizedResponse:
        """Execute a procedure that returns data rows, a feedback row and metadata."""
        return await self._run(call, ExecutionMode.GENERIC)

    async def execute_data_only(self, call: str) -> NormalizedResponse:
        """Execute a procedure that returns a flat list of rows."""
        return await self._run(call, ExecutionMode.DATA_ONLY)

    async def execute_modify(self, call: str) -> NormalizedResponse:
        """Execute a modifying procedure; success means rows were affected."""
        return await self._run(call, ExecutionMode.MODIFY)

    async def execute(self, call: str, mode: ExecutionMode | str | None = None) -> NormalizedResponse:
        """Execute a call in the given mode (the configured default if None)."""
        if mode is None:
            mode = self.procedure_config.default_mode
        try:
            mode = ExecutionMode(mode)
        except ValueError:
            return response_formatter.format_error(
                f"Unknown execution mode '{mode}'", StatusCode.VALIDATION_ERROR
            )
        return await self._run(call, mode)

    def validate_only(self, call: str, timeout_ms: int | float | None = None) -> ValidationReport:
        """Validate a call without executing it; the driver is never touched."""
        return validate_call(call, timeout_ms, max_timeout_ms=self.procedure_config.max_timeout_ms)

    def format_for_display(self, response: NormalizedResponse) -> str:
        """Render a response as readable text for logs."""
        return response_formatter.format_for_display(response)

    async def _run(self, call: str, mode: ExecutionMode) -> NormalizedResponse:
        async with request_context():
            start = time.perf_counter()
            response = await self._pipeline(call, mode)
            if self.metrics is not None:
                self.metrics.increment_procedure_call(mode=mode.value, status=_status_label(response))
                self.metrics.observe_procedure_duration(mode.value, time.perf_counter() - start)
            return response

    async def _pipeline(self, call: str, mode: ExecutionMode) -> NormalizedResponse:
        procedure = extract_procedure_name(call)
        log_extra = {"procedure": procedure, "mode": mode.value}

        if not is_valid_call(call):
            logger.warning("Rejected procedure call: invalid syntax", extra=log_extra)
            self._reject("invalid_syntax")
            return response_formatter.format_error(INVALID_CALL_MESSAGE, StatusCode.VALIDATION_ERROR)

        # Only the generic path checks safety.
        if mode is ExecutionMode.GENERIC and not is_safe_call(call):
            logger.warning(
                "Rejected procedure call: disallowed commands %s",
                find_denied_tokens(call),
                extra=log_extra,
            )
            self._reject("unsafe_call")
            return response_formatter.format_error(UNSAFE_CALL_MESSAGE, StatusCode.VALIDATION_ERROR)

        try:
            sanitized = sanitize_call(call)
            driver = self.mode_drivers.get(mode, self.driver)
            logger.debug("Executing procedure call: %s", sanitized, extra=log_extra)

            driver_start = time.perf_counter()
            raw = await driver.execute(sanitized)
            if self.metrics is not None:
                self.metrics.observe_driver_duration(time.perf_counter() - driver_start)
        except Exception as e:
            logger.error("Procedure execution failed: %s", e, extra=log_extra)
            return response_formatter.format_error(e)

        response = _FORMATTERS[mode](raw)
        logger.info(
            "Procedure call finished with status %s (%d record(s))",
            response.status_code,
            response.record_count,
            extra=log_extra,
        )
        return response

    def _reject(self, reason: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_call_rejected(reason)
