"""Unit tests for logging, tracing and metrics helpers."""

import json
import logging

import pytest
from prometheus_client import REGISTRY

from sp_mcp.observability.logging import JSONFormatter, SensitiveDataFilter, TextFormatter
from sp_mcp.observability.metrics import MetricsCollector, metrics
from sp_mcp.observability.tracing import TracingLogger, get_request_id, request_context


def _record(msg: str, *args: object, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("sp_mcp.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSensitiveDataFilter:
    """Tests for SensitiveDataFilter."""

    def test_masks_hash_literals_in_message(self) -> None:
        record = _record("Executing CALL sp_auth_sign_in(1, 'a@b.c', MD5('hunter2'))")
        SensitiveDataFilter().filter(record)
        assert "hunter2" not in record.getMessage()
        assert "MD5('***')" in record.getMessage()

    def test_masks_hash_literals_in_args(self) -> None:
        record = _record("Executing procedure call: %s", "CALL sp_x(sha1( 'pw' ))")
        SensitiveDataFilter().filter(record)
        assert "'pw'" not in record.getMessage()

    def test_redacts_sensitive_extra_keys(self) -> None:
        record = _record("connecting", password="secret", context={"api_key": "k", "db": "store"})
        SensitiveDataFilter().filter(record)

        assert record.password == "***REDACTED***"
        assert record.context == {"api_key": "***REDACTED***", "db": "store"}

    def test_leaves_plain_calls_alone(self) -> None:
        record = _record("CALL sp_get_user(1, 'alice')")
        assert SensitiveDataFilter().filter(record)
        assert record.getMessage() == "CALL sp_get_user(1, 'alice')"


class TestFormatters:
    """Tests for JSON and text formatters."""

    def test_json_formatter(self) -> None:
        record = _record("done %d", 3, request_id="req-1", procedure="sp_x")
        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "done 3"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-1"
        assert data["extra"] == {"procedure": "sp_x"}

    def test_text_formatter_context(self) -> None:
        record = _record("done", request_id="req-1", procedure="sp_x", mode="generic")
        text = TextFormatter().format(record)

        assert "[INFO] sp_mcp.test - done" in text
        assert text.endswith("[request_id=req-1 procedure=sp_x mode=generic]")


class TestTracing:
    """Tests for request context propagation."""

    @pytest.mark.asyncio
    async def test_request_context_sets_and_resets(self) -> None:
        assert get_request_id() is None
        async with request_context() as request_id:
            assert get_request_id() == request_id
        assert get_request_id() is None

    @pytest.mark.asyncio
    async def test_nested_context_reuses_id(self) -> None:
        async with request_context("outer") as outer:
            async with request_context() as inner:
                assert inner == outer == "outer"

    @pytest.mark.asyncio
    async def test_tracing_logger_adds_request_id(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = TracingLogger("sp_mcp.test")

        with caplog.at_level(logging.INFO, logger="sp_mcp.test"):
            async with request_context("req-42"):
                logger.info("Procedure call finished", extra={"procedure": "sp_x"})

        record = caplog.records[-1]
        assert record.request_id == "req-42"
        assert record.procedure == "sp_x"


class TestMetricsCollector:
    """Tests for the metrics singleton."""

    def test_singleton(self) -> None:
        assert MetricsCollector() is metrics

    def test_counters_increment(self) -> None:
        labels = {"mode": "modify", "status": "not_found"}
        before = REGISTRY.get_sample_value("sp_mcp_procedure_calls_total", labels) or 0.0

        metrics.increment_procedure_call(mode="modify", status="not_found")

        assert REGISTRY.get_sample_value("sp_mcp_procedure_calls_total", labels) == before + 1
