"""Observability module for the stored-procedure MCP server.

This module provides:
- Prometheus metrics collection
- Structured logging with sensitive data masking
- Request id propagation

Example:
    >>> from sp_mcp.observability import configure_logging, metrics, request_context
    >>>
    >>> configure_logging(level="INFO", log_format="json")
    >>> async with request_context() as request_id:
    ...     metrics.increment_procedure_call(mode="generic", status="success")
"""

from sp_mcp.observability.logging import (
    JSONFormatter,
    SensitiveDataFilter,
    TextFormatter,
    configure_logging,
    get_logger,
)
from sp_mcp.observability.metrics import MetricsCollector, metrics
from sp_mcp.observability.tracing import (
    TracingLogger,
    generate_request_id,
    get_request_id,
    get_tracing_logger,
    request_context,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "metrics",
    # Logging
    "configure_logging",
    "get_logger",
    "JSONFormatter",
    "TextFormatter",
    "SensitiveDataFilter",
    # Tracing
    "request_context",
    "generate_request_id",
    "get_request_id",
    "TracingLogger",
    "get_tracing_logger",
]
