"""Prometheus metrics collector for the stored-procedure MCP server.

This module implements metrics collection using prometheus_client, tracking
procedure calls per execution mode and outcome, rejected calls and driver
latency.
"""

from prometheus_client import Counter, Histogram, start_http_server


class MetricsCollector:
    """Centralized metrics collector using Prometheus client.

    Metrics Categories:
    - Procedure metrics: call counts by mode/status and end-to-end duration
    - Security metrics: calls rejected by validation
    - Driver metrics: database execution duration

    Example:
        >>> metrics = MetricsCollector()
        >>> metrics.increment_procedure_call(mode="generic", status="success")
    """

    _instance: "MetricsCollector | None" = None

    def __new__(cls) -> "MetricsCollector":
        """Ensure singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize_metrics()
        return cls._instance

    def _initialize_metrics(self) -> None:
        """Initialize all Prometheus metrics."""
        self.procedure_calls: Counter = Counter(
            "sp_mcp_procedure_calls_total",
            "Total number of procedure calls processed",
            labelnames=["mode", "status"],
        )

        self.procedure_duration: Histogram = Histogram(
            "sp_mcp_procedure_duration_seconds",
            "Procedure call processing duration in seconds",
            labelnames=["mode"],
            buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
        )

        self.calls_rejected: Counter = Counter(
            "sp_mcp_calls_rejected_total",
            "Total number of procedure calls rejected by validation",
            labelnames=["reason"],
        )

        self.driver_duration: Histogram = Histogram(
            "sp_mcp_driver_duration_seconds",
            "Driver execution duration in seconds",
            buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0),
        )

    def start_metrics_server(self, port: int) -> None:
        """Start the Prometheus metrics HTTP server.

        Args:
            port: Port number to listen on for metrics scraping.
        """
        start_http_server(port)

    def increment_procedure_call(self, mode: str, status: str) -> None:
        """Increment procedure call counter.

        Args:
            mode: Execution mode (generic, data, modify).
            status: Outcome (success, procedure_error, validation_error, ...).
        """
        self.procedure_calls.labels(mode=mode, status=status).inc()

    def observe_procedure_duration(self, mode: str, duration: float) -> None:
        self.procedure_duration.labels(mode=mode).observe(duration)

    def increment_call_rejected(self, reason: str) -> None:
        """Increment rejection counter.

        Args:
            reason: Reason for rejection (invalid_syntax, unsafe_call).
        """
        self.calls_rejected.labels(reason=reason).inc()

    def observe_driver_duration(self, duration: float) -> None:
        self.driver_duration.observe(duration)


# Singleton instance
metrics = MetricsCollector()
