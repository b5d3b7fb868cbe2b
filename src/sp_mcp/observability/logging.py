"""Structured logging configuration for the stored-procedure MCP server.

This module provides JSON or text logging with sanitization of sensitive
data. Call strings are built by interpolating parameters, so hashed password
literals such as ``MD5('secret')`` are masked before a record is emitted.
"""

import json
import logging
import re
import sys
from typing import Any, ClassVar

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "request_id",
    }
)

# Context fields shown inline by the text formatter.
_CONTEXT_FIELDS = ("request_id", "procedure", "mode")


class SensitiveDataFilter(logging.Filter):
    """Filter to sanitize sensitive data from log records.

    Removes or masks:
    - values of password/token-like keys in ``extra`` dicts and args
    - string arguments of hashing functions inside procedure call text

    Example:
        >>> handler = logging.StreamHandler()
        >>> handler.addFilter(SensitiveDataFilter())
    """

    SENSITIVE_KEYS: ClassVar[set[str]] = {
        "password",
        "passwd",
        "pwd",
        "secret",
        "api_key",
        "apikey",
        "token",
        "session_token",
        "access_token",
        "refresh_token",
        "authorization",
    }

    SECRET_LITERAL_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\b(MD5|SHA1|SHA2|PASSWORD|CRYPT)\s*\(\s*'[^']*'",
        re.IGNORECASE,
    )

    def filter(self, record: logging.LogRecord) -> bool:
        """Sanitize the record in place; always lets it through."""
        if isinstance(record.msg, str):
            record.msg = self.mask_literals(record.msg)
        if record.args:
            record.args = self._sanitize_data(record.args)

        for key in list(record.__dict__.keys()):
            if key in _RESERVED_ATTRS:
                continue
            value = record.__dict__[key]
            if key.lower() in self.SENSITIVE_KEYS:
                record.__dict__[key] = "***REDACTED***"
            else:
                record.__dict__[key] = self._sanitize_data(value)

        return True

    def mask_literals(self, text: str) -> str:
        """Mask string arguments of hashing functions.

        Example:
            >>> SensitiveDataFilter().mask_literals("CALL sp_auth(1, MD5('pw'))")
            "CALL sp_auth(1, MD5('***'))"
        """
        return self.SECRET_LITERAL_RE.sub(lambda m: f"{m.group(1)}('***'", text)

    def _sanitize_data(self, data: Any) -> Any:
        if isinstance(data, str):
            return self.mask_literals(data)
        if isinstance(data, dict):
            return {
                key: "***REDACTED***"
                if isinstance(key, str) and key.lower() in self.SENSITIVE_KEYS
                else self._sanitize_data(value)
                for key, value in data.items()
            }
        if isinstance(data, (list, tuple)):
            return type(data)(self._sanitize_data(item) for item in data)
        return data


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Example:
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(JSONFormatter())
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        formatted = (
            f"{self.formatTime(record, self.datefmt)} "
            f"[{record.levelname}] "
            f"{record.name} - "
            f"{record.getMessage()}"
        )

        context = [
            f"{field}={getattr(record, field)}"
            for field in _CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        ]
        if context:
            formatted += f" [{' '.join(context)}]"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def configure_logging(
    level: str = "INFO",
    log_format: str = "json",
    enable_sensitive_filter: bool = True,
) -> None:
    """Configure application logging.

    Logs go to stderr, since stdout carries the MCP stdio transport.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Format type ("json" or "text").
        enable_sensitive_filter: Whether to enable sensitive data filtering.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JSONFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    else:
        formatter = TextFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    if enable_sensitive_filter:
        handler.addFilter(SensitiveDataFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # Reduce noise from third-party libraries
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
