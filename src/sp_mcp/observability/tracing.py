"""Request tracing and context propagation.

Each procedure call runs inside a request context whose id is attached to
every log record emitted through a ``TracingLogger``.
"""

import contextvars
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def generate_request_id() -> str:
    """Generate a unique UUID4-based request ID."""
    return str(uuid.uuid4())


def get_request_id() -> str | None:
    """Get the current request ID from context, or None if not set."""
    return _request_id_var.get()


@asynccontextmanager
async def request_context(request_id: str | None = None) -> AsyncIterator[str]:
    """Context manager for request tracing.

    Reuses the id of an enclosing context when one exists and no explicit
    id is given, so nested service calls share one request id.

    Args:
        request_id: Optional request ID.

    Yields:
        The request ID for this context.

    Example:
        >>> async with request_context() as req_id:
        ...     await service.execute_generic("CALL sp_get_users()")
    """
    if request_id is None:
        request_id = get_request_id() or generate_request_id()

    token = _request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        _request_id_var.reset(token)


class TracingLogger:
    """Logger wrapper that automatically includes the current request ID.

    Example:
        >>> logger = TracingLogger(__name__)
        >>> async with request_context():
        ...     logger.info("Executing procedure", extra={"procedure": "sp_get_users"})
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        extra = dict(kwargs.pop("extra", None) or {})
        request_id = get_request_id()

        if request_id and "request_id" not in extra:
            extra["request_id"] = request_id

        kwargs["extra"] = extra
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an error message with traceback."""
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)


def get_tracing_logger(name: str) -> TracingLogger:
    """Get a tracing logger instance."""
    return TracingLogger(name)
