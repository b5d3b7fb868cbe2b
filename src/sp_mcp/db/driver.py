"""Driver collaborators that execute sanitized procedure calls.

The procedure service depends only on the ``ProcedureDriver`` protocol. The
asyncpg implementation below shapes each reply the way the response
formatter expects for its execution mode.
"""

import asyncio
import datetime
import decimal
import logging
import uuid
from typing import Any, Protocol, runtime_checkable

import asyncpg
from asyncpg import Connection, Pool

from sp_mcp.config.settings import ProcedureConfig
from sp_mcp.models.errors import DatabaseError, ExecutionTimeoutError
from sp_mcp.models.procedure import ExecutionMode

logger = logging.getLogger(__name__)

# Columns that mark a row as the procedure feedback row.
FEEDBACK_COLUMNS = frozenset({"sp_return_id", "sp_message", "sp_error_id"})


@runtime_checkable
class ProcedureDriver(Protocol):
    """Executes a procedure call string and returns the raw reply."""

    async def execute(self, query: str) -> Any:
        """Execute ``query``; raise on any database-level error."""
        ...


def parse_status_tag(status: str | None) -> dict[str, Any]:
    """Build operation metadata from a PostgreSQL command status tag.

    Example:
        >>> parse_status_tag("UPDATE 3")["affectedRows"]
        3
        >>> parse_status_tag("INSERT 0 1")["affectedRows"]
        1
        >>> parse_status_tag("CALL")["affectedRows"]
        0
    """
    parts = (status or "").split()
    affected = int(parts[-1]) if len(parts) > 1 and parts[-1].isdigit() else 0
    return {
        "fieldCount": 0,
        "affectedRows": affected,
        "insertId": 0,
        "info": status or "",
        "serverStatus": 0,
        "warningStatus": 0,
        "changedRows": affected if parts[:1] == ["UPDATE"] else 0,
    }


def serialize_value(value: Any) -> Any:
    """Convert PostgreSQL-specific values to JSON-compatible ones."""
    if value is None:
        return None
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return str(value)
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    return value


def split_feedback(rows: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Separate data rows from rows carrying the feedback columns."""
    data_rows: list[dict[str, Any]] = []
    feedback_rows: list[dict[str, Any]] = []
    for row in rows:
        if FEEDBACK_COLUMNS.issubset(row.keys()):
            feedback_rows.append(row)
        else:
            data_rows.append(row)
    return data_rows, feedback_rows


class AsyncpgProcedureDriver:
    """asyncpg driver bound to the reply shape of one execution mode.

    Example:
        >>> driver = AsyncpgProcedureDriver(pool, reply=ExecutionMode.MODIFY)
        >>> meta = await driver.execute("CALL sp_touch_user(1)")
        >>> meta["affectedRows"]
    """

    def __init__(
        self,
        pool: Pool,
        reply: ExecutionMode = ExecutionMode.GENERIC,
        procedure_config: ProcedureConfig | None = None,
    ) -> None:
        self.pool = pool
        self.reply = reply
        self.procedure_config = procedure_config or ProcedureConfig()

    async def execute(self, query: str) -> Any:
        """Run the call and shape the reply for ``self.reply``.

        Raises:
            ExecutionTimeoutError: If the call exceeds the statement timeout.
            DatabaseError: If the database reports an error.
        """
        timeout = self.procedure_config.statement_timeout
        try:
            async with self.pool.acquire() as connection:
                await self._set_statement_timeout(connection, timeout)
                statement = await connection.prepare(query)
                try:
                    records = await asyncio.wait_for(statement.fetch(), timeout=timeout)
                except TimeoutError as e:
                    raise ExecutionTimeoutError(
                        message=f"Procedure call exceeded timeout of {timeout} seconds",
                        details={"timeout_seconds": timeout, "sql": query[:200]},
                    ) from e
                status = statement.get_statusmsg()
        except ExecutionTimeoutError:
            raise
        except asyncpg.PostgresError as e:
            raise DatabaseError(
                message=f"Procedure call failed: {e!s}",
                details={
                    "error_code": getattr(e, "sqlstate", None),
                    "error_message": str(e),
                    "sql": query[:200],
                },
            ) from e

        rows = [{key: serialize_value(value) for key, value in dict(record).items()} for record in records]
        metadata = parse_status_tag(status)
        metadata["fieldCount"] = len(rows[0]) if rows else 0
        logger.debug("Procedure call returned %d row(s), status %r", len(rows), status)

        if self.reply is ExecutionMode.DATA_ONLY:
            return rows
        if self.reply is ExecutionMode.MODIFY:
            return metadata
        data_rows, feedback_rows = split_feedback(rows)
        return [data_rows, feedback_rows, metadata]

    async def _set_statement_timeout(self, conn: Connection, timeout: float) -> None:
        timeout_ms = int(timeout * 1000)
        try:
            await conn.execute(f"SET statement_timeout = {timeout_ms}")
        except asyncpg.PostgresError as e:
            raise DatabaseError(
                message=f"Failed to set statement timeout: {e!s}",
                details={"error_code": getattr(e, "sqlstate", None), "timeout_ms": timeout_ms},
            ) from e


def build_mode_drivers(
    pool: Pool,
    procedure_config: ProcedureConfig | None = None,
) -> dict[ExecutionMode, ProcedureDriver]:
    """Create one asyncpg driver per execution mode over a shared pool."""
    return {
        mode: AsyncpgProcedureDriver(pool, reply=mode, procedure_config=procedure_config)
        for mode in ExecutionMode
    }
