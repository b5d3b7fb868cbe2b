"""Validation of raw procedure call strings.

A procedure call is accepted only when it has the form ``CALL name(args)``.
The safety check is a coarse deny-list scan: any listed keyword or comment
marker found after the leading ``CALL`` token rejects the call, including
false positives such as a quoted surname containing ``Grant``.

None of the functions in this module raise; they return booleans or ``None``.
"""

import json
import re
from typing import Any

from sp_mcp.config.settings import MAX_TIMEOUT_MS
from sp_mcp.models.procedure import ExecutionConfig, ValidationReport

CALL_PREFIX = "CALL "

DENIED_TOKENS: tuple[str, ...] = (
    "DROP",
    "DELETE",
    "UPDATE",
    "INSERT",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "GRANT",
    "REVOKE",
    "--",
    "/*",
    "*/",
)

_PROCEDURE_NAME_RE = re.compile(r"^CALL\s+([A-Za-z_][A-Za-z0-9_]*)", re.IGNORECASE)


def is_valid_call(raw: Any) -> bool:
    """Check that ``raw`` starts with the ``CALL `` token (case-insensitive).

    Args:
        raw: Candidate call string. Non-string input is invalid.

    Returns:
        bool: True if the trimmed string begins with ``CALL `` followed by text.
    """
    if not raw or not isinstance(raw, str):
        return False
    return raw.strip().upper().startswith(CALL_PREFIX)


def extract_procedure_name(raw: Any) -> str | None:
    """Extract the procedure identifier that follows ``CALL``.

    Example:
        >>> extract_procedure_name("CALL sp_check_cpf(1,2)")
        'sp_check_cpf'
        >>> extract_procedure_name("SELECT 1") is None
        True
    """
    if not is_valid_call(raw):
        return None
    match = _PROCEDURE_NAME_RE.match(raw.strip())
    return match.group(1) if match else None


def find_denied_tokens(raw: Any) -> list[str]:
    """Return the deny-listed tokens present after the leading ``CALL`` token."""
    if not is_valid_call(raw):
        return []
    body = raw.strip()[len(CALL_PREFIX.rstrip()) :].upper()
    return [token for token in DENIED_TOKENS if token in body]


def is_safe_call(raw: Any) -> bool:
    """Check that a valid call contains no deny-listed keyword or comment marker.

    Invalid calls are never considered safe.
    """
    if not is_valid_call(raw):
        return False
    return not find_denied_tokens(raw)


def is_valid_timeout(timeout_ms: Any) -> bool:
    """Check a caller-supplied timeout in milliseconds.

    ``None`` means "no timeout requested" and is valid. Otherwise the value
    must be a positive number not exceeding five minutes.
    """
    if timeout_ms is None:
        return True
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)):
        return False
    return 0 < timeout_ms <= MAX_TIMEOUT_MS


def validate_execution_config(
    config: ExecutionConfig | None,
    max_timeout_ms: int = MAX_TIMEOUT_MS,
) -> list[str]:
    """Validate execution options, returning human-readable errors (empty if valid)."""
    errors: list[str] = []
    if config is None:
        return errors

    ceiling = min(max_timeout_ms, MAX_TIMEOUT_MS)
    timeout_ms = config.timeout_ms
    if not is_valid_timeout(timeout_ms) or (timeout_ms is not None and timeout_ms > ceiling):
        errors.append(f"Timeout must be a positive number up to {ceiling}ms")

    return errors


def validate_call(
    raw: Any,
    timeout_ms: Any = None,
    max_timeout_ms: int = MAX_TIMEOUT_MS,
) -> ValidationReport:
    """Dry-run validation of a call string and an optional timeout.

    Args:
        raw: Procedure call string.
        timeout_ms: Optional execution timeout to check against the ceiling.
        max_timeout_ms: Configured ceiling, never above five minutes.

    Returns:
        ValidationReport: Validity, safety, procedure name and the
        human-readable errors collected along the way.
    """
    errors: list[str] = []

    is_valid = is_valid_call(raw)
    if not is_valid:
        errors.append("Invalid call format. Use: CALL sp_name(params)")

    is_safe = is_safe_call(raw)
    if not is_safe:
        denied = find_denied_tokens(raw)
        if denied:
            errors.append(f"Call contains disallowed commands: {', '.join(denied)}")
        else:
            errors.append("Call contains disallowed commands")

    ceiling = min(max_timeout_ms, MAX_TIMEOUT_MS)
    if timeout_ms is not None and (not is_valid_timeout(timeout_ms) or timeout_ms > ceiling):
        errors.append(
            format_validation_error("timeout_ms", timeout_ms, f"must be a positive number up to {ceiling}ms")
        )

    return ValidationReport(
        is_valid=is_valid,
        is_safe=is_safe,
        procedure_name=extract_procedure_name(raw),
        errors=errors,
    )


def format_validation_error(field: str, value: Any, reason: str) -> str:
    """Format a validation failure message for a single field.

    Example:
        >>> format_validation_error("timeout_ms", -1, "must be positive")
        "Validation failed for 'timeout_ms': must be positive. Received value: -1"
    """
    return f"Validation failed for '{field}': {reason}. Received value: {json.dumps(value, default=str)}"
