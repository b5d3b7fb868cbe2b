"""Pytest configuration and shared fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import os
from typing import Any
from unittest.mock import AsyncMock

import pytest

from sp_mcp.config.settings import reset_settings
from sp_mcp.services.procedure_service import ProcedureService


@pytest.fixture(autouse=True)
def reset_config() -> None:
    """Reset global settings before each test."""
    reset_settings()


@pytest.fixture(autouse=True)
def disable_metrics_for_tests():
    """Disable metrics for tests to avoid port conflicts."""
    os.environ["OBSERVABILITY_METRICS_ENABLED"] = "false"
    yield
    if "OBSERVABILITY_METRICS_ENABLED" in os.environ:
        del os.environ["OBSERVABILITY_METRICS_ENABLED"]


@pytest.fixture
def generic_reply() -> list[Any]:
    """Driver reply of a procedure emitting data, feedback and metadata."""
    return [
        [{"id": 1, "name": "Alice"}],
        [{"sp_return_id": 5, "sp_message": "ok", "sp_error_id": 0}],
        {"fieldCount": 0, "affectedRows": 1, "insertId": 0, "info": "", "serverStatus": 2},
    ]


@pytest.fixture
def driver() -> AsyncMock:
    """Driver collaborator double."""
    mock = AsyncMock()
    mock.execute = AsyncMock(return_value=[[], [], {"affectedRows": 0}])
    return mock


@pytest.fixture
def service(driver: AsyncMock) -> ProcedureService:
    """Procedure service wired to the driver double."""
    return ProcedureService(driver=driver)
