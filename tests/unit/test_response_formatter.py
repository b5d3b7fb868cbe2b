"""Unit tests for response normalization."""

import json
from typing import Any

import pytest

from sp_mcp.models.procedure import NormalizedResponse, OperationMetadata, StatusCode
from sp_mcp.services.response_formatter import (
    FAILURE_MESSAGE,
    SUCCESS_MESSAGE,
    extract_data,
    format_data_only,
    format_error,
    format_for_display,
    format_generic,
    format_modify,
    get_error_message,
    has_success_with_data,
    to_compact_json,
)


class TestFormatGeneric:
    """Tests for format_generic."""

    def test_feedback_success(self) -> None:
        raw = [
            [{"id": 1}],
            [{"returnId": 5, "message": "ok", "errorId": 0}],
            {"affectedRows": 1},
        ]
        response = format_generic(raw)

        assert response.success is True
        assert response.status_code == StatusCode.SUCCESS
        assert response.record_count == 1
        assert response.feedback is not None
        assert response.feedback.return_id == 5
        assert response.message == "ok"
        assert response.data == [{"id": 1}]
        assert response.operation_result == OperationMetadata(affected_rows=1)

    def test_feedback_error(self) -> None:
        raw = [
            [{"id": 1}],
            [{"returnId": 5, "message": "CPF already registered", "errorId": 7}],
            {"affectedRows": 1},
        ]
        response = format_generic(raw)

        assert response.success is False
        assert response.status_code == StatusCode.PROCEDURE_ERROR
        assert response.message == "CPF already registered"
        assert response.feedback.error_id == 7
        assert response.record_count == 1

    def test_database_feedback_column_names(self, generic_reply: list[Any]) -> None:
        response = format_generic(generic_reply)

        assert response.success
        assert response.feedback.return_id == 5
        assert response.feedback.message == "ok"
        assert response.feedback.error_id == 0

    def test_only_first_feedback_row_is_used(self) -> None:
        raw = [
            [],
            [
                {"sp_return_id": 1, "sp_message": "first", "sp_error_id": 0},
                {"sp_return_id": 2, "sp_message": "second", "sp_error_id": 9},
            ],
            {},
        ]
        response = format_generic(raw)
        assert response.success
        assert response.message == "first"

    def test_no_feedback_is_success(self) -> None:
        response = format_generic([[], [], {"affectedRows": 0}])

        assert response.success is True
        assert response.status_code == StatusCode.SUCCESS
        assert response.message == SUCCESS_MESSAGE
        assert response.feedback is None
        assert response.data == []
        assert response.record_count == 0

    def test_empty_feedback_message_falls_back(self) -> None:
        ok = format_generic([[], [{"returnId": 1, "message": "", "errorId": 0}], {}])
        failed = format_generic([[], [{"returnId": 0, "message": "", "errorId": 3}], {}])

        assert ok.message == SUCCESS_MESSAGE
        assert failed.message == FAILURE_MESSAGE

    def test_null_feedback_message_success(self) -> None:
        raw = [[{"id": 1}], [{"sp_return_id": 5, "sp_message": None, "sp_error_id": 0}], {"affectedRows": 0}]
        response = format_generic(raw)

        assert response.success is True
        assert response.status_code == StatusCode.SUCCESS
        assert response.message == SUCCESS_MESSAGE
        assert response.feedback.return_id == 5

    def test_null_feedback_message_error(self) -> None:
        raw = [[], [{"sp_return_id": None, "sp_message": None, "sp_error_id": 7}], {}]
        response = format_generic(raw)

        assert response.success is False
        assert response.status_code == StatusCode.PROCEDURE_ERROR
        assert response.message == FAILURE_MESSAGE
        assert response.feedback.return_id == 0

    def test_missing_metadata_is_allowed(self) -> None:
        response = format_generic([[{"id": 1}, {"id": 2}], None, None])
        assert response.success
        assert response.operation_result is None
        assert response.record_count == 2

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "CALL sp_x()",
            {"affectedRows": 1},
            [[{"id": 1}]],
            [[{"id": 1}], []],
            [[{"id": 1}], [], {}, []],
            [{"id": 1}, [], {}],
            [[1, 2], [], {}],
            [[], "feedback", {}],
            [[], [], 42],
        ],
    )
    def test_malformed_shape(self, raw: Any) -> None:
        response = format_generic(raw)

        assert response.success is False
        assert response.status_code == StatusCode.EXECUTION_ERROR
        assert response.message.startswith("Failed to format procedure response")
        assert response.data == []
        assert response.record_count == 0

    def test_malformed_feedback_row(self) -> None:
        response = format_generic([[], [{"message": "no ids"}], {}])
        assert response.status_code == StatusCode.EXECUTION_ERROR
        assert response.data == []


class TestFormatDataOnly:
    """Tests for format_data_only."""

    def test_rows(self) -> None:
        rows = [{"USER_ID": 1}, {"USER_ID": 2}, {"USER_ID": 3}]
        response = format_data_only(rows)

        assert response.success is True
        assert response.status_code == StatusCode.SUCCESS
        assert response.data == rows
        assert response.record_count == 3
        assert response.feedback is None
        assert response.operation_result is None

    def test_empty_rows_still_succeed(self) -> None:
        response = format_data_only([])
        assert response.success
        assert response.record_count == 0

    def test_non_row_reply(self) -> None:
        response = format_data_only({"affectedRows": 1})
        assert response.success is False
        assert response.status_code == StatusCode.EXECUTION_ERROR
        assert response.data is None


class TestFormatModify:
    """Tests for format_modify."""

    def test_no_rows_affected(self) -> None:
        response = format_modify({"affectedRows": 0, "insertId": 0})

        assert response.success is False
        assert response.status_code == StatusCode.NOT_FOUND
        assert response.record_count == 0
        assert response.message == "No rows affected"

    def test_rows_affected(self) -> None:
        response = format_modify({"fieldCount": 0, "affectedRows": 3, "insertId": 12, "info": ""})

        assert response.success is True
        assert response.status_code == StatusCode.SUCCESS
        assert response.record_count == 3
        assert "3 row(s) affected" in response.message
        assert response.data.insert_id == 12
        assert response.operation_result.affected_rows == 3

    def test_accepts_metadata_model(self) -> None:
        response = format_modify(OperationMetadata(affected_rows=2))
        assert response.record_count == 2

    @pytest.mark.parametrize("meta", [None, [], "UPDATE 1", {"affectedRows": -1}])
    def test_malformed_metadata(self, meta: Any) -> None:
        response = format_modify(meta)
        assert response.success is False
        assert response.status_code == StatusCode.EXECUTION_ERROR


class TestFormatError:
    """Tests for format_error."""

    def test_from_exception(self) -> None:
        response = format_error(RuntimeError("connection refused"))

        assert response.success is False
        assert response.status_code == StatusCode.EXECUTION_ERROR
        assert response.message == "connection refused"
        assert response.data is None
        assert response.feedback is None
        assert response.operation_result is None
        assert response.record_count == 0

    def test_from_string_with_status(self) -> None:
        response = format_error("bad call", StatusCode.VALIDATION_ERROR)
        assert response.status_code == StatusCode.VALIDATION_ERROR
        assert response.message == "bad call"

    def test_empty_message_gets_default(self) -> None:
        assert format_error(ValueError()).message
        assert format_error("").message

    def test_success_code_is_not_allowed(self) -> None:
        response = format_error("oops", StatusCode.SUCCESS)
        assert response.status_code == StatusCode.EXECUTION_ERROR


class TestDisplayHelpers:
    """Tests for display and accessor helpers."""

    def test_format_for_display_sections(self, generic_reply: list[Any]) -> None:
        text = format_for_display(format_generic(generic_reply))

        assert text.startswith("=== PROCEDURE RESULT ===")
        assert "Status: SUCCESS" in text
        assert "Code: 100200" in text
        assert "=== PROCEDURE FEEDBACK ===" in text
        assert "Return ID: 5" in text
        assert "=== RETURNED DATA ===" in text
        assert '"name": "Alice"' in text
        assert "=== OPERATION RESULT ===" in text
        assert "Affected Rows: 1" in text

    def test_format_for_display_error_has_header_only(self) -> None:
        text = format_for_display(format_error("boom"))

        assert "Status: ERROR" in text
        assert "Message: boom" in text
        assert "FEEDBACK" not in text
        assert "RETURNED DATA" not in text
        assert "OPERATION RESULT" not in text

    def test_format_for_display_is_deterministic(self, generic_reply: list[Any]) -> None:
        response = format_generic(generic_reply)
        assert format_for_display(response) == format_for_display(response)

    def test_to_compact_json(self, generic_reply: list[Any]) -> None:
        compact = json.loads(to_compact_json(format_generic(generic_reply)))
        assert compact == {
            "success": True,
            "status": 100200,
            "message": "ok",
            "records": 1,
            "hasData": True,
            "hasFeedback": True,
        }

    def test_accessors(self, generic_reply: list[Any]) -> None:
        ok = format_generic(generic_reply)
        failed = format_error("boom")

        assert extract_data(ok) == [{"id": 1, "name": "Alice"}]
        assert extract_data(failed) is None
        assert has_success_with_data(ok)
        assert not has_success_with_data(format_data_only([]))
        assert get_error_message(ok) is None
        assert get_error_message(failed) == "boom"

    def test_responses_are_immutable(self) -> None:
        response: NormalizedResponse = format_data_only([])
        with pytest.raises(Exception):
            response.success = False  # type: ignore[misc]
