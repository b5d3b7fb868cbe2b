"""Unit tests for procedure call sanitization."""

import pytest

from sp_mcp.services.call_sanitizer import sanitize_call, strip_comments


class TestSanitizeCall:
    """Tests for sanitize_call."""

    def test_collapses_whitespace(self) -> None:
        assert sanitize_call("CALL  foo( 1,\n 2 )") == "CALL foo( 1, 2 )"

    def test_trims_ends(self) -> None:
        assert sanitize_call("\n   CALL foo()\t \n") == "CALL foo()"

    def test_strips_line_comments(self) -> None:
        raw = """
            CALL sp_check_if_cpf_exists_V2 (
              1, -- PE_SYSTEM_CLIENT_ID INT,
              1, -- PE_STORE_ID INT,
              29014 --  PE_USER_ID INT
            )"""
        assert sanitize_call(raw) == "CALL sp_check_if_cpf_exists_V2 ( 1, 1, 29014 )"

    def test_strips_block_comments(self) -> None:
        assert sanitize_call("CALL foo(/* first */ 1, /* multi\nline */ 2)") == "CALL foo( 1, 2)"

    def test_comment_joined_after_block_removal(self) -> None:
        assert strip_comments("CALL foo(1) -/**/- tail") == "CALL foo(1) "

    def test_unterminated_block_comment_is_kept(self) -> None:
        assert sanitize_call("CALL foo(1) /* open") == "CALL foo(1) /* open"

    @pytest.mark.parametrize(
        "raw",
        [
            "CALL  foo( 1,\n 2 )",
            "CALL foo(1) -/**/- x\nCALL bar()",
            "  CALL a(/* x */1) -- y\n",
            "CALL foo(1) /* open",
            "",
        ],
    )
    def test_idempotent(self, raw: str) -> None:
        once = sanitize_call(raw)
        assert sanitize_call(once) == once

    def test_never_longer_than_comment_stripped_input(self) -> None:
        raw = "CALL   foo(1,   2) -- note\n/* block */"
        assert len(sanitize_call(raw)) <= len(strip_comments(raw))
