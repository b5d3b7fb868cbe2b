"""Sanitization of validated procedure call strings."""

import re

_LINE_COMMENT_RE = re.compile(r"--.*$", re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def strip_comments(raw: str) -> str:
    """Remove ``--`` line comments and ``/* ... */`` block comments.

    Stripping repeats until nothing changes, since removing a block comment
    can join two dashes into a new line comment (``-/**/-``).
    """
    previous = None
    stripped = raw
    while stripped != previous:
        previous = stripped
        stripped = _LINE_COMMENT_RE.sub("", stripped)
        stripped = _BLOCK_COMMENT_RE.sub("", stripped)
    return stripped


def sanitize_call(raw: str) -> str:
    """Strip comments, collapse whitespace runs to one space and trim.

    The call is expected to have passed validation already; no safety check
    is repeated here. The function is idempotent.

    Example:
        >>> sanitize_call("CALL  foo( 1,\\n 2 )")
        'CALL foo( 1, 2 )'
    """
    return _WHITESPACE_RE.sub(" ", strip_comments(raw)).strip()
