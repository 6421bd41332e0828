"""Token grammar used when features and string values are printed as text.

Printed features end up in line-oriented data files where ``:`` separates a
feature from its value, ``|`` separates groups and whitespace separates
pairs.  A token therefore follows these rules:

* unquoted, with ``:``, ``|``, ``\\``, space and tab escaped by a backslash;
* or, when it starts with ``"``, a quoted string in which ``"`` and ``\\``
  are escaped by a backslash;
* carriage returns and line feeds never appear, escaped or not.
"""

from __future__ import annotations

from typing import Optional

from ..errors import EncodingError
from ..utils.buffers import GrowingBuffer
from ..utils.cursor import Cursor

_QUOTE = 0x22
_BACKSLASH = 0x5C
_LINE_BREAKS = frozenset(b"\r\n")
_TERMINATORS = frozenset(b":| \t\r\n")
_ESCAPED = frozenset(":|\\ \t")


def print_feature_token(text: str) -> str:
    """Render ``text`` as a token that :func:`match_feature_token` reads back."""

    if "\r" in text or "\n" in text:
        raise EncodingError(f"feature text cannot contain line breaks: {text!r}")
    if not text or text.startswith('"'):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return "".join("\\" + char if char in _ESCAPED else char for char in text)


def _match_quoted(cursor: Cursor, result: GrowingBuffer) -> bool:
    cursor.advance()
    while not cursor.at_end():
        byte = cursor.advance()
        if byte == _QUOTE:
            return True
        if byte in _LINE_BREAKS:
            return False
        if byte == _BACKSLASH:
            if cursor.at_end():
                return False
            byte = cursor.advance()
            if byte in _LINE_BREAKS:
                return False
        result.append(byte)
    return False


def _match_unquoted(cursor: Cursor, result: GrowingBuffer) -> bool:
    while not cursor.at_end():
        byte = cursor.peek()
        if byte in _TERMINATORS:
            break
        cursor.advance()
        if byte == _BACKSLASH:
            if cursor.at_end():
                return False
            byte = cursor.advance()
            if byte in _LINE_BREAKS:
                return False
        result.append(byte)
    return len(result) > 0


def match_feature_token(cursor: Cursor) -> Optional[str]:
    """Probe for a token; ``None`` leaves the cursor where it was."""

    if cursor.at_end():
        return None
    result = GrowingBuffer()
    with cursor.checkpoint() as token:
        if cursor.peek() == _QUOTE:
            matched = _match_quoted(cursor, result)
        else:
            matched = _match_unquoted(cursor, result)
        if not matched:
            return None
        try:
            text = result.to_str("utf-8")
        except UnicodeDecodeError:
            return None
        token.commit()
        return text


def expect_feature_token(cursor: Cursor) -> str:
    text = match_feature_token(cursor)
    if text is None:
        raise cursor.error("expected feature token")
    return text


__all__ = ["expect_feature_token", "match_feature_token", "print_feature_token"]
