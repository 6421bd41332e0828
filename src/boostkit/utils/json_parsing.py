"""Helpers for scanning the JSON subset used by boostkit data files.

These functions operate directly on a :class:`~boostkit.utils.cursor.Cursor`
so that callers can interleave JSON fragments with their own grammar.  They
cover strings, ``null``, booleans, arrays and objects; numbers are handled by
:meth:`Cursor.match_float`.  Trailing content after a value is never checked
here.

Collections are visited rather than materialised: :func:`expect_json_array`
and :func:`expect_json_object` hand each index or key to a callback together
with the cursor positioned on the value, and the callback must consume exactly
one value.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TextIO, Union

from ..config import DEFAULT_JSON_LIMITS
from ..errors import BufferOverflowError, EncodingError, ParseError
from .buffers import ExternalBuffer, GrowingBuffer
from .cursor import Cursor

ArrayVisitor = Callable[[int, Cursor], None]
ObjectVisitor = Callable[[str, Cursor], None]
ObjectMatcher = Callable[[str, Cursor], bool]

_QUOTE = 0x22
_BACKSLASH = 0x5C
_WHITESPACE = frozenset(b" \t\r\n")

_ESCAPE_OUT = {
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "\b": "\\b",
    "/": "\\/",
    "\\": "\\\\",
    '"': '\\"',
}

_ESCAPE_IN = {
    ord("t"): 0x09,
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("f"): 0x0C,
    ord("b"): 0x08,
    ord("/"): 0x2F,
    ord("\\"): 0x5C,
    ord('"'): 0x22,
}


# ---------------------------------------------------------------------------
# Whitespace


def skip_json_whitespace(cursor: Cursor) -> None:
    # Most calls land on a token byte; check that before looping.
    if not cursor.at_end() and cursor.peek() not in _WHITESPACE:
        return
    while not cursor.at_end() and (cursor.match_whitespace() or cursor.match_eol()):
        pass


# ---------------------------------------------------------------------------
# Escaping


def _escape_chars(text: str):
    for char in text:
        escaped = _ESCAPE_OUT.get(char)
        if escaped is not None:
            yield escaped
        elif " " <= char < "\x7f":
            yield char
        else:
            raise EncodingError(f"invalid character in JSON string: {char!r}")


def json_escape(text: str) -> str:
    """Return ``text`` as a quoted JSON string.

    Only printable ASCII and the named control escapes can be represented;
    anything else raises :class:`EncodingError`.
    """

    return '"' + "".join(_escape_chars(text)) + '"'


def json_escape_to(text: str, out: TextIO) -> None:
    out.write(json_escape(text))


# ---------------------------------------------------------------------------
# Strings


def from_hex(char: int, cursor: Cursor) -> int:
    if 0x30 <= char <= 0x39:
        return char - 0x30
    if 0x61 <= char <= 0x66:
        return char - 0x61 + 10
    if 0x41 <= char <= 0x46:
        return char - 0x41 + 10
    raise cursor.error(f"invalid hexadecimal: {chr(char)!r}")


def read_hex_u16(cursor: Cursor) -> int:
    code = 0
    for _ in range(4):
        code = (code << 4) | from_hex(cursor.advance(), cursor)
    return code


def read_json_string(
    cursor: Cursor,
    on_byte: Callable[[int], None],
    on_utf16: Callable[[int], None],
) -> None:
    """Scan a quoted string, delivering raw bytes and ``\\u`` code units.

    Plain and simply-escaped bytes go to ``on_byte``; each ``\\uXXXX`` escape
    is decoded to a UTF-16 code unit and passed to ``on_utf16``.
    """

    skip_json_whitespace(cursor)
    cursor.expect_literal(b'"')
    while not cursor.match_literal(b'"'):
        byte = cursor.advance()
        if byte != _BACKSLASH:
            on_byte(byte)
            continue
        escape = cursor.advance()
        if escape == 0x75:  # u
            on_utf16(read_hex_u16(cursor))
            continue
        decoded = _ESCAPE_IN.get(escape)
        if decoded is None:
            raise cursor.error(f"invalid escape sequence: \\{chr(escape)}")
        on_byte(decoded)


def _read_ascii(cursor: Cursor, push: Callable[[int], None]) -> None:
    read_json_string(cursor, push, push)


def expect_json_string_ascii(cursor: Cursor) -> str:
    """Read a string whose characters are all ASCII."""

    result = GrowingBuffer()

    def push(unit: int) -> None:
        if unit > 127:
            raise cursor.error("non-ASCII string character")
        result.append(unit)

    _read_ascii(cursor, push)
    return result.to_str()


def expect_json_string_ascii_permissive(cursor: Cursor, replace_with: str) -> str:
    """Read a string, replacing every non-ASCII unit with ``replace_with``."""

    replacement = ord(replace_with)
    if replacement > 127:
        raise ValueError("replacement character must be ASCII")
    result = GrowingBuffer()

    def push(unit: int) -> None:
        result.append(replacement if unit > 127 else unit)

    _read_ascii(cursor, push)
    return result.to_str()


def expect_json_string_ascii_into(
    cursor: Cursor, storage: Union[bytearray, memoryview], max_length: int
) -> Optional[int]:
    """Read an ASCII string into ``storage``.

    Returns the number of bytes written, or ``None`` when the string is longer
    than ``max_length``.  The string is still consumed in that case so the
    caller may carry on with the next token.
    """

    result = ExternalBuffer(storage, max_length)
    overflowed = False

    def push(unit: int) -> None:
        nonlocal overflowed
        if unit > 127:
            raise cursor.error("non-ASCII string character")
        if overflowed:
            return
        try:
            result.append(unit)
        except BufferOverflowError:
            overflowed = True

    _read_ascii(cursor, push)
    if overflowed:
        return None
    return len(result)


def expect_json_string(cursor: Cursor) -> str:
    """Read a string, decoding UTF-8 bytes and ``\\u`` escapes.

    Surrogate pairs written as two ``\\u`` escapes are combined; a lone
    surrogate is kept as-is.
    """

    result = GrowingBuffer()
    pending: List[int] = []

    def flush_pending() -> None:
        if pending:
            result.extend(chr(pending.pop()).encode("utf-8", "surrogatepass"))

    def push_byte(byte: int) -> None:
        flush_pending()
        result.append(byte)

    def push_unit(unit: int) -> None:
        if 0xDC00 <= unit <= 0xDFFF and pending:
            high = pending.pop()
            code = 0x10000 + ((high - 0xD800) << 10) + (unit - 0xDC00)
            result.extend(chr(code).encode("utf-8"))
            return
        flush_pending()
        if 0xD800 <= unit <= 0xDBFF:
            pending.append(unit)
        else:
            result.extend(chr(unit).encode("utf-8", "surrogatepass"))

    start = cursor.offset
    read_json_string(cursor, push_byte, push_unit)
    flush_pending()
    try:
        return result.to_str("utf-8", "surrogatepass")
    except UnicodeDecodeError as exc:
        raise cursor.error(f"invalid UTF-8 in string starting at offset {start}") from exc


def match_json_string(cursor: Cursor) -> Optional[str]:
    """Probe for an ASCII string; ``None`` leaves the cursor untouched."""

    with cursor.checkpoint() as token:
        try:
            value = expect_json_string_ascii(cursor)
        except ParseError:
            return None
        token.commit()
        return value


def match_json_null(cursor: Cursor) -> bool:
    with cursor.checkpoint() as token:
        skip_json_whitespace(cursor)
        if cursor.match_literal(b"null"):
            token.commit()
            return True
        return False


def expect_json_bool(cursor: Cursor) -> bool:
    skip_json_whitespace(cursor)
    if cursor.match_literal(b"true"):
        return True
    if cursor.match_literal(b"false"):
        return False
    raise cursor.error("expected bool (true or false)")


# ---------------------------------------------------------------------------
# Collections


def expect_json_array(cursor: Cursor, on_entry: ArrayVisitor) -> None:
    skip_json_whitespace(cursor)
    if cursor.match_literal(b"null"):
        return
    cursor.expect_literal(b"[")
    skip_json_whitespace(cursor)
    if cursor.match_literal(b"]"):
        return
    index = 0
    while True:
        skip_json_whitespace(cursor)
        on_entry(index, cursor)
        index += 1
        skip_json_whitespace(cursor)
        if not cursor.match_literal(b","):
            break
    skip_json_whitespace(cursor)
    cursor.expect_literal(b"]")


def _expect_members(
    cursor: Cursor,
    read_key: Callable[[Cursor], str],
    on_entry: ObjectVisitor,
) -> None:
    skip_json_whitespace(cursor)
    if cursor.match_literal(b"null"):
        return
    cursor.expect_literal(b"{")
    skip_json_whitespace(cursor)
    if cursor.match_literal(b"}"):
        return
    while True:
        skip_json_whitespace(cursor)
        key = read_key(cursor)
        skip_json_whitespace(cursor)
        cursor.expect_literal(b":")
        skip_json_whitespace(cursor)
        on_entry(key, cursor)
        skip_json_whitespace(cursor)
        if not cursor.match_literal(b","):
            break
    skip_json_whitespace(cursor)
    cursor.expect_literal(b"}")


def expect_json_object(cursor: Cursor, on_entry: ObjectVisitor) -> None:
    _expect_members(cursor, expect_json_string_ascii, on_entry)


def expect_json_object_ascii(
    cursor: Cursor,
    on_entry: ObjectVisitor,
    max_key_length: int = DEFAULT_JSON_LIMITS.max_key_length,
) -> None:
    """Like :func:`expect_json_object` with keys bounded to ``max_key_length``."""

    key_storage = bytearray(max_key_length)

    def read_key(cursor: Cursor) -> str:
        start = cursor.offset
        written = expect_json_string_ascii_into(cursor, key_storage, max_key_length)
        if written is None:
            raise cursor.error(
                f"JSON key starting at offset {start} is longer than "
                f"{max_key_length} bytes"
            )
        return key_storage[:written].decode("ascii")

    _expect_members(cursor, read_key, on_entry)


def match_json_object(cursor: Cursor, on_entry: ObjectMatcher) -> bool:
    """Probe for an object, visiting members while they keep matching.

    Returns ``False`` and restores the cursor when the input is not an object
    or when ``on_entry`` returns ``False``.  Errors raised by ``on_entry``
    propagate after the cursor has been restored.
    """

    with cursor.checkpoint() as token:
        skip_json_whitespace(cursor)
        if cursor.match_literal(b"null"):
            token.commit()
            return True
        if not cursor.match_literal(b"{"):
            return False
        skip_json_whitespace(cursor)
        if not cursor.match_literal(b"}"):
            while True:
                skip_json_whitespace(cursor)
                key = match_json_string(cursor)
                if key is None:
                    return False
                skip_json_whitespace(cursor)
                if not cursor.match_literal(b":"):
                    return False
                skip_json_whitespace(cursor)
                if not on_entry(key, cursor):
                    return False
                skip_json_whitespace(cursor)
                if not cursor.match_literal(b","):
                    break
            skip_json_whitespace(cursor)
            if not cursor.match_literal(b"}"):
                return False
        token.commit()
        return True


# ---------------------------------------------------------------------------
# Generic values


def expect_json(cursor: Cursor) -> Any:
    """Parse one value into Python objects (``dict``, ``list``, ``str`` ...)."""

    skip_json_whitespace(cursor)
    if cursor.at_end():
        raise cursor.error("expected JSON value")
    head = cursor.peek()
    if head == _QUOTE:
        return expect_json_string(cursor)
    if cursor.match_literal(b"null"):
        return None
    if cursor.match_literal(b"true"):
        return True
    if cursor.match_literal(b"false"):
        return False
    if head == ord("["):
        items: List[Any] = []
        expect_json_array(cursor, lambda index, inner: items.append(expect_json(inner)))
        return items
    if head == ord("{"):
        members: Dict[str, Any] = {}

        def on_member(key: str, inner: Cursor) -> None:
            members[key] = expect_json(inner)

        expect_json_object(cursor, on_member)
        return members
    start = cursor.offset
    number = cursor.match_float()
    if number is None:
        raise cursor.error(f"unexpected character {chr(head)!r} in JSON value")
    text = cursor.consumed_since(start)
    if text.lstrip(b"+-").isdigit():
        return int(text)
    return number


__all__ = [
    "expect_json",
    "expect_json_array",
    "expect_json_bool",
    "expect_json_object",
    "expect_json_object_ascii",
    "expect_json_string",
    "expect_json_string_ascii",
    "expect_json_string_ascii_into",
    "expect_json_string_ascii_permissive",
    "from_hex",
    "json_escape",
    "json_escape_to",
    "match_json_null",
    "match_json_object",
    "match_json_string",
    "read_hex_u16",
    "read_json_string",
    "skip_json_whitespace",
]
