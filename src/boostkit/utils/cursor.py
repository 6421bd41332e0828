"""Backtracking cursor over a byte sequence.

The cursor is the primitive every text grammar in boostkit is written against.
It offers two families of operations:

* ``match_*`` probes return ``False``/``None`` when the input does not fit and
  leave the offset exactly where it was, and
* ``expect_*`` operations either consume what they were asked for or raise
  :class:`~boostkit.errors.ParseError`, again without moving the offset.

Multi-step lookahead is expressed with :meth:`Cursor.checkpoint`, a scope
guard that rolls the offset back when it exits without :meth:`Checkpoint.commit`
having been called, including when the scope is left by an exception::

    with cursor.checkpoint() as token:
        key = expect_json_string_ascii(cursor)
        cursor.expect_literal(":")
        token.commit()
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Optional, Tuple, Union

from ..errors import ParseError

BytesLike = Union[bytes, bytearray, memoryview, str]
Literal = Union[bytes, bytearray, str, int]

_SPACE = 0x20
_TAB = 0x09
_LF = 0x0A
_CR = 0x0D
_SIGNS = (0x2B, 0x2D)
_EXPONENTS = (0x45, 0x65)
_SPECIAL_FLOATS = (b"infinity", b"inf", b"nan")


def _as_literal(seq: Literal) -> bytes:
    if isinstance(seq, str):
        return seq.encode("utf-8")
    if isinstance(seq, int):
        return bytes((seq,))
    return bytes(seq)


def _describe(literal: bytes) -> str:
    return literal.decode("latin-1").encode("unicode_escape").decode("ascii")


class Checkpoint(AbstractContextManager["Checkpoint"]):
    """Saved cursor offset restored on scope exit unless committed."""

    __slots__ = ("_cursor", "_offset", "_committed")

    def __init__(self, cursor: "Cursor", offset: int) -> None:
        self._cursor = cursor
        self._offset = offset
        self._committed = False

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(self) -> None:
        """Keep everything consumed since the checkpoint was taken."""

        self._committed = True

    def rollback(self) -> None:
        """Restore the saved offset immediately."""

        self._cursor._offset = self._offset

    def __enter__(self) -> "Checkpoint":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._committed:
            self.rollback()


class Cursor:
    """Read-only view over input bytes with a current offset."""

    __slots__ = ("_data", "_offset", "_end", "name")

    def __init__(self, data: BytesLike, *, name: str = "<input>") -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        view = memoryview(data)
        if view.format != "B" or view.ndim != 1:
            view = view.cast("B")
        self._data = view
        self._offset = 0
        self._end = len(view)
        self.name = name

    # -- Position -------------------------------------------------------

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return self._end - self._offset

    def at_end(self) -> bool:
        return self._offset >= self._end

    def position(self, offset: Optional[int] = None) -> Tuple[int, int]:
        """Return the 1-based ``(line, column)`` of ``offset``."""

        if offset is None:
            offset = self._offset
        consumed = self._data[:offset].tobytes()
        line = consumed.count(b"\n") + 1
        column = offset - (consumed.rfind(b"\n") + 1) + 1
        return line, column

    def consumed_since(self, start: int) -> bytes:
        """Return the bytes between ``start`` and the current offset."""

        return self._data[start : self._offset].tobytes()

    def error(self, message: str) -> ParseError:
        """Build a :class:`ParseError` pointing at the current offset."""

        line, column = self.position()
        return ParseError(
            message,
            offset=self._offset,
            line=line,
            column=column,
            source=self.name,
        )

    def checkpoint(self) -> Checkpoint:
        return Checkpoint(self, self._offset)

    # -- Single bytes ---------------------------------------------------

    def peek(self) -> int:
        """Return the current byte without consuming it."""

        if self._offset >= self._end:
            raise self.error("unexpected end of input")
        return self._data[self._offset]

    def advance(self) -> int:
        """Consume and return the current byte."""

        if self._offset >= self._end:
            raise self.error("unexpected end of input")
        byte = self._data[self._offset]
        self._offset += 1
        return byte

    # -- Literals -------------------------------------------------------

    def match_literal(self, seq: Literal) -> bool:
        literal = _as_literal(seq)
        end = self._offset + len(literal)
        if end > self._end or self._data[self._offset : end] != literal:
            return False
        self._offset = end
        return True

    def expect_literal(self, seq: Literal, message: Optional[str] = None) -> None:
        literal = _as_literal(seq)
        if not self.match_literal(literal):
            raise self.error(message or f"expected '{_describe(literal)}'")

    def _match_caseless(self, word: bytes) -> bool:
        end = self._offset + len(word)
        if end > self._end or self._data[self._offset : end].tobytes().lower() != word:
            return False
        self._offset = end
        return True

    def match_whitespace(self) -> bool:
        """Consume a run of spaces and tabs."""

        start = self._offset
        while self._offset < self._end and self._data[self._offset] in (_SPACE, _TAB):
            self._offset += 1
        return self._offset != start

    def match_eol(self) -> bool:
        """Consume one line ending (``\\n``, ``\\r\\n`` or a lone ``\\r``)."""

        if self._offset >= self._end:
            return False
        byte = self._data[self._offset]
        if byte == _LF:
            self._offset += 1
            return True
        if byte == _CR:
            self._offset += 1
            if self._offset < self._end and self._data[self._offset] == _LF:
                self._offset += 1
            return True
        return False

    def expect_eof(self, message: str = "expected end of input") -> None:
        if not self.at_end():
            raise self.error(message)

    # -- Numbers --------------------------------------------------------

    def _skip_sign(self) -> None:
        if self._offset < self._end and self._data[self._offset] in _SIGNS:
            self._offset += 1

    def _skip_digits(self) -> int:
        start = self._offset
        while self._offset < self._end and 0x30 <= self._data[self._offset] <= 0x39:
            self._offset += 1
        return self._offset - start

    def match_int(self) -> Optional[int]:
        start = self._offset
        with self.checkpoint() as token:
            self._skip_sign()
            if self._skip_digits() == 0:
                return None
            token.commit()
        return int(self.consumed_since(start))

    def expect_int(self) -> int:
        value = self.match_int()
        if value is None:
            raise self.error("expected integer")
        return value

    def match_float(self) -> Optional[float]:
        """Match a decimal number, ``nan`` or ``inf`` with optional sign."""

        start = self._offset
        with self.checkpoint() as token:
            self._skip_sign()
            for word in _SPECIAL_FLOATS:
                if self._match_caseless(word):
                    break
            else:
                digits = self._skip_digits()
                if self.match_literal(b"."):
                    digits += self._skip_digits()
                if digits == 0:
                    return None
                mark = self._offset
                if self._offset < self._end and self._data[self._offset] in _EXPONENTS:
                    self._offset += 1
                    self._skip_sign()
                    if self._skip_digits() == 0:
                        self._offset = mark
            token.commit()
        return float(self.consumed_since(start))

    def expect_float(self) -> float:
        value = self.match_float()
        if value is None:
            raise self.error("expected number")
        return value

    def __repr__(self) -> str:
        return f"Cursor(name={self.name!r}, offset={self._offset}, length={self._end})"


__all__ = ["BytesLike", "Checkpoint", "Cursor"]
