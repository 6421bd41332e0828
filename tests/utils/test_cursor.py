"""Tests for the backtracking byte cursor."""

from __future__ import annotations

import math
from contextlib import AbstractContextManager

import pytest

from boostkit.errors import ParseError
from boostkit.utils.cursor import Cursor


def test_peek_and_advance_walk_the_input() -> None:
    cursor = Cursor(b"ab")

    assert cursor.peek() == ord("a")
    assert cursor.advance() == ord("a")
    assert cursor.advance() == ord("b")
    assert cursor.at_end()
    with pytest.raises(ParseError):
        cursor.peek()
    with pytest.raises(ParseError):
        cursor.advance()


def test_cursor_accepts_text_and_memoryview() -> None:
    assert Cursor("é").remaining == 2
    assert Cursor(memoryview(b"xyz")).remaining == 3


def test_match_literal_consumes_only_on_success() -> None:
    cursor = Cursor("null, nil")

    assert not cursor.match_literal("nil")
    assert cursor.offset == 0
    assert cursor.match_literal("null")
    assert cursor.offset == 4
    assert cursor.match_literal(ord(","))
    assert not cursor.match_literal(b"  nil  ")
    assert cursor.offset == 5


def test_expect_literal_raises_and_leaves_cursor() -> None:
    cursor = Cursor("abc\ndef")
    cursor.expect_literal("abc\n")

    with pytest.raises(ParseError) as excinfo:
        cursor.expect_literal("xyz")

    assert cursor.offset == 4
    assert excinfo.value.offset == 4
    assert excinfo.value.line == 2
    assert excinfo.value.column == 1
    assert "xyz" in str(excinfo.value)


def test_checkpoint_rolls_back_without_commit() -> None:
    cursor = Cursor("abcdef")

    assert isinstance(cursor.checkpoint(), AbstractContextManager)

    with cursor.checkpoint():
        cursor.expect_literal("abc")
    assert cursor.offset == 0

    with cursor.checkpoint() as token:
        cursor.expect_literal("abc")
        token.commit()
    assert cursor.offset == 3


def test_checkpoint_rolls_back_when_scope_raises() -> None:
    cursor = Cursor("abcdef")

    with pytest.raises(ParseError):
        with cursor.checkpoint():
            cursor.expect_literal("ab")
            cursor.expect_literal("zz")

    assert cursor.offset == 0


def test_nested_checkpoints_restore_their_own_offsets() -> None:
    cursor = Cursor("abcdef")

    with cursor.checkpoint() as outer:
        cursor.advance()
        with cursor.checkpoint():
            cursor.advance()
            cursor.advance()
        assert cursor.offset == 1
        outer.commit()

    assert cursor.offset == 1


def test_whitespace_and_line_endings() -> None:
    cursor = Cursor(" \t\r\nx\ry")

    assert cursor.match_whitespace()
    assert not cursor.match_whitespace()
    assert cursor.match_eol()
    assert cursor.match_literal("x")
    assert cursor.match_eol()
    assert cursor.peek() == ord("y")


@pytest.mark.parametrize(
    "text, expected, consumed",
    [
        ("12", 12.0, 2),
        ("-1.5e3,", -1500.0, 6),
        (".25", 0.25, 3),
        ("3.", 3.0, 2),
        ("7e", 7.0, 1),
        ("+inf", math.inf, 4),
        ("-Infinity", -math.inf, 9),
    ],
)
def test_match_float(text: str, expected: float, consumed: int) -> None:
    cursor = Cursor(text)

    assert cursor.match_float() == expected
    assert cursor.offset == consumed


def test_match_float_nan() -> None:
    assert math.isnan(Cursor("nan").expect_float())


@pytest.mark.parametrize("text", ["", "-", ".", "e5", "abc", "+."])
def test_match_float_miss_leaves_cursor(text: str) -> None:
    cursor = Cursor(text)

    assert cursor.match_float() is None
    assert cursor.offset == 0


def test_int_matching() -> None:
    cursor = Cursor("-42 x")

    assert cursor.expect_int() == -42
    assert cursor.match_int() is None
    assert cursor.offset == 3
    with pytest.raises(ParseError):
        cursor.expect_int()


def test_expect_eof() -> None:
    Cursor("").expect_eof()
    with pytest.raises(ParseError):
        Cursor("x").expect_eof()


def test_error_carries_source_name() -> None:
    cursor = Cursor("abc", name="data.txt")
    cursor.advance()

    error = cursor.error("boom")

    assert error.source == "data.txt"
    assert str(error).startswith("data.txt:1:2")
