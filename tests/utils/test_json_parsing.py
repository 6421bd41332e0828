"""Tests for the JSON subset scanner."""

from __future__ import annotations

import io

import pytest

from boostkit.errors import EncodingError, ParseError
from boostkit.utils.cursor import Cursor
from boostkit.utils import json_parsing as jp


def test_skip_whitespace_is_idempotent_and_safe_at_end() -> None:
    cursor = Cursor(" \t\r\n\r x")

    jp.skip_json_whitespace(cursor)
    offset = cursor.offset
    jp.skip_json_whitespace(cursor)

    assert cursor.offset == offset == 6
    end = Cursor("")
    jp.skip_json_whitespace(end)
    assert end.offset == 0


def test_json_escape_named_escapes() -> None:
    assert jp.json_escape('a"b\\c/d\te\nf\rg\fh\bi') == (
        '"a\\"b\\\\c\\/d\\te\\nf\\rg\\fh\\bi"'
    )


@pytest.mark.parametrize("text", ["\x00", "\x1f", "\x7f", "é"])
def test_json_escape_rejects_unescapable_characters(text: str) -> None:
    with pytest.raises(EncodingError):
        jp.json_escape(text)


def test_json_escape_to_stream() -> None:
    out = io.StringIO()

    jp.json_escape_to("hi", out)

    assert out.getvalue() == '"hi"'


@pytest.mark.parametrize(
    "text",
    [
        "",
        "plain",
        'quote " and backslash \\',
        "slash / tab \t newline \n cr \r ff \f bs \b",
        "".join(chr(c) for c in range(32, 127)),
    ],
)
def test_escape_then_scan_round_trip(text: str) -> None:
    assert jp.expect_json_string_ascii(Cursor(jp.json_escape(text))) == text


def test_read_json_string_splits_bytes_and_utf16_units() -> None:
    raw: list[int] = []
    units: list[int] = []

    jp.read_json_string(Cursor(r'  "a\u00e9\n"'), raw.append, units.append)

    assert raw == [ord("a"), ord("\n")]
    assert units == [0xE9]


def test_invalid_hex_names_the_character() -> None:
    with pytest.raises(ParseError, match="'g'"):
        jp.expect_json_string_ascii(Cursor(r'"\u00g0"'))


def test_invalid_escape_sequence() -> None:
    with pytest.raises(ParseError, match="escape"):
        jp.expect_json_string_ascii(Cursor(r'"\q"'))


def test_unterminated_string() -> None:
    with pytest.raises(ParseError):
        jp.expect_json_string_ascii(Cursor('"abc'))


def test_ascii_string_rejects_non_ascii_units() -> None:
    with pytest.raises(ParseError, match="non-ASCII"):
        jp.expect_json_string_ascii(Cursor(r'"caf\u00e9"'))
    with pytest.raises(ParseError, match="non-ASCII"):
        jp.expect_json_string_ascii(Cursor('"café"'))


def test_permissive_string_replaces_non_ascii_units() -> None:
    cursor = Cursor('"caf\\u00e9 \xc3\xa9"'.encode("latin-1"))

    assert jp.expect_json_string_ascii_permissive(cursor, "?") == "caf? ??"


def test_bounded_string_reports_overflow_without_raising() -> None:
    storage = bytearray(4)

    cursor = Cursor('"abcd" "abcde" next')
    assert jp.expect_json_string_ascii_into(cursor, storage, 4) == 4
    assert bytes(storage) == b"abcd"
    assert jp.expect_json_string_ascii_into(cursor, storage, 4) is None
    jp.skip_json_whitespace(cursor)
    assert cursor.match_literal("next")


def test_full_string_decoding() -> None:
    cursor = Cursor('"caf\\u00e9 \\ud83d\\ude00 \xc3\xa9"'.encode("latin-1"))

    assert jp.expect_json_string(cursor) == "café \U0001F600 é"


def test_match_json_string_leaves_cursor_on_miss() -> None:
    cursor = Cursor('  "key" rest')
    assert jp.match_json_string(cursor) == "key"
    assert cursor.offset == 7

    for text in ["  nope", '  "unterminated', r'  "bad \x"', r'"é"']:
        failing = Cursor(text)
        assert jp.match_json_string(failing) is None
        assert failing.offset == 0


def test_match_json_null() -> None:
    cursor = Cursor("  null")
    assert jp.match_json_null(cursor)
    assert cursor.at_end()

    failing = Cursor("  nul")
    assert not jp.match_json_null(failing)
    assert failing.offset == 0


def test_expect_json_bool() -> None:
    cursor = Cursor(" true false maybe")

    assert jp.expect_json_bool(cursor) is True
    assert jp.expect_json_bool(cursor) is False
    with pytest.raises(ParseError):
        jp.expect_json_bool(cursor)


def test_object_and_nested_array_traversal() -> None:
    cursor = Cursor('{"a": 1, "b": [2, 3]}')
    visited: list[tuple[str, int]] = []
    nested: list[tuple[int, float]] = []

    def on_member(key: str, inner: Cursor) -> None:
        visited.append((key, inner.offset))
        if key == "a":
            inner.expect_float()
        else:
            jp.expect_json_array(
                inner, lambda index, item: nested.append((index, item.expect_float()))
            )

    jp.expect_json_object(cursor, on_member)

    assert visited == [("a", 6), ("b", 14)]
    assert nested == [(0, 2.0), (1, 3.0)]
    assert cursor.at_end()


@pytest.mark.parametrize("text", ["null", "  null ", "[]", "[ ]", "{}", "{ \n}"])
def test_null_and_empty_collections_visit_nothing(text: str) -> None:
    calls: list[object] = []

    if text.strip().startswith("{") or text.strip() == "null":
        jp.expect_json_object(Cursor(text), lambda key, inner: calls.append(key))
    if text.strip().startswith("[") or text.strip() == "null":
        jp.expect_json_array(Cursor(text), lambda index, inner: calls.append(index))

    assert calls == []


def test_expect_json_array_errors() -> None:
    with pytest.raises(ParseError):
        jp.expect_json_array(Cursor("{}"), lambda index, inner: None)
    with pytest.raises(ParseError):
        jp.expect_json_array(Cursor("[1 2]"), lambda index, inner: inner.expect_float())


def test_expect_json_object_requires_colon() -> None:
    with pytest.raises(ParseError):
        jp.expect_json_object(Cursor('{"a" 1}'), lambda key, inner: inner.expect_float())


def test_expect_json_object_ascii_bounds_keys() -> None:
    keys: list[str] = []

    jp.expect_json_object_ascii(
        Cursor('{"abc": null}'),
        lambda key, inner: keys.append(key) or jp.match_json_null(inner),
        max_key_length=3,
    )

    assert keys == ["abc"]
    with pytest.raises(ParseError, match="longer than 3"):
        jp.expect_json_object_ascii(
            Cursor('{"abcd": null}'),
            lambda key, inner: jp.match_json_null(inner),
            max_key_length=3,
        )


def test_match_json_object_success() -> None:
    seen: dict[str, float] = {}

    def on_member(key: str, inner: Cursor) -> bool:
        value = inner.match_float()
        if value is None:
            return False
        seen[key] = value
        return True

    cursor = Cursor('{"x": 1, "y": 2} tail')
    assert jp.match_json_object(cursor, on_member)
    assert seen == {"x": 1.0, "y": 2.0}
    assert cursor.offset == 16


@pytest.mark.parametrize(
    "text",
    [
        "[1]",
        '{"x": 1',
        '{"x" 1}',
        "{x: 1}",
        '{"x": "no"}',
        '{"x": 1,}',
    ],
)
def test_match_json_object_failure_restores_cursor(text: str) -> None:
    cursor = Cursor(text)

    matched = jp.match_json_object(cursor, lambda key, inner: inner.match_float() is not None)

    assert not matched
    assert cursor.offset == 0


def test_match_json_object_propagates_visitor_errors_after_rollback() -> None:
    cursor = Cursor('{"x": 1}')

    def on_member(key: str, inner: Cursor) -> bool:
        inner.expect_literal("true")
        return True

    with pytest.raises(ParseError):
        jp.match_json_object(cursor, on_member)
    assert cursor.offset == 0


def test_expect_json_builds_python_values() -> None:
    text = '{"name": "tree", "depth": 3, "rate": 0.5, "tags": ["a", null, true], "x": {}}'

    assert jp.expect_json(Cursor(text)) == {
        "name": "tree",
        "depth": 3,
        "rate": 0.5,
        "tags": ["a", None, True],
        "x": {},
    }


def test_expect_json_rejects_garbage() -> None:
    with pytest.raises(ParseError):
        jp.expect_json(Cursor("@"))
    with pytest.raises(ParseError):
        jp.expect_json(Cursor("   "))
