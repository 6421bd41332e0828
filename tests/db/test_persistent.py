"""Tests for the sequential binary store."""

from __future__ import annotations

import io
import math

import pytest

from boostkit.db.compact_size import encode_compact_size
from boostkit.db.persistent import READ_CHUNK_SIZE, StoreReader, StoreWriter
from boostkit.errors import FormatError, StoreError


def test_primitives_read_back_in_order() -> None:
    writer = StoreWriter()
    writer.write_u8(7)
    writer.write_compact_size(300)
    writer.write_compact_int(-5)
    writer.write_float32(0.5)
    writer.write_float64(math.pi)
    writer.write_bytes(b"\x00\x01")
    writer.write_string("café")
    writer.write_raw(b"end")

    reader = StoreReader(writer.getvalue())

    assert reader.read_u8() == 7
    assert reader.read_compact_size() == 300
    assert reader.read_compact_int() == -5
    assert reader.read_float32() == 0.5
    assert reader.read_float64() == math.pi
    assert reader.read_bytes() == b"\x00\x01"
    assert reader.read_string() == "café"
    assert reader.read_raw(3) == b"end"
    assert reader.at_end()
    assert reader.offset == writer.bytes_written


def test_float_layout_is_little_endian() -> None:
    writer = StoreWriter()
    writer.write_float32(1.0)
    writer.write_float64(1.0)

    assert writer.getvalue() == b"\x00\x00\x80\x3f" + b"\x00" * 6 + b"\xf0\x3f"


def test_float32_rounds_on_write() -> None:
    writer = StoreWriter()
    writer.write_float32(0.1)

    value = StoreReader(writer.getvalue()).read_float32()

    assert value != 0.1
    assert value == pytest.approx(0.1)


def test_reader_accepts_file_objects() -> None:
    sink = io.BytesIO()
    writer = StoreWriter(sink)
    writer.write_string("x")
    writer.flush()

    reader = StoreReader(io.BytesIO(sink.getvalue()))

    assert not reader.at_end()
    assert reader.read_string() == "x"
    assert reader.at_end()


def test_getvalue_requires_in_memory_sink() -> None:
    class Sink:
        def write(self, data):
            return len(data)

    writer = StoreWriter(Sink())
    writer.write_u8(1)

    assert writer.bytes_written == 1
    with pytest.raises(TypeError):
        writer.getvalue()


def test_truncated_read_poisons_the_reader() -> None:
    writer = StoreWriter()
    writer.write_string("hello")
    reader = StoreReader(writer.getvalue()[:-2])

    with pytest.raises(FormatError, match="truncated"):
        reader.read_string()

    assert reader.failed
    with pytest.raises(StoreError) as excinfo:
        reader.read_u8()
    assert isinstance(excinfo.value.__cause__, FormatError)
    with pytest.raises(StoreError):
        reader.at_end()


def test_non_canonical_size_poisons_the_reader() -> None:
    reader = StoreReader(b"\x80\x05\x00")

    with pytest.raises(FormatError):
        reader.read_compact_size()
    with pytest.raises(StoreError):
        reader.read_raw(1)


def test_invalid_utf8_string() -> None:
    reader = StoreReader(b"\x02\xc3\x28")

    with pytest.raises(FormatError, match="UTF-8"):
        reader.read_string()
    assert reader.failed


def test_empty_store_is_at_end() -> None:
    reader = StoreReader(b"")

    assert reader.at_end()
    with pytest.raises(FormatError):
        reader.read_float64()


def test_huge_length_prefix_in_file_is_a_format_error(tmp_path) -> None:
    path = tmp_path / "corrupt.bin"
    path.write_bytes(encode_compact_size(1 << 61) + b"abc")

    with path.open("rb") as handle:
        reader = StoreReader(handle)
        with pytest.raises(FormatError, match="got 3"):
            reader.read_bytes()
        with pytest.raises(StoreError):
            reader.read_u8()


def test_long_values_cross_read_chunks() -> None:
    payload = bytes(range(256)) * ((READ_CHUNK_SIZE // 256) + 3)
    writer = StoreWriter()
    writer.write_bytes(payload)

    assert StoreReader(io.BytesIO(writer.getvalue())).read_bytes() == payload


def test_fail_poisons_the_reader() -> None:
    reader = StoreReader(b"\x01\x02")
    error = FormatError("bad header")

    with pytest.raises(FormatError) as excinfo:
        reader.fail(error)

    assert excinfo.value is error
    with pytest.raises(StoreError) as later:
        reader.read_u8()
    assert later.value.__cause__ is error
