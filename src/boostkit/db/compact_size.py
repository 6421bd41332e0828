"""Canonical variable-length encoding of unsigned integers.

The first byte announces the encoded length through its leading one bits: a
byte ``0xxxxxxx`` holds the whole value, ``10xxxxxx`` is followed by one more
byte, ``110xxxxx`` by two and so on up to ``11111110`` (seven following bytes)
and ``11111111`` (eight following bytes, no payload bits in the first byte).
The payload is stored big-endian.

========  ================  ===============
Length    First byte        Values
========  ================  ===============
1         ``0xxxxxxx``      ``< 2**7``
2         ``10xxxxxx``      ``< 2**14``
n (<= 8)  n-1 ones, a zero  ``< 2**(7*n)``
9         ``11111111``      ``< 2**64``
========  ================  ===============

Only the shortest form of a value is valid, which makes the mapping a
bijection between ``[0, COMPACT_SIZE_LIMIT)`` and the set of encodings the
encoder produces.  Values at or above ``COMPACT_SIZE_LIMIT`` are rejected in
both directions.
"""

from __future__ import annotations

from typing import Tuple, Union

from ..errors import FormatError

COMPACT_SIZE_BITS = 62
COMPACT_SIZE_LIMIT = 1 << COMPACT_SIZE_BITS
COMPACT_INT_LIMIT = 1 << (COMPACT_SIZE_BITS - 1)
MAX_COMPACT_SIZE_LENGTH = 9

BytesLike = Union[bytes, bytearray, memoryview]


def compact_size_length(value: int) -> int:
    """Return the number of bytes :func:`encode_compact_size` emits for ``value``."""

    if value < 0 or value >= COMPACT_SIZE_LIMIT:
        raise ValueError(
            f"compact size value {value} outside [0, 2**{COMPACT_SIZE_BITS})"
        )
    for length in range(1, MAX_COMPACT_SIZE_LENGTH):
        if value < (1 << (7 * length)):
            return length
    return MAX_COMPACT_SIZE_LENGTH


def length_from_marker(marker: int) -> int:
    """Return the total encoded length announced by a first byte."""

    length = 1
    mask = 0x80
    while mask and marker & mask:
        length += 1
        mask >>= 1
    return length


def encode_compact_size(value: int) -> bytes:
    length = compact_size_length(value)
    if length == MAX_COMPACT_SIZE_LENGTH:
        return b"\xff" + value.to_bytes(8, "big")
    payload = value.to_bytes(length, "big")
    marker = (0xFF00 >> (length - 1)) & 0xFF
    return bytes((payload[0] | marker,)) + payload[1:]


def decode_compact_size(data: BytesLike, offset: int = 0) -> Tuple[int, int]:
    """Decode one value starting at ``offset``.

    Returns ``(value, next_offset)``.  Raises :class:`FormatError` for
    truncated input, non-canonical encodings and out-of-range values.
    """

    view = memoryview(data)
    if offset >= len(view):
        raise FormatError(f"compact size truncated at offset {offset}")
    marker = view[offset]
    length = length_from_marker(marker)
    end = offset + length
    if end > len(view):
        raise FormatError(
            f"compact size at offset {offset} needs {length} bytes, "
            f"only {len(view) - offset} available"
        )
    value = decode_compact_size_body(marker, view[offset + 1 : end].tobytes(), offset)
    return value, end


def decode_compact_size_body(marker: int, tail: bytes, offset: int = 0) -> int:
    """Combine a first byte with its continuation bytes into a value."""

    length = len(tail) + 1
    if length != length_from_marker(marker):
        raise FormatError(
            f"compact size at offset {offset}: marker 0x{marker:02x} "
            f"does not announce {length} bytes"
        )
    if length == MAX_COMPACT_SIZE_LENGTH:
        value = int.from_bytes(tail, "big")
    else:
        first = marker & (0xFF >> length)
        value = int.from_bytes(bytes((first,)) + tail, "big")
    if value >= COMPACT_SIZE_LIMIT:
        raise FormatError(
            f"compact size at offset {offset} exceeds 2**{COMPACT_SIZE_BITS}"
        )
    if compact_size_length(value) != length:
        raise FormatError(
            f"non-canonical compact size at offset {offset}: "
            f"{value} encoded in {length} bytes"
        )
    return value


# ---------------------------------------------------------------------------
# Signed values


def zigzag(value: int) -> int:
    return value * 2 if value >= 0 else -value * 2 - 1


def unzigzag(value: int) -> int:
    return value >> 1 if not value & 1 else -((value + 1) >> 1)


def encode_compact_int(value: int) -> bytes:
    if value < -COMPACT_INT_LIMIT or value >= COMPACT_INT_LIMIT:
        raise ValueError(
            f"compact int value {value} outside [-2**61, 2**61)"
        )
    return encode_compact_size(zigzag(value))


def decode_compact_int(data: BytesLike, offset: int = 0) -> Tuple[int, int]:
    value, end = decode_compact_size(data, offset)
    return unzigzag(value), end


__all__ = [
    "COMPACT_INT_LIMIT",
    "COMPACT_SIZE_BITS",
    "COMPACT_SIZE_LIMIT",
    "MAX_COMPACT_SIZE_LENGTH",
    "compact_size_length",
    "decode_compact_int",
    "decode_compact_size",
    "decode_compact_size_body",
    "encode_compact_int",
    "encode_compact_size",
    "length_from_marker",
    "unzigzag",
    "zigzag",
]
