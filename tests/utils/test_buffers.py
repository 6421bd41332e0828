from __future__ import annotations

import pytest

from boostkit.config import BufferConfig
from boostkit.errors import BufferOverflowError
from boostkit.utils.buffers import BufferTier, ByteBuffer, ExternalBuffer, GrowingBuffer


@pytest.mark.parametrize("size", [10, 4096, 4097, 100_000])
def test_growing_buffer_keeps_bytes_in_order(size: int) -> None:
    payload = bytes(i % 251 for i in range(size))
    buffer = GrowingBuffer()

    for byte in payload:
        buffer.append(byte)

    assert len(buffer) == size
    assert buffer.to_bytes() == payload
    expected_tier = BufferTier.INLINE if size <= 4096 else BufferTier.HEAP
    assert buffer.tier is expected_tier


def test_growing_buffer_grows_geometrically() -> None:
    buffer = GrowingBuffer(BufferConfig(inline_capacity=4, growth_factor=8))

    buffer.extend(b"abcd")
    assert buffer.capacity == 4
    buffer.append(ord("e"))

    assert buffer.capacity == 32
    assert buffer.to_str() == "abcde"


def test_growing_buffer_extend_past_several_growth_steps() -> None:
    buffer = GrowingBuffer(BufferConfig(inline_capacity=2, growth_factor=2))

    buffer.extend(b"x" * 9)

    assert buffer.capacity == 16
    assert buffer.to_bytes() == b"x" * 9


def test_to_bytes_is_an_owned_copy() -> None:
    buffer = GrowingBuffer()
    buffer.extend(b"abc")

    snapshot = buffer.to_bytes()
    buffer.append(ord("d"))

    assert snapshot == b"abc"
    assert buffer.to_str() == "abcd"


def test_external_buffer_overflow_keeps_written_bytes() -> None:
    storage = bytearray(8)
    buffer = ExternalBuffer(storage, 3)
    buffer.extend(b"xyz")

    with pytest.raises(BufferOverflowError) as excinfo:
        buffer.append(ord("!"))

    assert isinstance(excinfo.value, OverflowError)
    assert excinfo.value.capacity == 3
    assert buffer.to_bytes() == b"xyz"
    assert bytes(storage[:4]) == b"xyz\x00"


def test_external_buffer_rejects_bad_storage() -> None:
    with pytest.raises(ValueError):
        ExternalBuffer(b"read-only")
    with pytest.raises(ValueError):
        ExternalBuffer(bytearray(2), 3)


@pytest.mark.parametrize(
    "kwargs",
    [{"inline_capacity": 0}, {"growth_factor": 1}],
)
def test_buffer_config_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        BufferConfig(**kwargs)


def test_byte_buffer_is_abstract() -> None:
    with pytest.raises(TypeError):
        ByteBuffer(bytearray(4), 4)
