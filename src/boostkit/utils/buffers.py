"""Append-only byte accumulators used by the text scanner."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, Optional, Union

from ..config import DEFAULT_BUFFER_CONFIG, BufferConfig
from ..errors import BufferOverflowError

logger = logging.getLogger(__name__)


class BufferTier(Enum):
    """Where a :class:`GrowingBuffer` currently keeps its bytes."""

    INLINE = "inline"
    HEAP = "heap"


class ByteBuffer(ABC):
    """Common ``(storage, capacity, length)`` view shared by both buffer kinds."""

    __slots__ = ("_storage", "_capacity", "_length")

    def __init__(self, storage: Union[bytearray, memoryview], capacity: int) -> None:
        self._storage = storage
        self._capacity = capacity
        self._length = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._length

    @abstractmethod
    def append(self, byte: int) -> None:
        """Add one byte at the end."""

    def extend(self, data: Iterable[int]) -> None:
        for byte in data:
            self.append(byte)

    def to_bytes(self) -> bytes:
        """Return an owned copy of the bytes written so far."""

        return bytes(self._storage[: self._length])

    def to_str(self, encoding: str = "ascii", errors: str = "strict") -> str:
        return self.to_bytes().decode(encoding, errors)

    def clear(self) -> None:
        self._length = 0


class GrowingBuffer(ByteBuffer):
    """Buffer that starts with an inline block and spills to larger blocks.

    The inline block is allocated once with the buffer.  When it fills up a new
    block ``growth_factor`` times larger replaces it; the previous block is
    copied and released, so a single block owns the contents at any time.
    """

    __slots__ = ("_growth_factor", "_tier")

    def __init__(self, config: Optional[BufferConfig] = None) -> None:
        config = config or DEFAULT_BUFFER_CONFIG
        super().__init__(bytearray(config.inline_capacity), config.inline_capacity)
        self._growth_factor = config.growth_factor
        self._tier = BufferTier.INLINE

    @property
    def tier(self) -> BufferTier:
        return self._tier

    def _grow(self, minimum: int) -> None:
        new_capacity = self._capacity * self._growth_factor
        while new_capacity < minimum:
            new_capacity *= self._growth_factor
        storage = bytearray(new_capacity)
        storage[: self._length] = self._storage[: self._length]
        logger.debug(
            "Growing buffer from %d to %d bytes (%s -> %s)",
            self._capacity,
            new_capacity,
            self._tier.value,
            BufferTier.HEAP.value,
        )
        self._storage = storage
        self._capacity = new_capacity
        self._tier = BufferTier.HEAP

    def append(self, byte: int) -> None:
        if self._length == self._capacity:
            self._grow(self._length + 1)
        self._storage[self._length] = byte
        self._length += 1

    def extend(self, data: Iterable[int]) -> None:
        chunk = bytes(data)
        end = self._length + len(chunk)
        if end > self._capacity:
            self._grow(end)
        self._storage[self._length : end] = chunk
        self._length = end


class ExternalBuffer(ByteBuffer):
    """Buffer writing into caller-provided storage of fixed capacity."""

    __slots__ = ()

    def __init__(
        self,
        storage: Union[bytearray, memoryview],
        capacity: Optional[int] = None,
    ) -> None:
        view = memoryview(storage)
        if view.readonly:
            raise ValueError("external buffer storage must be writable")
        if capacity is None:
            capacity = len(view)
        if capacity < 0 or capacity > len(view):
            raise ValueError(
                f"capacity {capacity} does not fit storage of {len(view)} bytes"
            )
        super().__init__(view, capacity)

    def append(self, byte: int) -> None:
        if self._length == self._capacity:
            raise BufferOverflowError(self._capacity)
        self._storage[self._length] = byte
        self._length += 1


__all__ = ["BufferTier", "ByteBuffer", "ExternalBuffer", "GrowingBuffer"]
