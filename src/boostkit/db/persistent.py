"""Sequential binary stores built on the compact size codec.

:class:`StoreWriter` appends primitives to any object with a ``write`` method
(an in-memory :class:`io.BytesIO` by default) and :class:`StoreReader` reads
them back from bytes or from any object with a ``read`` method.  Floats are
fixed-width little-endian IEEE-754; strings and byte strings carry a compact
size length prefix.

A reader never resumes after a failed read: the first error poisons it and
every subsequent call raises :class:`~boostkit.errors.StoreError`.
"""

from __future__ import annotations

import io
import logging
import struct
from typing import BinaryIO, NoReturn, Optional, Union

from ..errors import BoostkitError, FormatError, StoreError
from .compact_size import (
    decode_compact_size_body,
    encode_compact_int,
    encode_compact_size,
    length_from_marker,
    unzigzag,
)

logger = logging.getLogger(__name__)

FLOAT32_STRUCT = struct.Struct("<f")
FLOAT64_STRUCT = struct.Struct("<d")
U8_STRUCT = struct.Struct("<B")

# Upper bound on a single read from the source; length prefixes are untrusted.
READ_CHUNK_SIZE = 1 << 16

Source = Union[bytes, bytearray, memoryview, BinaryIO]


class StoreWriter:
    """Write primitives to a binary sink."""

    def __init__(self, sink: Optional[BinaryIO] = None) -> None:
        self._sink = sink if sink is not None else io.BytesIO()
        self._written = 0

    @property
    def bytes_written(self) -> int:
        return self._written

    def getvalue(self) -> bytes:
        """Return everything written so far when backed by memory."""

        getvalue = getattr(self._sink, "getvalue", None)
        if getvalue is None:
            raise TypeError("store sink does not keep its contents in memory")
        return bytes(getvalue())

    def write_raw(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._sink.write(data)
        self._written += len(data)

    def write_u8(self, value: int) -> None:
        self.write_raw(U8_STRUCT.pack(value))

    def write_compact_size(self, value: int) -> None:
        self.write_raw(encode_compact_size(value))

    def write_compact_int(self, value: int) -> None:
        self.write_raw(encode_compact_int(value))

    def write_float32(self, value: float) -> None:
        self.write_raw(FLOAT32_STRUCT.pack(value))

    def write_float64(self, value: float) -> None:
        self.write_raw(FLOAT64_STRUCT.pack(value))

    def write_bytes(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self.write_compact_size(len(data))
        self.write_raw(data)

    def write_string(self, text: str) -> None:
        self.write_bytes(text.encode("utf-8"))

    def flush(self) -> None:
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()


class StoreReader:
    """Read primitives written by :class:`StoreWriter`."""

    def __init__(self, source: Source) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._source = source
        self._offset = 0
        self._failure: Optional[BaseException] = None

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def _check_usable(self) -> None:
        if self._failure is not None:
            raise StoreError(
                f"store is unusable after a decode error at offset {self._offset}"
            ) from self._failure

    def _poison(self, exc: BaseException) -> None:
        logger.debug("Binary store poisoned at offset %d: %s", self._offset, exc)
        self._failure = exc

    def fail(self, exc: BaseException) -> NoReturn:
        """Poison the reader with an error found while interpreting its data.

        Decoders layered on top of the store call this for failures the store
        cannot see itself, such as a class id mismatch.  ``exc`` is raised.
        """

        if self._failure is None:
            self._poison(exc)
        raise exc

    def _take(self, count: int) -> bytes:
        chunks = []
        remaining = count
        while remaining:
            chunk = self._source.read(min(remaining, READ_CHUNK_SIZE))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        if remaining:
            raise FormatError(
                f"store truncated at offset {self._offset}: "
                f"needed {count} bytes, got {count - remaining}"
            )
        self._offset += count
        return b"".join(chunks)

    def _guarded(self, reader):
        self._check_usable()
        try:
            return reader()
        except BoostkitError as exc:
            self._poison(exc)
            raise

    def at_end(self) -> bool:
        self._check_usable()
        peek = getattr(self._source, "peek", None)
        if peek is not None:
            return not peek(1)
        position = self._source.tell()
        more = self._source.read(1)
        self._source.seek(position)
        return not more

    def read_raw(self, count: int) -> bytes:
        return self._guarded(lambda: self._take(count))

    def read_u8(self) -> int:
        return self._guarded(lambda: U8_STRUCT.unpack(self._take(1))[0])

    def _read_compact_size(self) -> int:
        start = self._offset
        marker = self._take(1)[0]
        tail = self._take(length_from_marker(marker) - 1)
        return decode_compact_size_body(marker, tail, start)

    def read_compact_size(self) -> int:
        return self._guarded(self._read_compact_size)

    def read_compact_int(self) -> int:
        return self._guarded(lambda: unzigzag(self._read_compact_size()))

    def read_float32(self) -> float:
        return self._guarded(lambda: FLOAT32_STRUCT.unpack(self._take(4))[0])

    def read_float64(self) -> float:
        return self._guarded(lambda: FLOAT64_STRUCT.unpack(self._take(8))[0])

    def read_bytes(self) -> bytes:
        return self._guarded(lambda: self._take(self._read_compact_size()))

    def read_string(self) -> str:
        def _read() -> str:
            start = self._offset
            raw = self._take(self._read_compact_size())
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise FormatError(f"invalid UTF-8 string at offset {start}") from exc

        return self._guarded(_read)


__all__ = [
    "FLOAT32_STRUCT",
    "FLOAT64_STRUCT",
    "READ_CHUNK_SIZE",
    "StoreReader",
    "StoreWriter",
]
