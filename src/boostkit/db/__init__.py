"""Binary persistence: compact size integers and sequential stores."""

from .compact_size import (
    COMPACT_SIZE_LIMIT,
    compact_size_length,
    decode_compact_int,
    decode_compact_size,
    encode_compact_int,
    encode_compact_size,
)
from .persistent import StoreReader, StoreWriter

__all__ = [
    "COMPACT_SIZE_LIMIT",
    "StoreReader",
    "StoreWriter",
    "compact_size_length",
    "decode_compact_int",
    "decode_compact_size",
    "encode_compact_int",
    "encode_compact_size",
]
