"""Text-side primitives: cursor, buffers and the JSON subset scanner."""

from .buffers import BufferTier, ByteBuffer, ExternalBuffer, GrowingBuffer
from .cursor import Checkpoint, Cursor

__all__ = [
    "BufferTier",
    "ByteBuffer",
    "Checkpoint",
    "Cursor",
    "ExternalBuffer",
    "GrowingBuffer",
]
