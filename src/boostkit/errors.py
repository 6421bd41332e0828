"""Exception hierarchy shared by the boostkit encode/decode core."""

from __future__ import annotations

from typing import Optional


class BoostkitError(RuntimeError):
    """Base class for errors raised by the encode/decode core."""


class ParseError(BoostkitError):
    """Raised when text input does not match the expected grammar."""

    def __init__(
        self,
        message: str,
        *,
        offset: int,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: str = "<input>",
    ) -> None:
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        self.source = source
        if line is not None and column is not None:
            where = f"{source}:{line}:{column} (offset {offset})"
        else:
            where = f"{source} (offset {offset})"
        super().__init__(f"{where}: {message}")


class EncodingError(BoostkitError):
    """Raised when a value cannot be represented in the requested text form."""


class FormatError(BoostkitError):
    """Raised when binary input is malformed, truncated or out of range."""


class StoreError(BoostkitError):
    """Raised when a binary store is used after it failed."""


class SchemaError(BoostkitError):
    """Raised when a serialized object carries an unexpected class id."""


class UnknownFeatureError(BoostkitError):
    """Raised when a feature name or identifier is not registered."""


class FrozenFeatureSpaceError(BoostkitError):
    """Raised when a frozen feature space is asked to allocate or modify."""


class BufferOverflowError(OverflowError):
    """Raised when a fixed-capacity buffer runs out of room."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f"buffer capacity of {capacity} bytes exceeded")


__all__ = [
    "BoostkitError",
    "BufferOverflowError",
    "EncodingError",
    "FormatError",
    "FrozenFeatureSpaceError",
    "ParseError",
    "SchemaError",
    "StoreError",
    "UnknownFeatureError",
]
