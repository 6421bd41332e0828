"""Tunable limits for the text scanner and its buffers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BufferConfig:
    """Sizing policy for :class:`~boostkit.utils.buffers.GrowingBuffer`."""

    inline_capacity: int = 4096
    growth_factor: int = 8

    def __post_init__(self) -> None:
        if self.inline_capacity <= 0:
            raise ValueError("inline_capacity must be positive")
        if self.growth_factor < 2:
            raise ValueError("growth_factor must be at least 2")


@dataclass(frozen=True)
class JsonLimits:
    """Bounds applied while scanning JSON input."""

    max_key_length: int = 1024

    def __post_init__(self) -> None:
        if self.max_key_length <= 0:
            raise ValueError("max_key_length must be positive")


DEFAULT_BUFFER_CONFIG = BufferConfig()
DEFAULT_JSON_LIMITS = JsonLimits()


__all__ = [
    "BufferConfig",
    "DEFAULT_BUFFER_CONFIG",
    "DEFAULT_JSON_LIMITS",
    "JsonLimits",
]
