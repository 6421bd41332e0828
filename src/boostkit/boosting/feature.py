"""Feature identifiers and the metadata attached to them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Tuple

from ..db.persistent import StoreReader, StoreWriter
from ..errors import FormatError


class FeatureSpaceType(Enum):
    """Layout of the feature sets a feature space produces."""

    DENSE = "dense"
    SPARSE = "sparse"


class FeatureType(IntEnum):
    """How the values of a feature are rendered and serialized."""

    UNKNOWN = 0
    BOOLEAN = 1
    CATEGORICAL = 2
    REAL = 3
    STRING = 4


@dataclass(frozen=True, order=True)
class Feature:
    """Opaque three-field identifier interpreted by a feature space."""

    type: int
    arg1: int = 0
    arg2: int = 0

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.type, self.arg1, self.arg2)

    def __str__(self) -> str:
        return f"({self.type} {self.arg1} {self.arg2})"


@dataclass(frozen=True)
class FeatureInfo:
    """Rendering tag for a feature; categorical features may name their values."""

    type: FeatureType = FeatureType.REAL
    categories: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", FeatureType(self.type))
        object.__setattr__(self, "categories", tuple(self.categories))
        if self.categories and self.type is not FeatureType.CATEGORICAL:
            raise ValueError("only categorical features can name their categories")

    @property
    def is_string(self) -> bool:
        return self.type is FeatureType.STRING

    def category_name(self, value: float) -> str | None:
        if not self.categories or not float(value).is_integer():
            return None
        index = int(value)
        if 0 <= index < len(self.categories):
            return self.categories[index]
        return None

    def category_index(self, name: str) -> int | None:
        try:
            return self.categories.index(name)
        except ValueError:
            return None

    def serialize(self, store: StoreWriter) -> None:
        store.write_compact_size(int(self.type))
        store.write_compact_size(len(self.categories))
        for name in self.categories:
            store.write_string(name)

    @classmethod
    def reconstitute(cls, store: StoreReader) -> "FeatureInfo":
        code = store.read_compact_size()
        try:
            feature_type = FeatureType(code)
        except ValueError:
            store.fail(FormatError(f"unknown feature type code {code}"))
        count = store.read_compact_size()
        categories = tuple(store.read_string() for _ in range(count))
        try:
            return cls(feature_type, categories)
        except ValueError as exc:
            store.fail(FormatError(str(exc)))


UNKNOWN_INFO = FeatureInfo(FeatureType.UNKNOWN)
REAL_INFO = FeatureInfo(FeatureType.REAL)
STRING_INFO = FeatureInfo(FeatureType.STRING)


__all__ = [
    "Feature",
    "FeatureInfo",
    "FeatureSpaceType",
    "FeatureType",
    "REAL_INFO",
    "STRING_INFO",
    "UNKNOWN_INFO",
]
