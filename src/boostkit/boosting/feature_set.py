"""Collections of ``(feature, value)`` pairs describing one data instance."""

from __future__ import annotations

import math
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .feature import Feature


def as_float32(value: float) -> float:
    """Round ``value`` to the nearest float32 and return it as a Python float."""

    return float(np.float32(value))


class FeatureSet:
    """Ordered or unordered list of feature values.

    Values are held with float32 precision.  Whether the set is dense or
    sparse is decided by the feature space that produced it, not by this
    class.
    """

    __slots__ = ("_features", "_values", "_sorted")

    def __init__(self, pairs: Iterable[Tuple[Feature, float]] = ()) -> None:
        self._features: List[Feature] = []
        self._values: List[float] = []
        self._sorted = True
        for feature, value in pairs:
            self.add(feature, value)

    def add(self, feature: Feature, value: float) -> None:
        if self._features and feature < self._features[-1]:
            self._sorted = False
        self._features.append(feature)
        self._values.append(as_float32(value))

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self) -> Iterator[Tuple[Feature, float]]:
        return iter(zip(self._features, self._values))

    def __contains__(self, feature: object) -> bool:
        return feature in self._features

    @property
    def features(self) -> Tuple[Feature, ...]:
        return tuple(self._features)

    @property
    def values(self) -> np.ndarray:
        return np.asarray(self._values, dtype=np.float32)

    @property
    def is_sorted(self) -> bool:
        return self._sorted

    def sort(self) -> None:
        """Order the pairs by feature, keeping repeated features in insertion order."""

        if self._sorted:
            return
        order = sorted(range(len(self._features)), key=self._features.__getitem__)
        self._features = [self._features[i] for i in order]
        self._values = [self._values[i] for i in order]
        self._sorted = True

    def count(self, feature: Feature) -> int:
        return self._features.count(feature)

    def get(self, feature: Feature, default: Optional[float] = None) -> Optional[float]:
        """Return the first value recorded for ``feature``."""

        try:
            return self._values[self._features.index(feature)]
        except ValueError:
            return default

    def copy(self) -> "FeatureSet":
        clone = FeatureSet()
        clone._features = list(self._features)
        clone._values = list(self._values)
        clone._sorted = self._sorted
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureSet):
            return NotImplemented
        if self._features != other._features:
            return False
        return all(
            a == b or (math.isnan(a) and math.isnan(b))
            for a, b in zip(self._values, other._values)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{feature}: {value!r}" for feature, value in self)
        return f"FeatureSet([{body}])"


__all__ = ["FeatureSet", "as_float32"]
