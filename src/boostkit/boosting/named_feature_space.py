"""Reference mutable feature space keyed by feature names."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from ..db.persistent import StoreReader, StoreWriter
from ..errors import FormatError, FrozenFeatureSpaceError, UnknownFeatureError
from ..utils.cursor import Cursor
from .feature import Feature, FeatureInfo, FeatureSpaceType, UNKNOWN_INFO
from .feature_set import FeatureSet
from .feature_space import MutableFeatureSpace, register_feature_space
from .feature_text import match_feature_token, print_feature_token

logger = logging.getLogger(__name__)

_KIND_CODES = {FeatureSpaceType.SPARSE: 0, FeatureSpaceType.DENSE: 1}
_KINDS_BY_CODE = {code: kind for kind, code in _KIND_CODES.items()}


@register_feature_space
class NamedFeatureSpace(MutableFeatureSpace):
    """Features are ``Feature(index, 0, 0)`` and print as their names.

    Values of ``STRING`` features are interned: the float value is the index
    of the string in a table owned by the space.  Binary feature sets carry
    the strings themselves, so two spaces need not agree on the table.

    A dense space lists its features in creation order and serializes feature
    sets as bare values in that order.

    After :meth:`freeze`, creating a feature, changing feature information or
    interning a new string raises :class:`FrozenFeatureSpaceError`.  Lookups
    of existing names and strings keep working and allocate nothing.
    """

    def __init__(self, kind: FeatureSpaceType = FeatureSpaceType.SPARSE) -> None:
        super().__init__()
        self._kind = FeatureSpaceType(kind)
        self._names: List[str] = []
        self._infos: List[FeatureInfo] = []
        self._index: Dict[str, int] = {}
        self._strings: List[str] = []
        self._string_index: Dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def class_id(cls) -> str:
        return "NAMED_FEATURE_SPACE"

    def type(self) -> FeatureSpaceType:
        return self._kind

    def __len__(self) -> int:
        return len(self._names)

    def _slot(self, feature: Feature) -> int:
        if feature.arg1 or feature.arg2 or not 0 <= feature.type < len(self._names):
            raise UnknownFeatureError(f"feature {feature} is not part of this space")
        return feature.type

    # -- Features -------------------------------------------------------

    def info(self, feature: Feature) -> FeatureInfo:
        return self._infos[self._slot(feature)]

    def features(self) -> List[Feature]:
        return [Feature(index) for index in range(len(self._names))]

    def dense_features(self) -> List[Feature]:
        if self._kind is FeatureSpaceType.DENSE:
            return self.features()
        return []

    def feature_name(self, feature: Feature) -> str:
        return self._names[self._slot(feature)]

    def print_feature(self, feature: Feature) -> str:
        return print_feature_token(self.feature_name(feature))

    def parse_feature(self, cursor: Cursor) -> Optional[Feature]:
        with cursor.checkpoint() as token:
            name = match_feature_token(cursor)
            if name is None:
                return None
            index = self._index.get(name)
            if index is None:
                return None
            token.commit()
            return Feature(index)

    def parse_feature_name(self, name: str) -> Feature:
        return self.get_feature(name)

    def set_info(self, feature: Feature, info: FeatureInfo) -> None:
        slot = self._slot(feature)
        with self._lock:
            if self._frozen:
                raise FrozenFeatureSpaceError(
                    f"cannot change info of {self._names[slot]!r}: feature space is frozen"
                )
            self._infos[slot] = info

    def make_feature(self, name: str, info: FeatureInfo = UNKNOWN_INFO) -> Feature:
        with self._lock:
            index = self._index.get(name)
            if index is not None:
                return Feature(index)
            if self._frozen:
                raise FrozenFeatureSpaceError(
                    f"cannot create feature {name!r}: feature space is frozen"
                )
            index = len(self._names)
            self._names.append(name)
            self._infos.append(info)
            self._index[name] = index
        return Feature(index)

    def get_feature(self, name: str) -> Feature:
        index = self._index.get(name)
        if index is None:
            raise UnknownFeatureError(f"unknown feature name {name!r}")
        return Feature(index)

    # -- String values --------------------------------------------------

    def string_for_value(self, feature: Feature, value: float) -> str:
        if not self.info(feature).is_string:
            return super().string_for_value(feature, value)
        index = int(value) if float(value).is_integer() else -1
        if not 0 <= index < len(self._strings):
            raise UnknownFeatureError(
                f"value {value!r} of {self.feature_name(feature)!r} is not an interned string"
            )
        return self._strings[index]

    def value_for_string(self, feature: Feature, text: str) -> float:
        if not self.info(feature).is_string:
            return super().value_for_string(feature, text)
        index = self._string_index.get(text)
        if index is not None:
            return float(index)
        with self._lock:
            index = self._string_index.get(text)
            if index is None:
                if self._frozen:
                    raise FrozenFeatureSpaceError(
                        f"cannot intern string {text!r}: feature space is frozen"
                    )
                index = len(self._strings)
                self._strings.append(text)
                self._string_index[text] = index
        return float(index)

    def freeze(self) -> None:
        with self._lock:
            super().freeze()
        logger.debug(
            "Named feature space frozen with %d features and %d strings",
            len(self._names),
            len(self._strings),
        )

    # -- Copies and persistence -----------------------------------------

    def make_copy(self) -> "NamedFeatureSpace":
        clone = NamedFeatureSpace(self._kind)
        with self._lock:
            clone._names = list(self._names)
            clone._infos = list(self._infos)
            clone._index = dict(self._index)
            clone._strings = list(self._strings)
            clone._string_index = dict(self._string_index)
            clone._frozen = self._frozen
        return clone

    def serialize_state(self, store: StoreWriter) -> None:
        store.write_compact_size(_KIND_CODES[self._kind])
        store.write_compact_size(len(self._names))
        for name, info in zip(self._names, self._infos):
            store.write_string(name)
            info.serialize(store)
        store.write_compact_size(len(self._strings))
        for text in self._strings:
            store.write_string(text)
        store.write_u8(1 if self._frozen else 0)

    def reconstitute_state(self, store: StoreReader) -> None:
        code = store.read_compact_size()
        kind = _KINDS_BY_CODE.get(code)
        if kind is None:
            store.fail(FormatError(f"unknown feature space kind code {code}"))
        names: List[str] = []
        infos: List[FeatureInfo] = []
        for _ in range(store.read_compact_size()):
            names.append(store.read_string())
            infos.append(FeatureInfo.reconstitute(store))
        strings = [store.read_string() for _ in range(store.read_compact_size())]
        frozen = store.read_u8() == 1
        index = {name: slot for slot, name in enumerate(names)}
        string_index = {text: slot for slot, text in enumerate(strings)}
        if len(index) != len(names) or len(string_index) != len(strings):
            store.fail(FormatError("duplicate names in serialized feature space"))
        with self._lock:
            self._kind = kind
            self._names = names
            self._infos = infos
            self._index = index
            self._strings = strings
            self._string_index = string_index
            self._frozen = frozen

    def serialize_feature_set(self, store: StoreWriter, features: FeatureSet) -> None:
        if self._kind is FeatureSpaceType.SPARSE:
            super().serialize_feature_set(store, features)
            return
        expected = self.dense_features()
        if list(features.features) != expected:
            raise ValueError(
                f"dense feature set must list the {len(expected)} features of the space in order"
            )
        store.write_compact_size(len(features))
        for feature, value in features:
            self.serialize_value(store, feature, value)

    def reconstitute_feature_set(self, store: StoreReader) -> FeatureSet:
        if self._kind is FeatureSpaceType.SPARSE:
            return super().reconstitute_feature_set(store)
        expected = self.dense_features()
        count = store.read_compact_size()
        if count != len(expected):
            store.fail(
                FormatError(
                    f"dense feature set has {count} values, space has {len(expected)} features"
                )
            )
        return FeatureSet(
            (feature, self.reconstitute_value(store, feature)) for feature in expected
        )

    def __repr__(self) -> str:
        return (
            f"NamedFeatureSpace(kind={self._kind.value}, features={len(self._names)}, "
            f"frozen={self._frozen})"
        )


__all__ = ["NamedFeatureSpace"]
