"""Feature spaces: the bridge between an application domain and the learners.

A :class:`FeatureSpace` decides what a :class:`~boostkit.boosting.feature.Feature`
means.  Learners only ever move features and float values around; every
textual or binary rendering goes through the feature space that owns them, so
a single feature type serves every domain without the feature itself carrying
any behaviour.

Subclasses must provide :meth:`FeatureSpace.info`, :meth:`FeatureSpace.class_id`,
:meth:`FeatureSpace.type` and :meth:`FeatureSpace.make_copy`.  The remaining
methods have defaults that treat a feature as its three integers:

* text: ``(1 2 3)`` for a feature and ``(1 2 3):0.5`` for a pair;
* binary: three compact sizes for a feature, a float32 for a value, or a
  presence byte and the value's text when the feature is of type ``STRING``
  so that no interning table has to travel with the data.

A ``STRING`` value of ``nan`` means the value is missing.  It prints as an
empty token (``name:``) and is written as a lone zero presence byte.

Binary reconstitution is never speculative.  Errors propagate and the store
is left unusable, including after failures found above the store such as a
class id mismatch; see :class:`~boostkit.db.persistent.StoreReader`.

Feature spaces are typically populated once, frozen, and then shared
read-only between threads.  The read-only operations keep no per-call state
on the instance; mutating operations are meant for the setup phase only.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Tuple, Type, TypeVar

import numpy as np

from ..db.persistent import StoreReader, StoreWriter
from ..errors import BoostkitError, FormatError, SchemaError, UnknownFeatureError
from ..utils.cursor import Cursor
from .feature import Feature, FeatureInfo, FeatureSpaceType, UNKNOWN_INFO
from .feature_set import FeatureSet
from .feature_text import match_feature_token, print_feature_token

logger = logging.getLogger(__name__)

SpaceT = TypeVar("SpaceT", bound="FeatureSpace")

_STRING_MISSING = 0
_STRING_PRESENT = 1
# A missing STRING value prints as an empty token, which ends at one of these.
_VALUE_TERMINATORS = frozenset(b" \t\r\n")


def format_value(value: float) -> str:
    """Shortest text that reads back as the same float32."""

    return str(np.float32(value))


class FeatureSpace(ABC):
    """Read-only contract binding features to metadata and codecs."""

    def __init__(self) -> None:
        self._frozen = False

    # -- Identity -------------------------------------------------------

    @abstractmethod
    def info(self, feature: Feature) -> FeatureInfo:
        """Return how ``feature`` is rendered; called often, keep it cheap."""

    @classmethod
    @abstractmethod
    def class_id(cls) -> str:
        """Polymorphic type tag written ahead of the serialized space."""

    @abstractmethod
    def type(self) -> FeatureSpaceType:
        """Whether feature sets of this space are dense or sparse."""

    @abstractmethod
    def make_copy(self: SpaceT) -> SpaceT:
        """Return an independent copy that can be mutated separately."""

    def dense_features(self) -> List[Feature]:
        """Features of a dense space in value order; empty for sparse spaces."""

        if self.type() is FeatureSpaceType.SPARSE:
            return []
        raise NotImplementedError(
            f"{type(self).__name__} is dense but does not list its features"
        )

    def features(self) -> List[Feature]:
        """Every feature the space knows about."""

        return list(self.dense_features())

    def feature_name(self, feature: Feature) -> str:
        return self.print_feature(feature)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Forbid allocating further identifiers.  One way; idempotent."""

        if not self._frozen:
            logger.debug("Freezing %s", type(self).__name__)
        self._frozen = True

    # -- Feature text ---------------------------------------------------

    def print_feature(self, feature: Feature) -> str:
        return str(feature)

    def parse_feature(self, cursor: Cursor) -> Optional[Feature]:
        """Probe for a feature printed by :meth:`print_feature`.

        Returns ``None`` and leaves ``cursor`` untouched when no feature is
        found; never raises for malformed input.
        """

        with cursor.checkpoint() as token:
            if not cursor.match_literal(b"("):
                return None
            fields = []
            for index in range(3):
                if index:
                    cursor.match_whitespace()
                value = cursor.match_int()
                if value is None:
                    return None
                fields.append(value)
            if not cursor.match_literal(b")"):
                return None
            token.commit()
            return Feature(*fields)

    def expect_feature(self, cursor: Cursor) -> Feature:
        feature = self.parse_feature(cursor)
        if feature is None:
            raise cursor.error(f"expected feature of {self.class_id()}")
        return feature

    def parse_feature_name(self, name: str) -> Feature:
        """Turn a complete printed feature back into a feature."""

        cursor = Cursor(name, name="<feature name>")
        feature = self.expect_feature(cursor)
        cursor.expect_eof("trailing characters after feature name")
        return feature

    # -- Value text and string values -----------------------------------

    def string_for_value(self, feature: Feature, value: float) -> str:
        """Text carried by ``value`` for a ``STRING`` feature."""

        return format_value(value)

    def value_for_string(self, feature: Feature, text: str) -> float:
        """Inverse of :meth:`string_for_value`."""

        try:
            return float(text)
        except ValueError as exc:
            raise FormatError(
                f"{self.class_id()} cannot map string value {text!r} of {feature}"
            ) from exc

    def print_value(self, feature: Feature, value: float) -> str:
        info = self.info(feature)
        if info.is_string:
            if math.isnan(value):
                return ""
            return print_feature_token(self.string_for_value(feature, value))
        category = info.category_name(value)
        if category is not None:
            return print_feature_token(category)
        return format_value(value)

    def parse_value(self, cursor: Cursor, feature: Feature) -> Optional[float]:
        info = self.info(feature)
        if info.is_string:
            text = match_feature_token(cursor)
            if text is None:
                if cursor.at_end() or cursor.peek() in _VALUE_TERMINATORS:
                    return math.nan
                return None
            return self.value_for_string(feature, text)
        if info.categories:
            with cursor.checkpoint() as token:
                name = match_feature_token(cursor)
                index = info.category_index(name) if name is not None else None
                if index is not None:
                    token.commit()
                    return float(index)
        return cursor.match_float()

    def expect_value(self, cursor: Cursor, feature: Feature) -> float:
        value = self.parse_value(cursor, feature)
        if value is None:
            raise cursor.error(f"expected value for feature {self.print_feature(feature)}")
        return value

    # -- Pair and feature set text --------------------------------------

    def print_pair(self, feature: Feature, value: float) -> str:
        return f"{self.print_feature(feature)}:{self.print_value(feature, value)}"

    def parse_pair(self, cursor: Cursor) -> Optional[Tuple[Feature, float]]:
        with cursor.checkpoint() as token:
            feature = self.parse_feature(cursor)
            if feature is None or not cursor.match_literal(b":"):
                return None
            value = self.parse_value(cursor, feature)
            if value is None:
                return None
            token.commit()
            return feature, value

    def expect_pair(self, cursor: Cursor) -> Tuple[Feature, float]:
        pair = self.parse_pair(cursor)
        if pair is None:
            raise cursor.error("expected feature:value pair")
        return pair

    def print_feature_set(self, features: FeatureSet) -> str:
        """Render a feature set on a single line."""

        return " ".join(self.print_pair(feature, value) for feature, value in features)

    def expect_feature_set(self, cursor: Cursor) -> FeatureSet:
        """Read pairs up to the end of the line or of the input.

        The line ending itself is not consumed.
        """

        result = FeatureSet()
        while True:
            cursor.match_whitespace()
            if cursor.at_end() or cursor.peek() in (0x0A, 0x0D):
                return result
            feature, value = self.expect_pair(cursor)
            result.add(feature, value)
            if cursor.at_end() or cursor.peek() in (0x0A, 0x0D):
                return result
            if not cursor.match_whitespace():
                raise cursor.error("expected whitespace between feature pairs")

    def print_space(self) -> str:
        """Header line identifying the space in text data files."""

        return self.class_id()

    # -- Binary features and values -------------------------------------

    def serialize_feature(self, store: StoreWriter, feature: Feature) -> None:
        store.write_compact_size(feature.type)
        store.write_compact_size(feature.arg1)
        store.write_compact_size(feature.arg2)

    def reconstitute_feature(self, store: StoreReader) -> Feature:
        return Feature(
            store.read_compact_size(),
            store.read_compact_size(),
            store.read_compact_size(),
        )

    def serialize_value(self, store: StoreWriter, feature: Feature, value: float) -> None:
        """Write a value without its feature.

        A ``STRING`` value is a presence byte followed, when present, by the
        text; ``nan`` marks a missing value and is written as a lone zero.
        """

        if not self.info(feature).is_string:
            store.write_float32(value)
        elif math.isnan(value):
            store.write_u8(_STRING_MISSING)
        else:
            store.write_u8(_STRING_PRESENT)
            store.write_string(self.string_for_value(feature, value))

    def reconstitute_value(self, store: StoreReader, feature: Feature) -> float:
        try:
            is_string = self.info(feature).is_string
        except UnknownFeatureError as exc:
            store.fail(exc)
        if not is_string:
            return store.read_float32()
        marker = store.read_u8()
        if marker == _STRING_MISSING:
            return math.nan
        if marker != _STRING_PRESENT:
            store.fail(FormatError(f"invalid string value marker {marker} for {feature}"))
        text = store.read_string()
        try:
            return self.value_for_string(feature, text)
        except BoostkitError as exc:
            store.fail(exc)

    # -- Binary feature sets --------------------------------------------

    def serialize_feature_set(self, store: StoreWriter, features: FeatureSet) -> None:
        store.write_compact_size(len(features))
        for feature, value in features:
            self.serialize_feature(store, feature)
            self.serialize_value(store, feature, value)

    def reconstitute_feature_set(self, store: StoreReader) -> FeatureSet:
        result = FeatureSet()
        for _ in range(store.read_compact_size()):
            feature = self.reconstitute_feature(store)
            result.add(feature, self.reconstitute_value(store, feature))
        return result

    # -- Binary feature space -------------------------------------------

    def serialize(self, store: StoreWriter) -> None:
        store.write_string(self.class_id())
        self.serialize_state(store)

    def serialize_state(self, store: StoreWriter) -> None:
        """Write whatever follows the class id; nothing by default."""

    def reconstitute(self, store: StoreReader) -> None:
        """Read a space written by :meth:`serialize` into this instance.

        The class id is checked before anything else is read; a mismatch
        raises :class:`SchemaError` and leaves the instance untouched.
        """

        found = store.read_string()
        expected = self.class_id()
        if found != expected:
            store.fail(
                SchemaError(
                    f"feature space class id mismatch: expected {expected!r}, got {found!r}"
                )
            )
        _reconstitute_state(self, store)

    def reconstitute_state(self, store: StoreReader) -> None:
        """Read whatever follows the class id; nothing by default."""

    @classmethod
    def blank(cls: Type[SpaceT]) -> SpaceT:
        """Instance to reconstitute into."""

        return cls()

    @classmethod
    def load(cls: Type[SpaceT], store: StoreReader) -> SpaceT:
        """Reconstitute a fresh instance of ``cls`` from ``store``."""

        space = cls.blank()
        space.reconstitute(store)
        return space


class MutableFeatureSpace(FeatureSpace):
    """Feature space that can create features and change their information."""

    @abstractmethod
    def set_info(self, feature: Feature, info: FeatureInfo) -> None:
        """Replace the information of an existing feature."""

    @abstractmethod
    def make_feature(self, name: str, info: FeatureInfo = UNKNOWN_INFO) -> Feature:
        """Return the feature called ``name``, creating it if needed.

        An existing feature is returned unchanged; ``info`` is only applied
        to newly created features.
        """

    @abstractmethod
    def get_feature(self, name: str) -> Feature:
        """Return the feature called ``name`` or raise ``UnknownFeatureError``."""

    def import_space(self, other: FeatureSpace) -> Dict[Feature, Feature]:
        """Register every feature of ``other`` here.

        Returns the mapping from ``other``'s features to this space's, to be
        used with :meth:`translate_feature_set`.
        """

        mapping: Dict[Feature, Feature] = {}
        for feature in other.features():
            mapping[feature] = self.make_feature(other.feature_name(feature), other.info(feature))
        logger.debug(
            "Imported %d features from %s (%s) into %s (%s)",
            len(mapping),
            other.class_id(),
            other.type().value,
            self.class_id(),
            self.type().value,
        )
        return mapping

    def translate_feature_set(
        self,
        features: FeatureSet,
        mapping: Mapping[Feature, Feature],
        source: FeatureSpace,
    ) -> FeatureSet:
        """Rewrite a feature set of ``source`` in terms of this space.

        String values are carried over by their text.  A dense target yields
        one value per dense feature, ``nan`` where ``features`` had none.
        """

        translated: List[Tuple[Feature, float]] = []
        for feature, value in features:
            target = mapping.get(feature)
            if target is None:
                raise UnknownFeatureError(
                    f"feature {source.print_feature(feature)} of {source.class_id()} "
                    "was not imported"
                )
            if source.info(feature).is_string and not math.isnan(value):
                value = self.value_for_string(target, source.string_for_value(feature, value))
            translated.append((target, value))
        if self.type() is FeatureSpaceType.DENSE:
            values = dict(translated)
            return FeatureSet((feature, values.get(feature, math.nan)) for feature in self.dense_features())
        result = FeatureSet(translated)
        result.sort()
        return result


# ---------------------------------------------------------------------------
# Polymorphic extraction


def _reconstitute_state(space: FeatureSpace, store: StoreReader) -> None:
    try:
        space.reconstitute_state(store)
    except BoostkitError as exc:
        store.fail(exc)


_REGISTRY: Dict[str, Type[FeatureSpace]] = {}


def register_feature_space(cls: Type[SpaceT]) -> Type[SpaceT]:
    """Class decorator making ``cls`` reconstitutable from its class id."""

    class_id = cls.class_id()
    existing = _REGISTRY.get(class_id)
    if existing is not None and existing is not cls:
        raise ValueError(
            f"class id {class_id!r} already registered by {existing.__name__}"
        )
    _REGISTRY[class_id] = cls
    logger.debug("Registered feature space %s as %r", cls.__name__, class_id)
    return cls


def registered_feature_spaces() -> Dict[str, Type[FeatureSpace]]:
    return dict(_REGISTRY)


def serialize_feature_space(store: StoreWriter, space: FeatureSpace) -> None:
    space.serialize(store)


def reconstitute_feature_space(store: StoreReader) -> FeatureSpace:
    """Read any registered feature space, dispatching on its class id."""

    class_id = store.read_string()
    cls = _REGISTRY.get(class_id)
    if cls is None:
        store.fail(SchemaError(f"unknown feature space class id {class_id!r}"))
    space = cls.blank()
    _reconstitute_state(space, store)
    return space


__all__ = [
    "FeatureSpace",
    "MutableFeatureSpace",
    "format_value",
    "reconstitute_feature_space",
    "register_feature_space",
    "registered_feature_spaces",
    "serialize_feature_space",
]
