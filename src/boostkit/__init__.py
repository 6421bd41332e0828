"""Encode/decode core shared by the boostkit learners.

The package is layered bottom-up:

* :mod:`boostkit.utils` -- byte cursor, buffers and the JSON subset scanner;
* :mod:`boostkit.db` -- compact size integers and binary stores;
* :mod:`boostkit.boosting` -- features, feature sets and feature spaces.
"""

from __future__ import annotations

from .boosting import (
    Feature,
    FeatureInfo,
    FeatureSet,
    FeatureSpace,
    FeatureSpaceType,
    FeatureType,
    MutableFeatureSpace,
    NamedFeatureSpace,
    reconstitute_feature_space,
    register_feature_space,
    serialize_feature_space,
)
from .config import BufferConfig, JsonLimits
from .db import StoreReader, StoreWriter, decode_compact_size, encode_compact_size
from .errors import (
    BoostkitError,
    BufferOverflowError,
    EncodingError,
    FormatError,
    FrozenFeatureSpaceError,
    ParseError,
    SchemaError,
    StoreError,
    UnknownFeatureError,
)
from .utils import Cursor, ExternalBuffer, GrowingBuffer

__version__ = "0.1.0"

__all__ = [
    "BoostkitError",
    "BufferConfig",
    "BufferOverflowError",
    "Cursor",
    "EncodingError",
    "ExternalBuffer",
    "Feature",
    "FeatureInfo",
    "FeatureSet",
    "FeatureSpace",
    "FeatureSpaceType",
    "FeatureType",
    "FormatError",
    "FrozenFeatureSpaceError",
    "GrowingBuffer",
    "JsonLimits",
    "MutableFeatureSpace",
    "NamedFeatureSpace",
    "ParseError",
    "SchemaError",
    "StoreError",
    "StoreReader",
    "StoreWriter",
    "UnknownFeatureError",
    "decode_compact_size",
    "encode_compact_size",
    "reconstitute_feature_space",
    "register_feature_space",
    "serialize_feature_space",
]
