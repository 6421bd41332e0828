"""Features, feature sets and the feature space contract."""

from .feature import Feature, FeatureInfo, FeatureSpaceType, FeatureType
from .feature_set import FeatureSet
from .feature_space import (
    FeatureSpace,
    MutableFeatureSpace,
    reconstitute_feature_space,
    register_feature_space,
    serialize_feature_space,
)
from .named_feature_space import NamedFeatureSpace

__all__ = [
    "Feature",
    "FeatureInfo",
    "FeatureSet",
    "FeatureSpace",
    "FeatureSpaceType",
    "FeatureType",
    "MutableFeatureSpace",
    "NamedFeatureSpace",
    "reconstitute_feature_space",
    "register_feature_space",
    "serialize_feature_space",
]
