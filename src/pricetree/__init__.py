# pricetree/__init__.py
"""
pricetree: gain-ratio decision trees for short-term rental price brackets.

Exports:
    - PriceBracketClassifier
    - CategoricalRecord and its enumerations
    - build, flatten, build_tree, classify, matches, accuracy
    - load_listings
"""
from .records import (
    AmenitiesLevel,
    BedRooms,
    CategoricalRecord,
    Feature,
    Popularity,
    PriceBracket,
    RoomType,
)
from .tree import (
    DecisionTree,
    PriceBracketClassifier,
    accuracy,
    build,
    build_tree,
    classify,
    flatten,
    matches,
)
from .discretize import discretize_listing, load_listings

__all__ = [
    "AmenitiesLevel",
    "BedRooms",
    "CategoricalRecord",
    "Feature",
    "Popularity",
    "PriceBracket",
    "RoomType",
    "DecisionTree",
    "PriceBracketClassifier",
    "accuracy",
    "build",
    "build_tree",
    "classify",
    "flatten",
    "matches",
    "discretize_listing",
    "load_listings",
]
__version__ = "0.1.0"
