"""
pricetree.records
=================

Categorical data model consumed by the tree-induction engine.

Every field of a :class:`CategoricalRecord` holds exactly one enumerator of a
closed enumeration.  The declaration order of each enumeration is its ordinal
order: contingency table rows, tree branches and bracket columns are all laid
out in that order.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class RoomType(Enum):
    PRIVATE_ROOM = "PrivateRoom"
    ENTIRE_HOME_APT = "EntireHomeApt"
    HOTEL_ROOM = "HotelRoom"


class BedRooms(Enum):
    ONE = "One"
    TWO = "Two"
    THREE_TO_FIVE = "ThreeToFive"
    SIX_OR_MORE = "SixOrMore"


class Popularity(Enum):
    """Ordinal popularity level derived from review count and score."""
    LEVEL1 = "Level1"
    LEVEL2 = "Level2"
    LEVEL3 = "Level3"
    LEVEL4 = "Level4"
    LEVEL5 = "Level5"


class AmenitiesLevel(Enum):
    FEW = "Few"
    COMMON = "Common"
    ABUNDANT = "Abundant"
    LUXURIOUS = "Luxurious"


class PriceBracket(Enum):
    """Nightly price range; the prediction target."""
    UNDER_100 = "Under100"
    R100_200 = "R100_200"
    R200_300 = "R200_300"
    R300_400 = "R300_400"
    R400_500 = "R400_500"
    ABOVE_500 = "Above500"


BRACKETS: tuple[PriceBracket, ...] = tuple(PriceBracket)


class Feature(Enum):
    """
    Candidate splitting features, declared in tie-break priority order.

    Each member carries the name of the record attribute it reads and the
    enumeration that forms its value domain.
    """
    ROOM_TYPE = ("RoomType", "room_type", RoomType)
    BED_ROOMS = ("BedRooms", "bedrooms", BedRooms)
    POPULARITY = ("Popularity", "popularity", Popularity)
    AMENITIES_LEVEL = ("AmenitiesLevel", "amenities_level", AmenitiesLevel)

    def __init__(self, label: str, attribute: str, domain: type[Enum]):
        self.label = label
        self.attribute = attribute
        self.domain = domain

    @property
    def values(self) -> tuple[Enum, ...]:
        return tuple(self.domain)

    def __str__(self) -> str:
        return self.label


FEATURES: tuple[Feature, ...] = tuple(Feature)

_ORDINALS: dict[Enum, int] = {
    member: i
    for enum_cls in (RoomType, BedRooms, Popularity, AmenitiesLevel, PriceBracket)
    for i, member in enumerate(enum_cls)
}


def ordinal(member: Enum) -> int:
    """Return the declaration position of ``member`` within its enumeration."""
    return _ORDINALS[member]


@dataclass(frozen=True)
class CategoricalRecord:
    """
    One discretized listing.

    Attributes
    ----------
    room_type, bedrooms, popularity, amenities_level
        The four candidate features.
    price_bracket : PriceBracket
        The target value.
    """
    room_type: RoomType
    bedrooms: BedRooms
    popularity: Popularity
    amenities_level: AmenitiesLevel
    price_bracket: PriceBracket

    def value_of(self, feature: Feature) -> Enum:
        return getattr(self, feature.attribute)
