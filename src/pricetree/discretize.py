"""
Raw listing fields -> categorical records.

Each mapping is total: a missing or unparseable input falls back to a fixed
default bucket instead of raising.

    room type        "Private room" | "Entire home/apt" | "Hotel room"
                     (anything else -> PrivateRoom)
    bedrooms         <= 1 -> One, 2 -> Two, 3..5 -> ThreeToFive, >= 6 -> SixOrMore
                     (missing -> One)
    popularity       review count < 50 -> Level1, > 200 -> Level5, else Level3
                     (missing count -> 1); a review score below 4.0 (missing
                     score -> 0.0) lowers Level3 to Level2 and Level5 to Level4
    price            "$1,234.56" -> 1234, 100-wide brackets, >= 500 -> Above500
                     (unparseable -> Under100)
    amenities        item count < 10 Few, < 20 Common, < 30 Abundant, else Luxurious

The listings table is read with pandas; every ``every``-th line of the file
(the header being line 1) is held out for evaluation.
"""

from __future__ import annotations
import json
import logging
import math
from typing import Any, Iterable, Sequence, Tuple, List
import pandas as pd

from .records import (
    AmenitiesLevel,
    BedRooms,
    CategoricalRecord,
    Popularity,
    PriceBracket,
    RoomType,
    BRACKETS,
)

logger = logging.getLogger(__name__)

ROOM_TYPES = {
    "Private room": RoomType.PRIVATE_ROOM,
    "Entire home/apt": RoomType.ENTIRE_HOME_APT,
    "Hotel room": RoomType.HOTEL_ROOM,
}

LOW_REVIEW_COUNT = 50
HIGH_REVIEW_COUNT = 200
MIN_REVIEW_SCORE = 4.0
PRICE_STEP = 100
AMENITY_STEP = 10

COLUMNS = ("room_type", "bedrooms", "number_of_reviews",
           "review_scores_rating", "price", "amenities")


def _is_missing(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return raw.strip() == ""
    return bool(pd.isna(raw))


def _parse_number(raw: Any, default: float) -> float:
    if _is_missing(raw):
        return default
    try:
        value = float(str(raw).strip().replace(",", ""))
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        logger.debug("unparseable number %r; using %s", raw, default)
        return default
    return value


def discretize_room_type(raw: Any) -> RoomType:
    if isinstance(raw, str):
        return ROOM_TYPES.get(raw.strip(), RoomType.PRIVATE_ROOM)
    return RoomType.PRIVATE_ROOM


def discretize_bedrooms(raw: Any) -> BedRooms:
    n = int(_parse_number(raw, 1.0))
    if n <= 1:
        return BedRooms.ONE
    if n == 2:
        return BedRooms.TWO
    if n <= 5:
        return BedRooms.THREE_TO_FIVE
    return BedRooms.SIX_OR_MORE


def discretize_popularity(review_count: Any, review_score: Any) -> Popularity:
    count = _parse_number(review_count, 1.0)
    if count < LOW_REVIEW_COUNT:
        level = Popularity.LEVEL1
    elif count > HIGH_REVIEW_COUNT:
        level = Popularity.LEVEL5
    else:
        level = Popularity.LEVEL3
    if _parse_number(review_score, 0.0) < MIN_REVIEW_SCORE:
        level = {Popularity.LEVEL3: Popularity.LEVEL2,
                 Popularity.LEVEL5: Popularity.LEVEL4}.get(level, level)
    return level


def parse_price(raw: Any) -> int | None:
    """Whole currency units of a price such as ``"$1,250.00"``; ``None`` if unparseable."""
    if _is_missing(raw):
        return None
    if isinstance(raw, (int, float)):
        return int(raw) if math.isfinite(raw) else None
    text = str(raw).strip()
    if text and not text[0].isdigit():
        text = text[1:]
    whole = text.replace(",", "").split(".")[0]
    try:
        return int(whole)
    except ValueError:
        return None


def discretize_price(raw: Any) -> PriceBracket:
    price = parse_price(raw)
    if price is None or price < 0:
        logger.debug("unparseable price %r; using %s", raw, PriceBracket.UNDER_100.value)
        return PriceBracket.UNDER_100
    return BRACKETS[min(price // PRICE_STEP, len(BRACKETS) - 1)]


def count_amenities(raw: Any) -> int:
    """
    Number of items in an amenities field.

    Accepts an already-split sequence, an integer count, a JSON list such as
    ``'["Wifi", "Shampoo, conditioner"]'`` (item names may contain commas)
    or plain comma-separated text such as ``"Wifi,Kitchen"``.
    """
    if isinstance(raw, (list, tuple, set)):
        return len(raw)
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if _is_missing(raw):
        return 0
    text = str(raw).strip()
    if text.startswith("["):
        try:
            items = json.loads(text)
        except ValueError:
            logger.debug("amenities field is not valid JSON; counting comma-separated items")
        else:
            if isinstance(items, list):
                return len(items)
    text = text.lstrip("[{").rstrip("]}")
    return sum(1 for item in text.split(",") if item.strip().strip('"\''))


def discretize_amenities(raw: Any) -> AmenitiesLevel:
    levels = tuple(AmenitiesLevel)
    return levels[min(count_amenities(raw) // AMENITY_STEP, len(levels) - 1)]


def discretize_listing(room_type, bedrooms, review_count, review_score,
                       price, amenities) -> CategoricalRecord:
    return CategoricalRecord(
        room_type=discretize_room_type(room_type),
        bedrooms=discretize_bedrooms(bedrooms),
        popularity=discretize_popularity(review_count, review_score),
        amenities_level=discretize_amenities(amenities),
        price_bracket=discretize_price(price),
    )


# -----------------------------------------------------------------------------
# Ingestion
# -----------------------------------------------------------------------------
def read_listings(path, **read_csv_kwargs) -> pd.DataFrame:
    """Read a listings table, keeping every field as text (empty fields stay ``""``)."""
    kwargs = {"dtype": str, "keep_default_na": False}
    kwargs.update(read_csv_kwargs)
    return pd.read_csv(path, **kwargs)


def records_from_frame(df: pd.DataFrame, columns: Sequence[str] = COLUMNS) -> List[CategoricalRecord]:
    """
    Discretize every row of ``df``.

    Args:
        df: Listings table
        columns: Names of the room type, bedrooms, review count, review score,
                 price and amenities columns, in that order

    Returns:
        One record per row, in row order

    Raises:
        ValueError: If a column is missing from ``df``
    """
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"listings table is missing columns: {missing}")
    return [discretize_listing(*row) for row in zip(*(df[c] for c in columns))]


def split_train_evaluation(records: Iterable[CategoricalRecord],
                           every: int = 4) -> Tuple[List[CategoricalRecord], List[CategoricalRecord]]:
    """
    Hold out the rows lying on every ``every``-th line of the source file.

    Row ``i`` (0-based) sits on file line ``i + 2`` because the header is
    line 1; it goes to evaluation when that line number is a multiple of
    ``every``.
    """
    if every < 2:
        raise ValueError("every must be at least 2")
    train, evaluation = [], []
    for i, record in enumerate(records):
        (evaluation if (i + 2) % every == 0 else train).append(record)
    return train, evaluation


def load_listings(path, every: int = 4, columns: Sequence[str] = COLUMNS, **read_csv_kwargs):
    """Read, discretize and split a listings file into ``(train, evaluation)``."""
    df = read_listings(path, **read_csv_kwargs)
    records = records_from_frame(df, columns)
    train, evaluation = split_train_evaluation(records, every=every)
    logger.info("loaded %d listings from %s: %d train, %d evaluation",
                len(records), path, len(train), len(evaluation))
    return train, evaluation
