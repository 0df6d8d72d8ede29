import math
import numpy as np
import pytest
from pricetree import (
    AmenitiesLevel,
    BedRooms,
    CategoricalRecord,
    Feature,
    Popularity,
    PriceBracket,
    RoomType,
)
from pricetree.statistics import (
    INELIGIBLE,
    conditional_entropy_and_split_info,
    entropy,
    gain_ratio,
    select_feature,
    tabulate,
)


def _rec(room=RoomType.PRIVATE_ROOM, beds=BedRooms.ONE, pop=Popularity.LEVEL1,
         amen=AmenitiesLevel.FEW, price=PriceBracket.UNDER_100):
    return CategoricalRecord(room, beds, pop, amen, price)


def test_entropy_pure_distribution_is_exactly_zero():
    assert entropy([10, 0, 0, 0, 0, 0]) == 0.0


def test_entropy_uniform_and_empty():
    assert entropy([5, 5, 0, 0, 0, 0]) == pytest.approx(1.0)
    assert entropy([1, 1, 1, 1]) == pytest.approx(2.0)
    assert entropy([0, 0, 0, 0, 0, 0]) == 0.0


def test_entropy_counts_are_normalized():
    assert entropy([3, 1]) == pytest.approx(entropy([30, 10]))


def test_entropy_nonnegative_and_zero_iff_single_nonzero():
    rng = np.random.default_rng(0)
    for _ in range(50):
        d = rng.integers(0, 5, size=6)
        if d.sum() == 0:
            continue
        h = entropy(d)
        assert h >= 0.0
        assert (h == 0.0) == (np.count_nonzero(d) == 1)


def test_conditional_entropy_and_split_info():
    # two equally sized rows, each pure -> no remaining uncertainty
    cond, split = conditional_entropy_and_split_info([[4, 0], [0, 4], [0, 0]])
    assert cond == pytest.approx(0.0)
    assert split == pytest.approx(1.0)
    # rows mixed exactly like the parent -> nothing gained
    cond, split = conditional_entropy_and_split_info([[1, 3], [2, 6]])
    assert cond == pytest.approx(entropy([3, 9]))
    assert split == pytest.approx(entropy([4, 8]))


def test_conditional_entropy_empty_table():
    assert conditional_entropy_and_split_info(np.zeros((4, 6))) == (0.0, 0.0)


def test_conditional_entropy_never_exceeds_parent():
    rng = np.random.default_rng(1)
    for _ in range(50):
        table = rng.integers(0, 6, size=(4, 6))
        if table.sum() == 0:
            continue
        parent = entropy(table.sum(axis=0))
        cond, split = conditional_entropy_and_split_info(table)
        assert cond <= parent + 1e-12
        gr = gain_ratio(parent, cond, split)
        if gr != INELIGIBLE:
            assert gr >= -1e-12


def test_gain_ratio_zero_split_info_is_ineligible():
    assert gain_ratio(1.0, 0.5, 0.0) == -math.inf
    assert gain_ratio(1.0, 0.5, 0.5) == pytest.approx(1.0)


def test_tabulate_shapes_and_totals():
    records = [
        _rec(),
        _rec(room=RoomType.HOTEL_ROOM, price=PriceBracket.ABOVE_500),
        _rec(pop=Popularity.LEVEL5, price=PriceBracket.ABOVE_500),
    ]
    tab = tabulate(records)
    assert tab.n_records == 3
    assert tab.target.tolist() == [1, 0, 0, 0, 0, 2]
    assert tab.tables[Feature.ROOM_TYPE].shape == (3, 6)
    assert tab.tables[Feature.BED_ROOMS].shape == (4, 6)
    assert tab.tables[Feature.POPULARITY].shape == (5, 6)
    assert tab.tables[Feature.AMENITIES_LEVEL].shape == (4, 6)
    for table in tab.tables.values():
        assert table.sum() == 3
    assert tab.tables[Feature.ROOM_TYPE][2, 5] == 1
    assert tab.tables[Feature.POPULARITY][4, 5] == 1


def test_tabulate_empty():
    tab = tabulate([])
    assert tab.n_records == 0
    assert tab.target.sum() == 0
    assert all(t.sum() == 0 for t in tab.tables.values())


def test_select_feature_pure_partition_short_circuits():
    sel = select_feature(tabulate([_rec(price=PriceBracket.R300_400)] * 3))
    assert sel.feature is None
    assert sel.pure_bracket is PriceBracket.R300_400
    assert sel.parent_entropy == 0.0
    assert sel.ratios == {}


def test_select_feature_empty_partition():
    sel = select_feature(tabulate([]))
    assert sel.feature is None
    assert sel.pure_bracket is None


def test_select_feature_tie_prefers_earlier_feature():
    # room type and amenities separate the brackets identically
    records = [
        _rec(room=RoomType.PRIVATE_ROOM, amen=AmenitiesLevel.FEW, price=PriceBracket.UNDER_100),
        _rec(room=RoomType.ENTIRE_HOME_APT, amen=AmenitiesLevel.LUXURIOUS, price=PriceBracket.ABOVE_500),
    ]
    sel = select_feature(tabulate(records))
    assert sel.ratios[Feature.ROOM_TYPE] == sel.ratios[Feature.AMENITIES_LEVEL]
    assert sel.feature is Feature.ROOM_TYPE


def test_select_feature_strictly_greater_wins():
    # bedrooms separates the brackets, room type only partially
    records = [
        _rec(room=RoomType.PRIVATE_ROOM, beds=BedRooms.ONE, price=PriceBracket.UNDER_100),
        _rec(room=RoomType.PRIVATE_ROOM, beds=BedRooms.ONE, price=PriceBracket.UNDER_100),
        _rec(room=RoomType.PRIVATE_ROOM, beds=BedRooms.SIX_OR_MORE, price=PriceBracket.ABOVE_500),
        _rec(room=RoomType.ENTIRE_HOME_APT, beds=BedRooms.SIX_OR_MORE, price=PriceBracket.ABOVE_500),
    ]
    sel = select_feature(tabulate(records))
    assert sel.ratios[Feature.BED_ROOMS] > sel.ratios[Feature.ROOM_TYPE]
    assert sel.feature is Feature.BED_ROOMS


def test_select_feature_all_ineligible():
    records = [_rec(price=PriceBracket.UNDER_100), _rec(price=PriceBracket.R100_200)]
    sel = select_feature(tabulate(records))
    assert sel.feature is None
    assert sel.pure_bracket is None
    assert all(r == INELIGIBLE for r in sel.ratios.values())
