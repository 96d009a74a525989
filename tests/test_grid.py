from ponzimap.grid import (
    GridModel,
    NeighborIndex,
    encode_coordinates,
    neighbor_locations,
    normalize_location,
    to_coordinates,
)
from ponzimap.models.records import LandRecord, StakeRecord


def test_coordinates_round_trip():
    assert to_coordinates(9, 8) == (1, 1)
    assert encode_coordinates(1, 1, 8) == 9
    assert to_coordinates(257) == (1, 1)


def test_normalize_location():
    assert normalize_location("0x10001") == 1
    assert normalize_location("nope") is None


def test_neighbours_clip_at_edges():
    assert neighbor_locations(0, 8) == (1, 8, 9)
    assert len(neighbor_locations(4, 8)) == 5
    assert len(neighbor_locations(9, 8)) == 8
    assert len(neighbor_locations(63, 8)) == 3


def test_neighbours_do_not_wrap():
    assert neighbor_locations(7, 8) == (6, 14, 15)
    assert 8 not in neighbor_locations(7, 8)


def test_neighbourhood_is_symmetric():
    size = 8
    for a in range(size * size):
        for b in neighbor_locations(a, size):
            assert a in neighbor_locations(b, size)


def _lands(*rows):
    return [LandRecord.model_validate(r) for r in rows]


def test_build_joins_stakes_and_drops_off_grid():
    lands = _lands(
        {"location": 1, "owner": "0xa", "staked_amount": "7"},
        {"location": 10, "owner": "0xb", "staked_amount": "7"},
        {"location": 64, "owner": "0xc"},
    )
    stakes = [StakeRecord(location=10, amount=99)]
    snap = GridModel(8).build(lands, stakes)

    assert snap.active_locations == (1, 10)
    assert snap.tile(1).staked_amount == 7
    assert snap.tile(10).staked_amount == 99
    assert snap.tile(64) is None
    assert snap.active_rows == (0, 1)
    assert snap.active_cols == (1, 2)
    assert [t.location for t in snap] == [1, 10]


def test_neighbor_index_memo_and_sync():
    index = NeighborIndex(8)
    assert index.neighbors(0) == (1, 8, 9)
    index.neighbors(0)
    assert index.computed == 1
    assert index.count(9) == 8

    assert index.sync([1, 2]) is True
    assert len(index) == 0
    index.neighbors(0)
    assert index.sync([2, 1]) is False
    assert len(index) == 1
