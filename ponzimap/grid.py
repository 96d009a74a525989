from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

from ponzimap.constants import GRID_SIZE
from ponzimap.models.records import LandRecord, MalformedRecord, StakeRecord, parse_location
from ponzimap.models.tile import Tile

log = logging.getLogger(__name__)


def normalize_location(raw: Any) -> Optional[int]:
    try:
        return parse_location(raw)
    except MalformedRecord:
        return None


def to_coordinates(location: int, size: int = GRID_SIZE) -> Tuple[int, int]:
    """location -> (col, row)"""
    return location % size, location // size


def encode_coordinates(col: int, row: int, size: int = GRID_SIZE) -> int:
    return row * size + col


def in_bounds(location: int, size: int = GRID_SIZE) -> bool:
    return 0 <= location < size * size


def neighbor_locations(location: int, size: int = GRID_SIZE) -> Tuple[int, ...]:
    """The (up to) eight surrounding cells, clipped at the grid edges."""
    col, row = to_coordinates(location, size)
    out = []
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            if dr == 0 and dc == 0:
                continue
            r, c = row + dr, col + dc
            if 0 <= r < size and 0 <= c < size:
                out.append(r * size + c)
    return tuple(out)


@dataclass(frozen=True)
class GridSnapshot:
    size: int
    tiles: Dict[int, Tile]
    active_locations: Tuple[int, ...]
    active_rows: Tuple[int, ...]
    active_cols: Tuple[int, ...]

    def tile(self, location: int) -> Optional[Tile]:
        return self.tiles.get(location)

    def __iter__(self) -> Iterator[Tile]:
        for location in self.active_locations:
            yield self.tiles[location]

    def __len__(self) -> int:
        return len(self.tiles)


class GridModel:
    def __init__(self, size: int = GRID_SIZE):
        if size <= 0:
            raise ValueError("grid size must be positive")
        self.size = size

    def empty(self) -> GridSnapshot:
        return GridSnapshot(self.size, {}, (), (), ())

    def build(self, lands: Iterable[LandRecord], stakes: Iterable[StakeRecord] = ()) -> GridSnapshot:
        stake_by_location: Dict[int, int] = {}
        for stake in stakes:
            stake_by_location[stake.location] = stake.amount

        tiles: Dict[int, Tile] = {}
        for land in lands:
            if not in_bounds(land.location, self.size):
                log.warning("dropping land outside the %dx%d grid: %d", self.size, self.size, land.location)
                continue
            staked = stake_by_location.get(land.location)
            if staked is None:
                staked = land.staked_amount or 0
            tiles[land.location] = Tile(
                location=land.location,
                token_used=land.token_used,
                sell_price=land.sell_price,
                owner=land.owner,
                level=land.level,
                staked_amount=staked,
            )

        locations = tuple(sorted(tiles))
        coords = [to_coordinates(loc, self.size) for loc in locations]
        return GridSnapshot(
            size=self.size,
            tiles=tiles,
            active_locations=locations,
            active_rows=tuple(sorted({row for _, row in coords})),
            active_cols=tuple(sorted({col for col, _ in coords})),
        )


class NeighborIndex:
    """Memoised neighbour sets, valid for as long as the active-location set holds."""

    def __init__(self, size: int = GRID_SIZE):
        self.size = size
        self._memo: Dict[int, Tuple[int, ...]] = {}
        self._active: FrozenSet[int] = frozenset()
        self.computed = 0

    def neighbors(self, location: int) -> Tuple[int, ...]:
        found = self._memo.get(location)
        if found is None:
            found = neighbor_locations(location, self.size)
            self._memo[location] = found
            self.computed += 1
        return found

    def count(self, location: int) -> int:
        return len(self.neighbors(location))

    def sync(self, active_locations: Iterable[int]) -> bool:
        """Drop the memo if the set of active locations changed. Returns True if it did."""
        active = frozenset(active_locations)
        if active == self._active:
            return False
        self._active = active
        self._memo.clear()
        return True

    def __len__(self) -> int:
        return len(self._memo)
