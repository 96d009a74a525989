from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from ponzimap.auction import DEFAULT_PARAMS, AuctionParams
from ponzimap.grid import GridSnapshot, NeighborIndex, in_bounds
from ponzimap.models.tile import Auction, Tile
from ponzimap.tokens import TokenPriceIndex


@dataclass(frozen=True)
class World:
    """One resolved generation of every input: what the engines read from."""

    grid: GridSnapshot
    neighbors: NeighborIndex
    tokens: TokenPriceIndex = field(default_factory=TokenPriceIndex)
    auctions: Dict[int, Auction] = field(default_factory=dict)
    params: AuctionParams = DEFAULT_PARAMS
    fallback_decay_rate: Optional[int] = None

    @property
    def size(self) -> int:
        return self.grid.size

    def tile(self, location: int) -> Optional[Tile]:
        return self.grid.tile(location)

    def auction(self, location: int) -> Optional[Auction]:
        return self.auctions.get(location)

    def is_auctioned(self, location: int) -> bool:
        return location in self.auctions

    def is_taxable(self, location: int) -> bool:
        """An owned tile that is not under auction: it pays and receives tax."""
        tile = self.grid.tile(location)
        return tile is not None and tile.is_owned and location not in self.auctions

    def contains(self, location: int) -> bool:
        return in_bounds(location, self.grid.size)
