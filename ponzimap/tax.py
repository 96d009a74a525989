from __future__ import annotations

from typing import Optional

from ponzimap.cache import IncrementalCache
from ponzimap.constants import LEVEL_DISCOUNTS, TAX_RATE_PCT, TIME_SPEED
from ponzimap.models.tile import NO_TAX, Level, TaxInfo, Tile
from ponzimap.world import World


def tax_rate(level: Level, neighbor_count: int) -> float:
    """Hourly fraction of a tile's price paid to each neighbour."""
    if neighbor_count <= 0:
        return 0.0
    base = (TAX_RATE_PCT / 100.0) * TIME_SPEED / neighbor_count
    return base * LEVEL_DISCOUNTS[level.value]


class TaxEngine:
    def __init__(self, world: World, cache: IncrementalCache):
        self.world = world
        self.cache = cache

    def rate(self, level: Level, location: int) -> float:
        return self.cache.memo(
            "tax_rate", (level, location),
            lambda: tax_rate(level, self.world.neighbors.count(location)),
        )

    def price_reference(self, tile: Tile) -> Optional[float]:
        if not tile.sell_price:
            return None
        return self.world.tokens.reference_value(tile.token_used, tile.sell_price)

    def hourly_tax(self, tile: Tile) -> float:
        """What the tile pays each qualifying neighbour per hour, in reference units."""
        return (self.price_reference(tile) or 0.0) * self.rate(tile.level, tile.location)

    def relationship_tax(self, payer: int, receiver: int) -> float:
        """Tax flowing over the single edge payer -> receiver."""
        tile = self.world.tile(payer)
        if tile is None or not tile.sell_price or self.world.is_auctioned(payer):
            return 0.0
        if receiver not in self.world.neighbors.neighbors(payer) or not self.world.is_taxable(receiver):
            return 0.0
        return self.hourly_tax(tile)

    def tax_info(self, location: int) -> TaxInfo:
        return self.cache.memo("tax_info", location, lambda: self._tax_info(location))

    def _tax_info(self, location: int) -> TaxInfo:
        tile = self.world.tile(location)
        if tile is None or self.world.is_auctioned(location):
            return NO_TAX

        paid = 0.0
        if tile.sell_price:
            per_neighbor = self.hourly_tax(tile)
            for n in self.world.neighbors.neighbors(location):
                if self.world.is_taxable(n):
                    paid += per_neighbor

        received = self._received(location)
        return TaxInfo(tax_paid=paid, tax_received=received, profit_per_hour=received - paid)

    def _received(self, location: int) -> float:
        received = 0.0
        for n in self.world.neighbors.neighbors(location):
            neighbor = self.world.tile(n)
            if neighbor is not None and neighbor.sell_price and self.world.is_taxable(n):
                received += self.hourly_tax(neighbor)
        return received

    def potential_yield(self, location: int) -> float:
        """Tax a buyer would receive at this location today, whatever its own state."""
        return self.cache.memo("potential_yield", location, lambda: self._received(location))
