from __future__ import annotations

import math

from ponzimap.cache import IncrementalCache
from ponzimap.constants import WARNING_MINUTES
from ponzimap.models.tile import NukableStatus
from ponzimap.tax import TaxEngine
from ponzimap.world import World


def classify(staked: float, burn_rate: float) -> NukableStatus:
    if burn_rate <= 0:
        return False
    if staked <= 0:
        return "nukable"
    minutes_left = staked / burn_rate * 60
    return "warning" if minutes_left <= WARNING_MINUTES else False


class RiskEngine:
    """Stake depletion, in the tile's own token."""

    def __init__(self, world: World, cache: IncrementalCache, tax: TaxEngine):
        self.world = world
        self.cache = cache
        self.tax = tax

    def burn_rate(self, location: int) -> float:
        return self.cache.memo("burn_rate", location, lambda: self._burn_rate(location))

    def _burn_rate(self, location: int) -> float:
        tile = self.world.tile(location)
        if tile is None or not tile.sell_price or self.world.is_auctioned(location):
            return 0.0
        per_neighbor = self.world.tokens.native_value(tile.token_used, tile.sell_price) * \
            self.tax.rate(tile.level, location)
        burn = 0.0
        for n in self.world.neighbors.neighbors(location):
            if self.world.is_taxable(n):
                burn += per_neighbor
        return burn

    def staked(self, location: int) -> float:
        tile = self.world.tile(location)
        if tile is None:
            return 0.0
        return self.world.tokens.native_value(tile.token_used, tile.staked_amount)

    def time_remaining_hours(self, location: int) -> float:
        """Hours until the stake runs out; infinite when nothing burns."""
        return self.cache.memo("time_remaining", location, lambda: self._time_remaining(location))

    def _time_remaining(self, location: int) -> float:
        burn = self.burn_rate(location)
        if self.world.tile(location) is None or burn <= 0:
            return math.inf
        staked = self.staked(location)
        if staked <= 0:
            return 0.0
        return staked / burn

    def nukable(self, location: int) -> NukableStatus:
        return self.cache.memo(
            "nukable", location,
            lambda: classify(self.staked(location), self.burn_rate(location)),
        )
