from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional

from ponzimap.auction import auction_price, to_reference_units
from ponzimap.cache import IncrementalCache
from ponzimap.constants import DEFAULT_DURATION_CAP_HOURS
from ponzimap.grid import to_coordinates
from ponzimap.models.records import normalize_address
from ponzimap.models.tile import (
    NukableStatus,
    PortfolioMetrics,
    RiskEntry,
    TaxInfo,
    TileDetails,
)
from ponzimap.risk import RiskEngine
from ponzimap.scoring import OpportunityScorer, auction_roi, opportunity_intensity, roi
from ponzimap.tax import TaxEngine
from ponzimap.world import World

log = logging.getLogger(__name__)


class Evaluator:
    """Derived values for every tile of one World, memoised in the session cache."""

    def __init__(self, world: World, cache: Optional[IncrementalCache] = None):
        self.world = world
        self.cache = cache if cache is not None else IncrementalCache()
        self.tax = TaxEngine(world, self.cache)
        self.risk = RiskEngine(world, self.cache, self.tax)
        self.scorer = OpportunityScorer(world, self.cache, self.tax, self.risk)

    def tax_info(self, location: int) -> TaxInfo:
        return self.tax.tax_info(location)

    def burn_rate(self, location: int) -> float:
        return self.risk.burn_rate(location)

    def nukable_status(self, location: int) -> NukableStatus:
        return self.risk.nukable(location)

    def potential_yield(self, location: int) -> float:
        return self.tax.potential_yield(location)

    def auction_price(self, location: int, now: Optional[float] = None) -> Optional[int]:
        """Current integer price of the auction at location, None when none runs."""
        auction = self.world.auction(location)
        if auction is None:
            return None
        now = int(time.time() if now is None else now)
        return self.cache.memo(
            "auction_price", (location, now),
            lambda: auction_price(auction, now, self.world.params, self.world.fallback_decay_rate),
        )

    def _check(self, location: int) -> None:
        if not self.world.contains(location):
            raise ValueError(f"location {location} is outside a {self.world.size}x{self.world.size} grid")

    def tile_details(self, location: int, now: Optional[float] = None,
                     cap_hours: float = DEFAULT_DURATION_CAP_HOURS) -> TileDetails:
        self._check(location)
        tile = self.world.tile(location)
        auction = self.world.auction(location)
        token = self.world.tokens.lookup(tile.token_used if tile else "")

        tax_info = self.tax.tax_info(location)
        price = self.tax.price_reference(tile) if tile else None

        details = dict(
            location=location,
            coords=to_coordinates(location, self.world.size),
            tile=tile,
            auction=auction,
            token=token,
            tax_info=tax_info,
            yield_info=self.scorer.yield_info(location, cap_hours),
            price_reference=price,
            burn_rate=self.risk.burn_rate(location),
            time_remaining=self.risk.time_remaining_hours(location),
            nukable=self.risk.nukable(location) if tile else False,
            roi=roi(tax_info.profit_per_hour, price),
            opportunity=opportunity_intensity(tax_info.profit_per_hour, price),
        )

        if auction is not None:
            current = to_reference_units(self.auction_price(location, now))
            potential = self.tax.potential_yield(location)
            details.update(
                auction_price=current,
                potential_yield=potential,
                auction_roi=auction_roi(potential, current),
                recommendation=self.scorer.purchase_recommendation(location, current, cap_hours),
            )

        return TileDetails(**details)

    def all_tile_details(self, now: Optional[float] = None,
                         cap_hours: float = DEFAULT_DURATION_CAP_HOURS) -> List[TileDetails]:
        now = time.time() if now is None else now
        locations = sorted(set(self.world.grid.active_locations) | set(self.world.auctions))
        return [self.tile_details(loc, now, cap_hours) for loc in locations]

    def portfolio(self, owners: Iterable[str]) -> PortfolioMetrics:
        wanted = tuple(sorted({normalize_address(o) for o in owners if o}))
        metrics = PortfolioMetrics(owners=wanted)
        if not wanted:
            return metrics

        for tile in self.world.grid:
            if tile.owner not in wanted:
                continue
            loc = tile.location
            metrics.holdings += 1
            metrics.lands_by_level[tile.level.value] = metrics.lands_by_level.get(tile.level.value, 0) + 1

            price = self.tax.price_reference(tile)
            if tile.sell_price and price is None:
                metrics.unpriced_holdings += 1
            metrics.total_value += price or 0.0

            tax_info = self.tax.tax_info(loc)
            metrics.total_yield_per_hour += tax_info.profit_per_hour
            metrics.total_tax_paid_per_hour += tax_info.tax_paid
            metrics.total_staked += self.world.tokens.reference_value(tile.token_used, tile.staked_amount) or 0.0

            status = self.risk.nukable(loc)
            if status:
                entry = RiskEntry(
                    location=loc,
                    coords=to_coordinates(loc, self.world.size),
                    time_remaining=self.risk.time_remaining_hours(loc),
                    value=price,
                    symbol=self.world.tokens.lookup(tile.token_used).symbol,
                )
                (metrics.nukable if status == "nukable" else metrics.warning).append(entry)

        metrics.nukable.sort(key=lambda e: e.time_remaining)
        metrics.warning.sort(key=lambda e: e.time_remaining)
        if metrics.unpriced_holdings:
            log.debug("portfolio %s: %d holdings without a price", wanted, metrics.unpriced_holdings)
        return metrics
