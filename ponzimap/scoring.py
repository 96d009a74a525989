from __future__ import annotations

from typing import List, Optional, Tuple

from ponzimap.cache import IncrementalCache
from ponzimap.constants import (
    DEFAULT_DURATION_CAP_HOURS,
    OPPORTUNITY_MAX_ROI,
    OPPORTUNITY_MIN_PROFIT,
    OPPORTUNITY_MIN_ROI,
)
from ponzimap.models.tile import (
    NO_YIELD,
    Level,
    NeighborYield,
    PurchaseRecommendation,
    YieldInfo,
)
from ponzimap.risk import RiskEngine
from ponzimap.tax import TaxEngine
from ponzimap.world import World

RECOMMENDED_MARGIN = 0.02  # net gain must beat 2% of the price
FIRST_HOUR_SHARE = 0.8


def roi(profit_per_hour: float, price: Optional[float]) -> float:
    """Hourly return as a percentage of the price; 0 when the price is unknown."""
    if not price or price <= 0:
        return 0.0
    return profit_per_hour / price * 100


def opportunity_intensity(profit_per_hour: float, price: Optional[float]) -> float:
    value = roi(profit_per_hour, price)
    if profit_per_hour <= OPPORTUNITY_MIN_PROFIT or value <= OPPORTUNITY_MIN_ROI:
        return 0.0
    return min(value / OPPORTUNITY_MAX_ROI, 1.0)


def auction_roi(potential_yield: Optional[float], auction_price: Optional[float]) -> Optional[float]:
    if not potential_yield or not auction_price or potential_yield <= 0 or auction_price <= 0:
        return None
    return potential_yield / auction_price * 100


class OpportunityScorer:
    def __init__(self, world: World, cache: IncrementalCache, tax: TaxEngine, risk: RiskEngine):
        self.world = world
        self.cache = cache
        self.tax = tax
        self.risk = risk

    def neighbor_yields(self, location: int, cap_hours: float = DEFAULT_DURATION_CAP_HOURS,
                        my_time_remaining: Optional[float] = None) -> Tuple[NeighborYield, ...]:
        """Tax each paying neighbour would send here, and for how long."""
        return self.cache.memo(
            "neighbor_yield", ("yields", location, cap_hours, my_time_remaining),
            lambda: self._neighbor_yields(location, cap_hours, my_time_remaining),
        )

    def _neighbor_yields(self, location, cap_hours, my_time_remaining):
        yields: List[NeighborYield] = []
        for n in self.world.neighbors.neighbors(location):
            neighbor = self.world.tile(n)
            if neighbor is None or not neighbor.sell_price or not self.world.is_taxable(n):
                continue
            remaining = self.risk.time_remaining_hours(n)
            if remaining <= 0:
                continue

            rate = self.tax.rate(neighbor.level, n)
            price = self.tax.price_reference(neighbor) or 0.0
            hourly = price * rate
            duration = min(remaining, cap_hours)
            if my_time_remaining is not None:
                duration = min(duration, my_time_remaining)
            yields.append(NeighborYield(
                location=n,
                price_reference=price,
                tax_rate=rate,
                hourly_yield=hourly,
                time_remaining=remaining,
                total_yield=hourly * duration,
                symbol=self.world.tokens.lookup(neighbor.token_used).symbol,
            ))
        return tuple(yields)

    def yield_info(self, location: int, cap_hours: float = DEFAULT_DURATION_CAP_HOURS) -> YieldInfo:
        return self.cache.memo(
            "neighbor_yield", ("info", location, cap_hours),
            lambda: self._yield_info(location, cap_hours),
        )

    def _yield_info(self, location, cap_hours):
        tile = self.world.tile(location)
        if tile is None or self.world.is_auctioned(location):
            return NO_YIELD

        my_price = self.tax.price_reference(tile) or 0.0
        my_time = self.risk.time_remaining_hours(location)
        neighbors = self.neighbor_yields(location, cap_hours, my_time)

        paid_hourly = 0.0
        paid_total = 0.0
        longest = 0.0
        if tile.sell_price:
            per_neighbor = my_price * self.tax.rate(tile.level, location)
            for n in self.world.neighbors.neighbors(location):
                if not self.world.is_taxable(n):
                    continue
                remaining = self.risk.time_remaining_hours(n)
                if remaining <= 0:
                    continue
                paid_hourly += per_neighbor
                paid_total += per_neighbor * min(my_time, remaining, cap_hours)

        for ny in neighbors:
            longest = max(longest, ny.time_remaining)

        return YieldInfo(
            yield_per_hour=sum(ny.hourly_yield for ny in neighbors) - paid_hourly,
            total_yield=sum(ny.total_yield for ny in neighbors) - paid_total - my_price,
            tax_paid_total=paid_total,
            longest_neighbor_duration=longest,
            neighbors=neighbors,
        )

    def purchase_recommendation(self, location: int, current_price: Optional[float] = None,
                                cap_hours: float = DEFAULT_DURATION_CAP_HOURS) -> PurchaseRecommendation:
        return self.cache.memo(
            "purchase", (location, current_price, cap_hours),
            lambda: self._purchase_recommendation(location, current_price, cap_hours),
        )

    def _purchase_recommendation(self, location, current_price, cap_hours):
        tile = self.world.tile(location)
        token = self.world.tokens.lookup(tile.token_used if tile else "")
        price = current_price
        if not price and tile is not None:
            price = self.tax.price_reference(tile)
        price = price or 0.0

        neighbors = self.neighbor_yields(location, cap_hours)
        max_yield = sum(ny.total_yield for ny in neighbors)
        hourly_yield = sum(ny.hourly_yield for ny in neighbors)
        longest = max((ny.time_remaining for ny in neighbors), default=0.0)

        def verdict(recommended, per_hour, total, ok, reason):
            return PurchaseRecommendation(
                current_price=price,
                max_yield=max_yield,
                recommended_price=recommended,
                required_tax_per_hour=per_hour,
                required_total_tax=total,
                yield_duration=longest,
                neighbor_count=len(neighbors),
                is_recommended=ok,
                reason=reason,
                symbol=token.symbol,
                neighbors=neighbors,
            )

        if max_yield <= 0:
            return verdict(price, 0.0, 0.0, False, "No profitable neighbors")

        # a buyer starts at the base level
        rate = self.tax.rate(Level.ZERO, location)
        taxed_durations = [
            min(cap_hours, self.risk.time_remaining_hours(n))
            for n in self.world.neighbors.neighbors(location)
            if self.world.is_taxable(n) and self.risk.time_remaining_hours(n) > 0
        ]

        def required_tax(at_price):
            per_hour = at_price * rate
            return per_hour, sum(per_hour * d for d in taxed_durations)

        per_hour, total = required_tax(price)
        if hourly_yield <= 0:
            return verdict(price, per_hour, total, False, "No yield potential")
        if max_yield - total - price <= price * RECOMMENDED_MARGIN:
            return verdict(price, per_hour, total, False, "Low profitability")

        first_hour = sum(ny.hourly_yield * min(1.0, ny.time_remaining) for ny in neighbors)
        recommended = price + FIRST_HOUR_SHARE * first_hour
        per_hour, total = required_tax(recommended)
        return verdict(recommended, per_hour, total, True, "Profitable")
