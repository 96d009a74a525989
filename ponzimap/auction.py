"""Auction price decay, reproducing the on-chain pricing contract.

All arithmetic is on Python ints scaled by 10**18 with truncating division in
the contract's exact order; changing the order changes the integer result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from ponzimap.constants import (
    AUCTION_DURATION,
    DECIMALS_FACTOR,
    DROP_RATE,
    LINEAR_DECAY_TIME,
    RATE_DENOMINATOR,
    SCALING_FACTOR,
    TIME_SPEED,
)
from ponzimap.models.records import ConfigRecord
from ponzimap.models.tile import Auction

log = logging.getLogger(__name__)

D = DECIMALS_FACTOR


@dataclass(frozen=True)
class AuctionParams:
    auction_duration: int = AUCTION_DURATION
    linear_decay_time: int = LINEAR_DECAY_TIME
    drop_rate: int = DROP_RATE
    rate_denominator: int = RATE_DENOMINATOR
    scaling_factor: int = SCALING_FACTOR
    time_speed: int = TIME_SPEED

    @property
    def real_duration_seconds(self) -> int:
        """Wall-clock seconds after which the price sits at the floor."""
        return -(-self.auction_duration // self.time_speed)

    @classmethod
    def from_config(cls, config: Optional[ConfigRecord]) -> "AuctionParams":
        params = cls()
        if config is None:
            return params
        overrides = {}
        for name in ("auction_duration", "linear_decay_time", "drop_rate",
                     "rate_denominator", "scaling_factor", "time_speed"):
            value = getattr(config, name)
            if value is None:
                continue
            if value <= 0 and name != "drop_rate":
                log.warning("ignoring non-positive config %s=%s", name, value)
                continue
            overrides[name] = value
        return replace(params, **overrides)


DEFAULT_PARAMS = AuctionParams()


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def current_auction_price(start_time: int, start_price: int, floor_price: int, decay_rate: int,
                          now: int, params: AuctionParams = DEFAULT_PARAMS) -> int:
    now = int(now)
    elapsed = (now - start_time) * params.time_speed if now > start_time else 0

    if elapsed >= params.auction_duration:
        return floor_price

    if elapsed <= params.linear_decay_time:
        time_fraction = _tdiv(elapsed * D, params.linear_decay_time)
        linear_factor = D - _tdiv(params.drop_rate * time_fraction, params.rate_denominator)
        price = _tdiv(start_price * linear_factor, D)
    else:
        remaining_rate = params.rate_denominator - params.drop_rate
        price_after_linear = _tdiv(start_price * remaining_rate, params.rate_denominator)

        progress = _tdiv(elapsed * D, params.auction_duration)
        k = _tdiv(decay_rate * D, params.scaling_factor)
        # (1 / (1 + k*t))^2, every term kept in the 1e18 domain
        denominator = D + _tdiv(k * progress, D)
        if denominator != 0:
            temp = _tdiv(D * D, denominator)
            decay_factor = _tdiv(temp * temp, D)
        else:
            decay_factor = 0
        price = _tdiv(price_after_linear * decay_factor, D)

    return price if price > floor_price else floor_price


def auction_price(auction: Auction, now: int, params: AuctionParams = DEFAULT_PARAMS,
                  fallback_decay_rate: Optional[int] = None) -> int:
    decay_rate = auction.decay_rate if auction.decay_rate is not None else fallback_decay_rate
    if decay_rate is None:
        # without a decay rate there is no curve to follow
        return max(auction.start_price, auction.floor_price)
    return current_auction_price(
        auction.start_time, auction.start_price, auction.floor_price, decay_rate, now, params
    )


def to_reference_units(raw: int) -> float:
    return float(Decimal(raw) / Decimal(D))
