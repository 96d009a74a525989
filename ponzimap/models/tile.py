from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

NukableStatus = Union[Literal["nukable", "warning"], Literal[False]]


def _finite(value: Optional[float]) -> Optional[float]:
    # JSON has no infinity; "unbounded" goes out as null
    if value is None or not math.isfinite(value):
        return None
    return value


class Level(Enum):
    ZERO = "zero"
    FIRST = "first"
    SECOND = "second"

    @classmethod
    def parse(cls, raw: Any) -> "Level":
        if isinstance(raw, Level):
            return raw
        text = str(raw or "").strip().lower()
        for level in cls:
            if level.value == text:
                return level
        return cls.ZERO


@dataclass(frozen=True)
class Tile:
    location: int
    token_used: str = ""
    sell_price: Optional[int] = None  # scaled by the token's decimals, None = not for sale
    owner: Optional[str] = None
    level: Level = Level.ZERO
    staked_amount: int = 0

    @property
    def is_owned(self) -> bool:
        return bool(self.owner)

    def to_front(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "tokenUsed": self.token_used,
            "sellPrice": str(self.sell_price) if self.sell_price is not None else None,
            "owner": self.owner,
            "level": self.level.value,
            "stakedAmount": str(self.staked_amount),
        }


@dataclass(frozen=True)
class Auction:
    location: int
    start_time: int
    start_price: int
    floor_price: int = 0
    decay_rate: Optional[int] = None

    def to_front(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "startTime": self.start_time,
            "startPrice": str(self.start_price),
            "floorPrice": str(self.floor_price),
            "decayRate": self.decay_rate,
        }


@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    ratio: Optional[float]  # None = price unknown
    decimals: int = 18

    def to_front(self) -> Dict[str, Any]:
        return {"symbol": self.symbol, "ratio": self.ratio, "decimals": self.decimals}


@dataclass(frozen=True)
class TaxInfo:
    tax_paid: float = 0.0
    tax_received: float = 0.0
    profit_per_hour: float = 0.0

    def to_front(self) -> Dict[str, Any]:
        return {
            "taxPaid": self.tax_paid,
            "taxReceived": self.tax_received,
            "profitPerHour": self.profit_per_hour,
        }


NO_TAX = TaxInfo()


@dataclass(frozen=True)
class NeighborYield:
    location: int
    price_reference: float
    tax_rate: float
    hourly_yield: float
    time_remaining: float
    total_yield: float
    symbol: str

    def to_front(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "priceReference": self.price_reference,
            "taxRate": self.tax_rate,
            "hourlyYield": self.hourly_yield,
            "timeRemaining": _finite(self.time_remaining),
            "totalYield": self.total_yield,
            "symbol": self.symbol,
        }


@dataclass(frozen=True)
class YieldInfo:
    yield_per_hour: float = 0.0
    total_yield: float = 0.0
    tax_paid_total: float = 0.0
    longest_neighbor_duration: float = 0.0
    neighbors: Tuple[NeighborYield, ...] = ()

    def to_front(self) -> Dict[str, Any]:
        return {
            "yieldPerHour": self.yield_per_hour,
            "totalYield": self.total_yield,
            "taxPaidTotal": self.tax_paid_total,
            "longestNeighborDuration": _finite(self.longest_neighbor_duration),
            "neighbors": [n.to_front() for n in self.neighbors],
        }


NO_YIELD = YieldInfo()


@dataclass(frozen=True)
class PurchaseRecommendation:
    current_price: float
    max_yield: float
    recommended_price: float
    required_tax_per_hour: float
    required_total_tax: float
    yield_duration: float
    neighbor_count: int
    is_recommended: bool
    reason: str
    symbol: str
    neighbors: Tuple[NeighborYield, ...] = ()

    def to_front(self) -> Dict[str, Any]:
        return {
            "currentPrice": self.current_price,
            "maxYield": self.max_yield,
            "recommendedPrice": self.recommended_price,
            "requiredTaxPerHour": self.required_tax_per_hour,
            "requiredTotalTax": self.required_total_tax,
            "requiredStakeForFullYield": self.required_total_tax,
            "yieldDuration": _finite(self.yield_duration),
            "neighborCount": self.neighbor_count,
            "isRecommended": self.is_recommended,
            "reason": self.reason,
            "symbol": self.symbol,
            "neighbors": [n.to_front() for n in self.neighbors],
        }


@dataclass(frozen=True)
class TileDetails:
    location: int
    coords: Tuple[int, int]  # (col, row)
    tile: Optional[Tile]
    auction: Optional[Auction]
    token: TokenInfo
    tax_info: TaxInfo
    yield_info: YieldInfo
    price_reference: Optional[float]  # None = unpriced token or not for sale
    burn_rate: float
    time_remaining: float
    nukable: NukableStatus
    roi: float
    opportunity: float
    auction_price: Optional[float] = None
    potential_yield: Optional[float] = None
    auction_roi: Optional[float] = None
    recommendation: Optional[PurchaseRecommendation] = None

    def to_front(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "coords": list(self.coords),
            "land": self.tile.to_front() if self.tile else None,
            "auction": self.auction.to_front() if self.auction else None,
            "token": self.token.to_front(),
            "taxInfo": self.tax_info.to_front(),
            "yieldInfo": self.yield_info.to_front(),
            "priceReference": self.price_reference,
            "burnRate": self.burn_rate,
            "timeRemaining": _finite(self.time_remaining),
            "nukableStatus": self.nukable,
            "roi": self.roi,
            "opportunity": self.opportunity,
            "auctionPrice": self.auction_price,
            "potentialYieldAuction": self.potential_yield,
            "auctionROI": self.auction_roi,
            "purchaseRecommendation": self.recommendation.to_front() if self.recommendation else None,
        }


@dataclass(frozen=True)
class RiskEntry:
    location: int
    coords: Tuple[int, int]
    time_remaining: float
    value: Optional[float]
    symbol: str

    def to_front(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "coords": list(self.coords),
            "timeRemaining": _finite(self.time_remaining),
            "value": self.value,
            "symbol": self.symbol,
        }


@dataclass
class PortfolioMetrics:
    owners: Tuple[str, ...]
    holdings: int = 0
    total_value: float = 0.0
    total_yield_per_hour: float = 0.0
    total_tax_paid_per_hour: float = 0.0
    total_staked: float = 0.0
    unpriced_holdings: int = 0
    lands_by_level: Dict[str, int] = field(default_factory=dict)
    nukable: List[RiskEntry] = field(default_factory=list)
    warning: List[RiskEntry] = field(default_factory=list)

    def to_front(self) -> Dict[str, Any]:
        return {
            "owners": list(self.owners),
            "holdings": self.holdings,
            "totalValue": self.total_value,
            "totalYieldPerHour": self.total_yield_per_hour,
            "totalTaxPaidPerHour": self.total_tax_paid_per_hour,
            "totalStaked": self.total_staked,
            "unpricedHoldings": self.unpriced_holdings,
            "landsByLevel": dict(self.lands_by_level),
            "nukable": [e.to_front() for e in self.nukable],
            "warning": [e.to_front() for e in self.warning],
        }
