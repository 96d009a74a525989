"""Per-process session: current raw inputs, the derived-value cache, refresh ordering.

Every refresh goes through a ticket. ``begin`` hands out a number that grows per
feed; a commit only lands if its ticket is newer than the last one committed for
that feed, so a slow fetch that finishes after a faster, later one is thrown
away instead of overwriting fresher data. A failed fetch changes nothing.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ponzimap.auction import AuctionParams
from ponzimap.cache import AUCTIONS, LANDS, PRICES, STAKES, IncrementalCache
from ponzimap.config import Settings
from ponzimap.engine import Evaluator
from ponzimap.grid import GridModel, GridSnapshot, NeighborIndex, in_bounds
from ponzimap.models.records import (
    AuctionRecord,
    ConfigRecord,
    LandRecord,
    PriceRecord,
    StakeRecord,
    parse_rows,
)
from ponzimap.models.tile import Auction, PortfolioMetrics, TileDetails
from ponzimap.tokens import TokenPriceIndex
from ponzimap.world import World

log = logging.getLogger(__name__)

FEEDS: Tuple[str, ...] = ("lands", "auctions", "prices", "config")


class Session:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.lock = threading.RLock()
        self.cache = IncrementalCache(self.settings.cache_max_entries)
        self.grid_model = GridModel(self.settings.grid_size)
        self.neighbors = NeighborIndex(self.settings.grid_size)

        self.lands: Tuple[LandRecord, ...] = ()
        self.stakes: Tuple[StakeRecord, ...] = ()
        self.auction_records: Tuple[AuctionRecord, ...] = ()
        self.prices: Tuple[PriceRecord, ...] = ()
        self.config: Optional[ConfigRecord] = None

        self.grid: GridSnapshot = self.grid_model.empty()
        self.tokens = TokenPriceIndex((), self.settings.reference_tokens)
        self.params = AuctionParams()

        self._issued: Dict[str, int] = {f: 0 for f in FEEDS}
        self._committed: Dict[str, int] = {f: 0 for f in FEEDS}
        self.updated_at: Dict[str, float] = {}
        self.failures: Counter = Counter()
        self.last_error: Dict[str, str] = {}
        self.stale_discarded: Counter = Counter()

        self._rebuild()

    # ---- refresh protocol ----

    def begin(self, feed: str) -> int:
        with self.lock:
            if feed not in self._issued:
                raise ValueError(f"unknown feed: {feed}")
            self._issued[feed] += 1
            return self._issued[feed]

    def _accept(self, feed: str, ticket: int) -> bool:
        if ticket > self._issued[feed]:
            raise ValueError(f"ticket {ticket} was never issued for {feed}")
        if ticket <= self._committed[feed]:
            self.stale_discarded[feed] += 1
            log.info("discarding stale %s refresh #%d (already at #%d)", feed, ticket, self._committed[feed])
            return False
        self._committed[feed] = ticket
        self.updated_at[feed] = time.time()
        self.last_error.pop(feed, None)
        return True

    def fail(self, feed: str, ticket: int, error: BaseException) -> None:
        with self.lock:
            self.failures[feed] += 1
            self.last_error[feed] = str(error)
        log.error("%s refresh #%d failed, keeping the last good data: %s", feed, ticket, error)

    def commit_lands(self, ticket: int, land_rows: Optional[Iterable[Any]],
                     stake_rows: Optional[Iterable[Any]] = ()) -> bool:
        with self.lock:
            if not self._accept("lands", ticket):
                return False
            lands = tuple(sorted(parse_rows(LandRecord, land_rows, "land"), key=lambda r: r.location))
            stakes = tuple(sorted(parse_rows(StakeRecord, stake_rows, "stake"), key=lambda r: r.location))

            changed = False
            if lands != self.lands:
                self.lands = lands
                self.cache.bump(LANDS)
                changed = True
            if stakes != self.stakes:
                self.stakes = stakes
                self.cache.bump(STAKES)
                changed = True
            if changed:
                self.grid = self.grid_model.build(self.lands, self.stakes)
                if self.neighbors.sync(self.grid.active_locations):
                    log.debug("active locations changed, neighbour memo dropped")
                self._rebuild()
            return True

    def commit_auctions(self, ticket: int, rows: Optional[Iterable[Any]]) -> bool:
        with self.lock:
            if not self._accept("auctions", ticket):
                return False
            records = []
            for r in parse_rows(AuctionRecord, rows, "auction"):
                if r.is_finished:
                    continue
                if not in_bounds(r.land_location, self.grid_model.size):
                    log.warning("dropping auction outside the %dx%d grid: %d",
                                self.grid_model.size, self.grid_model.size, r.land_location)
                    continue
                records.append(r)
            active = tuple(sorted(records, key=lambda r: r.land_location))
            if active != self.auction_records:
                self.auction_records = active
                self.cache.bump(AUCTIONS)
                self._rebuild()
            return True

    def commit_prices(self, ticket: int, rows: Optional[Iterable[Any]]) -> bool:
        with self.lock:
            if not self._accept("prices", ticket):
                return False
            prices = tuple(sorted(parse_rows(PriceRecord, rows, "price"), key=lambda r: r.address))
            if prices != self.prices:
                self.prices = prices
                self.tokens = TokenPriceIndex(prices, self.settings.reference_tokens)
                self.cache.bump(PRICES)
                self._rebuild()
            return True

    def commit_config(self, ticket: int, rows: Optional[Iterable[Any]]) -> bool:
        with self.lock:
            if not self._accept("config", ticket):
                return False
            parsed = parse_rows(ConfigRecord, rows, "config")
            config = parsed[0] if parsed else None
            if config != self.config:
                self.config = config
                self.params = AuctionParams.from_config(config)
                # decay parameters only feed auction prices
                self.cache.bump(AUCTIONS)
                self._rebuild()
            return True

    # ---- evaluation ----

    def _rebuild(self) -> None:
        auctions: Dict[int, Auction] = {}
        for r in self.auction_records:
            auctions[r.land_location] = Auction(
                location=r.land_location,
                start_time=r.start_time,
                start_price=r.start_price,
                floor_price=r.floor_price,
                decay_rate=r.decay_rate,
            )
        self.world = World(
            grid=self.grid,
            neighbors=self.neighbors,
            tokens=self.tokens,
            auctions=auctions,
            params=self.params,
            fallback_decay_rate=self.config.decay_rate if self.config else None,
        )
        self.evaluator = Evaluator(self.world, self.cache)

    def tile_details(self, location: int, now: Optional[float] = None) -> TileDetails:
        with self.lock:
            return self.evaluator.tile_details(location, now)

    def all_tile_details(self, now: Optional[float] = None) -> List[TileDetails]:
        with self.lock:
            return self.evaluator.all_tile_details(now)

    def portfolio(self, owners: Iterable[str]) -> PortfolioMetrics:
        with self.lock:
            return self.evaluator.portfolio(owners)

    def auctions(self, now: Optional[float] = None) -> List[Dict[str, Any]]:
        with self.lock:
            out = []
            for location in sorted(self.world.auctions):
                tile = self.grid.tile(location)
                row = self.world.auctions[location].to_front()
                row["currentPrice"] = str(self.evaluator.auction_price(location, now))
                row["symbol"] = self.tokens.lookup(tile.token_used if tile else "").symbol
                out.append(row)
            return out

    def state(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "lands": len(self.grid),
                "auctions": len(self.world.auctions),
                "prices": len(self.prices),
                "gridSize": self.grid.size,
                "committed": dict(self._committed),
                "updatedAt": dict(self.updated_at),
                "failures": dict(self.failures),
                "lastError": dict(self.last_error),
                "staleDiscarded": dict(self.stale_discarded),
                "cache": self.cache.stats(),
            }
