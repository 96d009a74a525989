"""Versioned memoisation for the derived per-tile values.

Four generation counters (one per raw input category) are plain fields of the
cache object. Every partition declares which categories it depends on; its
keys embed those generations, and bumping a category clears exactly the
partitions that depend on it. Clearing is per partition, not per key, and a
partition that grows past ``max_entries`` is dropped wholesale. Both are
deliberate simplifications: per-key invalidation would be an enhancement, not
a change of what depends on what.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Tuple, TypeVar

from ponzimap.constants import CACHE_MAX_ENTRIES

log = logging.getLogger(__name__)

T = TypeVar("T")

LANDS = "lands"
AUCTIONS = "auctions"
STAKES = "stakes"
PRICES = "prices"
CATEGORIES: Tuple[str, ...] = (LANDS, AUCTIONS, STAKES, PRICES)

PARTITIONS: Dict[str, Tuple[str, ...]] = {
    "tax_rate": (),
    "burn_rate": (LANDS, AUCTIONS),
    "time_remaining": (LANDS, AUCTIONS, STAKES),
    "nukable": (LANDS, AUCTIONS, STAKES),
    "tax_info": (LANDS, AUCTIONS, PRICES),
    "potential_yield": (LANDS, AUCTIONS, PRICES),
    "neighbor_yield": (LANDS, AUCTIONS, STAKES, PRICES),
    "purchase": (LANDS, AUCTIONS, STAKES, PRICES),
    "auction_price": (AUCTIONS,),
}


class IncrementalCache:
    def __init__(self, max_entries: int = CACHE_MAX_ENTRIES,
                 partitions: Optional[Mapping[str, Tuple[str, ...]]] = None):
        self.max_entries = max_entries
        self.dependencies: Dict[str, Tuple[str, ...]] = dict(partitions or PARTITIONS)
        for name, deps in self.dependencies.items():
            unknown = set(deps) - set(CATEGORIES)
            if unknown:
                raise ValueError(f"partition {name} depends on unknown categories {sorted(unknown)}")
        self.generations: Dict[str, int] = {c: 0 for c in CATEGORIES}
        self._store: Dict[str, Dict[Hashable, Any]] = {p: {} for p in self.dependencies}
        self.hits: Counter = Counter()
        self.misses: Counter = Counter()
        self.clears: Counter = Counter()

    def _partition(self, name: str) -> Dict[Hashable, Any]:
        try:
            return self._store[name]
        except KeyError:
            raise ValueError(f"unknown cache partition: {name}") from None

    def key_for(self, partition: str, key: Hashable) -> Tuple[Hashable, ...]:
        deps = self.dependencies[partition]
        return (key,) + tuple(self.generations[c] for c in deps)

    def memo(self, partition: str, key: Hashable, calculator: Callable[[], T]) -> T:
        store = self._partition(partition)
        full_key = self.key_for(partition, key)
        if full_key in store:
            self.hits[partition] += 1
            return store[full_key]

        self.misses[partition] += 1
        value = calculator()
        if len(store) >= self.max_entries:
            log.debug("cache partition %s hit %d entries, clearing", partition, len(store))
            store.clear()
            self.clears[partition] += 1
        store[full_key] = value
        return value

    def bump(self, category: str) -> int:
        if category not in self.generations:
            raise ValueError(f"unknown input category: {category}")
        self.generations[category] += 1
        for partition, deps in self.dependencies.items():
            if category in deps and self._store[partition]:
                self._store[partition].clear()
                self.clears[partition] += 1
        log.debug("bumped %s to generation %d", category, self.generations[category])
        return self.generations[category]

    def clear(self) -> None:
        for store in self._store.values():
            store.clear()

    def size(self, partition: str) -> int:
        return len(self._partition(partition))

    def stats(self) -> Dict[str, Any]:
        return {
            "generations": dict(self.generations),
            "sizes": {p: len(s) for p, s in self._store.items()},
            "hits": dict(self.hits),
            "misses": dict(self.misses),
            "clears": dict(self.clears),
            "maxEntries": self.max_entries,
        }
