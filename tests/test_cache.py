import pytest

from ponzimap.cache import AUCTIONS, LANDS, PRICES, STAKES, IncrementalCache
from ponzimap.engine import Evaluator

from factories import E18, USDC, pair_session, price


class Counting:
    def __init__(self, fn):
        self.fn = fn
        self.calls = 0

    def __call__(self, *args):
        self.calls += 1
        return self.fn(*args)


def test_memo_returns_the_same_object_without_recomputing():
    cache = IncrementalCache()
    calc = Counting(lambda: {"value": 1})
    first = cache.memo("tax_info", 7, calc)
    second = cache.memo("tax_info", 7, calc)
    assert first is second
    assert calc.calls == 1
    assert cache.hits["tax_info"] == 1
    assert cache.misses["tax_info"] == 1


def test_key_embeds_only_dependency_generations():
    cache = IncrementalCache()
    cache.bump(PRICES)
    assert cache.key_for("burn_rate", 5) == (5, 0, 0)
    assert cache.key_for("tax_info", 5) == (5, 0, 0, 1)
    assert cache.key_for("tax_rate", 5) == (5,)


def test_bump_clears_exactly_the_dependent_partitions():
    cache = IncrementalCache()
    for partition in ("burn_rate", "nukable", "tax_info", "neighbor_yield", "auction_price"):
        cache.memo(partition, 1, lambda: 0)

    cache.bump(PRICES)
    assert cache.size("burn_rate") == 1
    assert cache.size("nukable") == 1
    assert cache.size("auction_price") == 1
    assert cache.size("tax_info") == 0
    assert cache.size("neighbor_yield") == 0

    cache.bump(STAKES)
    assert cache.size("burn_rate") == 1
    assert cache.size("nukable") == 0

    cache.bump(AUCTIONS)
    assert cache.size("auction_price") == 0
    assert cache.generations == {LANDS: 0, AUCTIONS: 1, STAKES: 1, PRICES: 1}


def test_partition_cleared_when_full():
    cache = IncrementalCache(max_entries=3)
    for key in range(4):
        cache.memo("burn_rate", key, lambda: key)
    assert cache.size("burn_rate") == 1
    assert cache.clears["burn_rate"] == 1


def test_unknown_names_are_rejected():
    cache = IncrementalCache()
    with pytest.raises(ValueError):
        cache.memo("nope", 1, lambda: 0)
    with pytest.raises(ValueError):
        cache.bump("weather")
    with pytest.raises(ValueError):
        IncrementalCache(partitions={"x": ("weather",)})


def test_evaluator_does_not_recompute_unchanged_values(monkeypatch):
    ev = Evaluator(pair_session().world, IncrementalCache())
    tax_calc = Counting(ev.tax._tax_info)
    monkeypatch.setattr(ev.tax, "_tax_info", tax_calc)

    first = ev.tax_info(0)
    assert ev.tax_info(0) is first
    assert tax_calc.calls == 1


def test_price_bump_spares_burn_rate_and_nukable(monkeypatch):
    ev = Evaluator(pair_session().world, IncrementalCache())
    burn_calc = Counting(ev.risk._burn_rate)
    tax_calc = Counting(ev.tax._tax_info)
    monkeypatch.setattr(ev.risk, "_burn_rate", burn_calc)
    monkeypatch.setattr(ev.tax, "_tax_info", tax_calc)

    ev.burn_rate(0)
    ev.nukable_status(0)
    ev.tax_info(0)
    nukable_misses = ev.cache.misses["nukable"]

    ev.cache.bump(PRICES)
    ev.burn_rate(0)
    ev.nukable_status(0)
    ev.tax_info(0)

    assert burn_calc.calls == 1
    assert ev.cache.misses["nukable"] == nukable_misses
    assert tax_calc.calls == 2


def test_session_price_change_invalidates_tax_but_not_burn():
    session = pair_session()
    session.evaluator.burn_rate(0)
    session.evaluator.tax_info(0)
    misses = dict(session.cache.misses)

    session.commit_prices(session.begin("prices"), [price("USDC", USDC, 2.0)])
    session.evaluator.burn_rate(0)
    session.evaluator.tax_info(0)

    assert session.cache.misses["burn_rate"] == misses["burn_rate"]
    assert session.cache.misses["tax_info"] == misses["tax_info"] + 1
    assert session.evaluator.tax_info(0).tax_paid == pytest.approx(10.0)
    assert session.cache.generations[PRICES] == 1
