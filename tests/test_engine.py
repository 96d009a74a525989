import pytest

from factories import ALICE, BOB, E18, STRK, auction, land, make_session, pair_session


def test_tile_details_for_owned_tile():
    details = pair_session().tile_details(0, now=2000)
    assert details.coords == (0, 0)
    assert details.price_reference == pytest.approx(300.0)
    assert details.tax_info.profit_per_hour == pytest.approx(-7.0)
    assert details.roi == pytest.approx(-7.0 / 300 * 100)
    assert details.opportunity == 0.0
    assert details.nukable is False
    assert details.auction is None
    assert details.auction_price is None
    assert details.recommendation is None


def test_tile_details_for_profitable_tile_has_opportunity():
    details = pair_session().tile_details(1, now=2000)
    # B earns 10 and pays 3 on a price of 150: 4.67% an hour
    assert details.tax_info.profit_per_hour == pytest.approx(7.0)
    assert details.roi == pytest.approx(7.0 / 150 * 100)
    assert details.opportunity == 0.0


def test_tile_details_for_auction():
    session = pair_session(auctions=[auction(2, 100 * E18, start_time=1000)])
    details = session.tile_details(2, now=1000)
    assert details.tile is None
    assert details.auction_price == pytest.approx(100.0)
    assert details.potential_yield == pytest.approx(3.0)
    assert details.auction_roi == pytest.approx(3.0)
    assert details.recommendation is not None
    assert details.to_front()["auctionROI"] == pytest.approx(3.0)


def test_auction_uses_config_decay_rate():
    session = make_session(
        auctions=[auction(2, 100 * E18, start_time=1000)],
        config=[{"decay_rate": "10"}],
    )
    assert session.world.fallback_decay_rate == 10
    assert session.evaluator.auction_price(2, now=1000 + 2400) == 10 * E18
    assert session.evaluator.auction_price(5, now=1000) is None


def test_tile_details_rejects_off_grid():
    session = pair_session()
    with pytest.raises(ValueError):
        session.tile_details(64)


def test_all_tile_details_covers_lands_and_auctions():
    session = pair_session(auctions=[auction(20, 100 * E18)])
    assert [d.location for d in session.all_tile_details(now=1000)] == [0, 1, 20]


def test_portfolio_metrics():
    session = make_session(lands=[
        land(0, 300 * E18, owner=ALICE, staked=0),
        land(1, 150 * E18, owner=BOB, staked=100 * E18),
        land(2, 50 * E18, owner=ALICE, token=STRK, level="second", staked=E18),
    ])
    metrics = session.portfolio(["0x000A11CE"])

    assert metrics.owners == (ALICE,)
    assert metrics.holdings == 2
    assert metrics.unpriced_holdings == 1
    assert metrics.total_value == pytest.approx(300.0)
    assert metrics.lands_by_level == {"zero": 1, "second": 1}
    assert [e.location for e in metrics.nukable] == [0]
    assert metrics.to_front()["nukable"][0]["timeRemaining"] == 0.0


def test_portfolio_without_owners_is_empty():
    metrics = pair_session().portfolio([])
    assert metrics.holdings == 0
    assert metrics.total_value == 0.0
