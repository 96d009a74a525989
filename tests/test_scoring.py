import math

import pytest

from ponzimap.scoring import auction_roi, opportunity_intensity, roi

from factories import BOB, E18, auction, land, make_session, pair_session


def test_roi():
    assert roi(5, 50) == pytest.approx(10.0)
    assert roi(5, 0) == 0.0
    assert roi(5, None) == 0.0
    assert roi(-3, 30) == pytest.approx(-10.0)


def test_opportunity_intensity_thresholds():
    assert opportunity_intensity(5, 20) == pytest.approx(0.25)
    assert opportunity_intensity(4, 10) == 0.0  # profit not above 4
    assert opportunity_intensity(5, 100) == 0.0  # roi 5%
    assert opportunity_intensity(50, 10) == 1.0  # capped


def test_auction_roi_needs_both_positive():
    assert auction_roi(2, 10) == pytest.approx(20.0)
    assert auction_roi(0, 10) is None
    assert auction_roi(2, 0) is None
    assert auction_roi(None, 10) is None


def test_yield_info_for_owned_tile():
    ev = pair_session().evaluator
    info = ev.scorer.yield_info(0, cap_hours=12)

    # A: burns 10/h on a stake of 1000 -> 100h; B: burns 3/h -> 333h
    assert info.yield_per_hour == pytest.approx(3 - 10)
    assert info.tax_paid_total == pytest.approx(10 * 12)
    assert info.total_yield == pytest.approx(3 * 12 - 120 - 300)
    assert info.longest_neighbor_duration == pytest.approx(1000 / 3)
    assert [n.location for n in info.neighbors] == [1]
    assert info.neighbors[0].hourly_yield == pytest.approx(3.0)


def test_neighbor_yield_bounded_by_own_time():
    ev = pair_session().evaluator
    (ny,) = ev.scorer.neighbor_yields(0, cap_hours=12, my_time_remaining=2)
    assert ny.total_yield == pytest.approx(6.0)


def _auction_next_to_payer():
    # B at 1 pays 3/h to each owned neighbour and never runs out (nothing around it is taxed)
    return make_session(
        lands=[land(1, 150 * E18, owner=BOB, staked=10 * E18)],
        auctions=[auction(0, 100 * E18)],
    )


def test_purchase_recommended_when_profitable():
    rec = _auction_next_to_payer().evaluator.scorer.purchase_recommendation(0, 10.0, cap_hours=12)

    assert rec.max_yield == pytest.approx(36.0)
    assert rec.is_recommended is True
    assert rec.reason == "Profitable"
    assert rec.neighbor_count == 1
    # 10 + 0.8 * one hour of yield
    assert rec.recommended_price == pytest.approx(12.4)
    assert rec.required_tax_per_hour == pytest.approx(12.4 * 0.1 / 3)
    assert rec.required_total_tax == pytest.approx(12.4 * 0.1 / 3 * 12)
    assert rec.to_front()["requiredStakeForFullYield"] == rec.required_total_tax
    assert math.isinf(rec.yield_duration)
    assert rec.to_front()["yieldDuration"] is None


def test_purchase_rejected_when_too_expensive():
    rec = _auction_next_to_payer().evaluator.scorer.purchase_recommendation(0, 1000.0, cap_hours=12)
    assert rec.is_recommended is False
    assert rec.reason == "Low profitability"
    assert rec.recommended_price == 1000.0


def test_purchase_without_neighbours():
    rec = make_session(auctions=[auction(20, 100 * E18)]).evaluator.scorer.purchase_recommendation(20, 5.0)
    assert rec.is_recommended is False
    assert rec.reason == "No profitable neighbors"
    assert rec.max_yield == 0.0
