import pytest

from ponzimap.models.records import PriceRecord
from ponzimap.tokens import REFERENCE_INFO, TokenPriceIndex, to_native, to_reference

from factories import STRK, USDC


def test_reference_aliases_resolve_to_ratio_one():
    index = TokenPriceIndex()
    for token in ("", "0", "0x0", "0x0000", None):
        assert index.lookup(token) is REFERENCE_INFO
    assert REFERENCE_INFO.ratio == 1.0


def test_registry_token_without_price_is_unpriced():
    info = TokenPriceIndex().lookup(STRK)
    assert info.symbol == "STRK"
    assert info.ratio is None
    assert TokenPriceIndex().lookup(USDC).decimals == 6


def test_unknown_token():
    info = TokenPriceIndex().lookup("0xdead")
    assert info.symbol == "Unknown"
    assert info.ratio is None
    assert "0xdead" not in TokenPriceIndex()


def test_priced_token_uses_registry_decimals():
    index = TokenPriceIndex([PriceRecord(symbol="USDC", address=USDC, ratio=2.0)])
    assert index.reference_value(USDC, 10 * 10 ** 6) == pytest.approx(5.0)
    assert index.native_value(USDC, 10 * 10 ** 6) == pytest.approx(10.0)


def test_reference_symbol_in_feed_and_configured_reference_address():
    index = TokenPriceIndex(
        [PriceRecord(symbol="nftSTRK", address="0x0123", ratio=3.0)],
        reference_addresses=["0x0ABC"],
    )
    assert index.lookup("0x123") is REFERENCE_INFO
    assert index.lookup("0xabc") is REFERENCE_INFO


def test_conversions_degrade_when_unpriced():
    info = TokenPriceIndex().lookup(STRK)
    assert to_reference(5 * 10 ** 18, info) is None
    assert to_native(5 * 10 ** 18, info) == pytest.approx(5.0)
    assert to_native(None, info) == 0.0
