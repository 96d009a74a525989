import math

from ponzimap.formatting import (
    display_coordinates,
    format_price,
    format_ratio,
    format_time_remaining,
    format_yield,
)


def test_format_ratio():
    assert format_ratio(None) == "N/A"
    assert format_ratio(2.5) == "2.50"
    assert format_ratio(0.0123) == "0.0123"


def test_format_price():
    assert format_price(None) == "Not for sale"
    assert format_price(1234 * 10 ** 18 + 5 * 10 ** 17) == "1234.50"
    assert format_price(2 * 10 ** 6, decimals=6) == "2.00"


def test_format_time_remaining():
    assert format_time_remaining(0) == "NUKABLE"
    assert format_time_remaining(math.inf) == "∞"
    assert format_time_remaining(0.1) == "⚠️ 6m"
    assert format_time_remaining(3.2) == "3h 12m"


def test_format_yield():
    assert format_yield(0) == "0/h"
    assert format_yield(0.005) == "< 0.01/h"
    assert format_yield(1.234) == "+1.23/h"
    assert format_yield(-2) == "-2.00/h"


def test_display_coordinates():
    assert display_coordinates(3, 4) == "(3, 4)"
