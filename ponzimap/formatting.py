from __future__ import annotations

import math
from typing import Any, Dict, Optional

from ponzimap.constants import DEFAULT_DECIMALS, WARNING_MINUTES
from ponzimap.models.tile import TileDetails


def format_ratio(ratio: Optional[float]) -> str:
    if ratio is None:
        return "N/A"
    if ratio >= 1:
        return f"{ratio:.2f}"
    # enough places to show two significant digits of a small ratio
    places = max(2, -math.floor(math.log10(ratio)) + 2)
    return f"{ratio:.{places}f}"


def format_price(raw: Optional[int], decimals: int = DEFAULT_DECIMALS) -> str:
    """Scaled integer -> "123.45", truncated to two decimals."""
    if not raw:
        return "Not for sale"
    whole, frac = divmod(raw, 10 ** decimals)
    return f"{whole}.{str(frac).zfill(decimals)[:2]}"


def format_time_remaining(hours: float) -> str:
    if hours <= 0:
        return "NUKABLE"
    if math.isinf(hours):
        return "∞"
    total_minutes = round(hours * 60)
    h, m = divmod(total_minutes, 60)
    text = f"{m}m" if h == 0 else f"{h}h {m}m"
    return f"⚠️ {text}" if total_minutes <= WARNING_MINUTES else text


def format_yield(per_hour: float) -> str:
    if per_hour == 0:
        return "0/h"
    if per_hour < 0:
        return f"{per_hour:.2f}/h"
    if per_hour < 0.01:
        return "< 0.01/h"
    return f"+{per_hour:.2f}/h"


def display_coordinates(col: int, row: int) -> str:
    return f"({col}, {row})"


def display_fields(details: TileDetails) -> Dict[str, Any]:
    tile = details.tile
    return {
        "coords": display_coordinates(*details.coords),
        "price": format_price(tile.sell_price if tile else None, details.token.decimals),
        "ratio": format_ratio(details.token.ratio),
        "timeRemaining": format_time_remaining(details.time_remaining),
        "yield": format_yield(details.tax_info.profit_per_hour),
    }
