"""Raw upstream rows (Torii SQL tables and the price feed).

Each row kind is a pydantic model so that a malformed row fails as a whole and
can be dropped from its refresh generation without touching the others.
Scaled integers arrive either as decimal strings, ``0x`` hex felts or plain
ints; they are kept as Python ints (arbitrary precision).
"""
from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ponzimap.constants import LOCATION_MASK
from ponzimap.models.tile import Level

log = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


class MalformedRecord(ValueError):
    pass


def parse_scaled_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedRecord(f"boolean is not a scaled integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or value != int(value):
            raise MalformedRecord(f"not an integer: {value!r}")
        return int(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        if text[:2].lower() == "0x":
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise MalformedRecord(f"unparsable integer: {value!r}") from None


def parse_location(value: Any) -> int:
    parsed = parse_scaled_int(value)
    if parsed is None:
        raise MalformedRecord("missing location")
    if parsed < 0:
        raise MalformedRecord(f"negative location: {value!r}")
    return parsed & LOCATION_MASK


def normalize_address(address: Any) -> str:
    """Lowercase, and strip the zero padding felts often carry (0x04ab -> 0x4ab)."""
    if address is None:
        return ""
    text = str(address).strip().lower()
    if not text.startswith("0x"):
        return text
    body = text[2:].lstrip("0")
    return f"0x{body}" if body else "0x0"


def _is_zero_address(address: str) -> bool:
    return address in ("", "0", "0x0")


class LandRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    location: int
    token_used: str = ""
    sell_price: Optional[int] = None
    owner: Optional[str] = None
    level: Level = Level.ZERO
    staked_amount: Optional[int] = None

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, v: Any) -> int:
        return parse_location(v)

    @field_validator("token_used", mode="before")
    @classmethod
    def _token(cls, v: Any) -> str:
        return normalize_address(v)

    @field_validator("sell_price", mode="before")
    @classmethod
    def _sell_price(cls, v: Any) -> Optional[int]:
        price = parse_scaled_int(v)
        # zero is how the contract encodes "not for sale"
        return price if price else None

    @field_validator("staked_amount", mode="before")
    @classmethod
    def _stake(cls, v: Any) -> Optional[int]:
        return parse_scaled_int(v)

    @field_validator("owner", mode="before")
    @classmethod
    def _owner(cls, v: Any) -> Optional[str]:
        addr = normalize_address(v)
        return None if _is_zero_address(addr) else addr

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, v: Any) -> Level:
        return Level.parse(v)


class AuctionRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    land_location: int
    start_time: int = 0
    start_price: int
    floor_price: int = 0
    decay_rate: Optional[int] = None
    is_finished: bool = False

    @field_validator("land_location", mode="before")
    @classmethod
    def _location(cls, v: Any) -> int:
        return parse_location(v)

    @field_validator("start_time", "floor_price", mode="before")
    @classmethod
    def _zero_default(cls, v: Any) -> int:
        parsed = parse_scaled_int(v)
        return parsed if parsed is not None else 0

    @field_validator("start_price", mode="before")
    @classmethod
    def _start_price(cls, v: Any) -> int:
        parsed = parse_scaled_int(v)
        if parsed is None:
            raise MalformedRecord("missing start_price")
        return parsed

    @field_validator("decay_rate", mode="before")
    @classmethod
    def _decay_rate(cls, v: Any) -> Optional[int]:
        if isinstance(v, str) and "." in v:
            try:
                return math.trunc(float(v))
            except ValueError:
                raise MalformedRecord(f"unparsable decay_rate: {v!r}") from None
        if isinstance(v, float):
            return math.trunc(v) if math.isfinite(v) else None
        return parse_scaled_int(v)


class StakeRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    location: int
    amount: int = 0

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, v: Any) -> int:
        return parse_location(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> int:
        parsed = parse_scaled_int(v)
        return parsed if parsed is not None else 0


class PriceRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    symbol: str
    address: str
    ratio: Optional[float] = None

    @field_validator("address", mode="before")
    @classmethod
    def _address(cls, v: Any) -> str:
        addr = normalize_address(v)
        if not addr:
            raise MalformedRecord("price entry without address")
        return addr

    @field_validator("ratio", mode="before")
    @classmethod
    def _ratio(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        try:
            ratio = float(v)
        except (TypeError, ValueError):
            raise MalformedRecord(f"unparsable ratio: {v!r}") from None
        # a zero or non-finite ratio cannot be divided by: treat as unpriced
        if not math.isfinite(ratio) or ratio <= 0:
            return None
        return ratio


class ConfigRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    decay_rate: Optional[int] = None
    auction_duration: Optional[int] = None
    linear_decay_time: Optional[int] = None
    drop_rate: Optional[int] = None
    rate_denominator: Optional[int] = None
    scaling_factor: Optional[int] = None
    time_speed: Optional[int] = None

    @field_validator("*", mode="before")
    @classmethod
    def _scaled(cls, v: Any) -> Optional[int]:
        return parse_scaled_int(v)


def parse_rows(model: Type[R], rows: Optional[Iterable[Any]], kind: str) -> List[R]:
    """Validate every row, dropping (and logging) the ones that do not parse."""
    out: List[R] = []
    dropped = 0
    for row in rows or ():
        if not isinstance(row, dict):
            dropped += 1
            log.warning("dropping %s row: expected an object, got %s", kind, type(row).__name__)
            continue
        try:
            out.append(model.model_validate(row))
        except (ValidationError, MalformedRecord) as e:
            dropped += 1
            log.warning("dropping malformed %s row %r: %s", kind, row, e)
    if dropped:
        log.info("parsed %d %s rows, dropped %d", len(out), kind, dropped)
    return out
