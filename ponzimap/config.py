import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

from ponzimap.constants import CACHE_MAX_ENTRIES, GRID_SIZE

load_dotenv()

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or os.getenv("PONZI_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip() not in ("", "0", "false", "False", "no")


@dataclass(frozen=True)
class Settings:
    sql_api_url: str = ""
    price_api_url: str = "https://api.ponzi.land/price"
    grid_size: int = GRID_SIZE
    reference_tokens: Tuple[str, ...] = ()
    cache_max_entries: int = CACHE_MAX_ENTRIES
    sql_poll_seconds: float = 5.0
    price_poll_seconds: float = 30.0
    max_poll_seconds: float = 120.0
    http_timeout: float = 10.0
    auto_refresh: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        refs = os.getenv("PONZI_REFERENCE_TOKEN", "")
        return cls(
            sql_api_url=os.getenv("PONZI_SQL_API_URL", cls.sql_api_url),
            price_api_url=os.getenv("PONZI_PRICE_API_URL", cls.price_api_url),
            grid_size=_env_int("PONZI_GRID_SIZE", GRID_SIZE),
            reference_tokens=tuple(a.strip() for a in refs.split(",") if a.strip()),
            cache_max_entries=_env_int("PONZI_CACHE_MAX_ENTRIES", CACHE_MAX_ENTRIES),
            sql_poll_seconds=_env_float("PONZI_SQL_POLL_SECONDS", 5.0),
            price_poll_seconds=_env_float("PONZI_PRICE_POLL_SECONDS", 30.0),
            max_poll_seconds=_env_float("PONZI_MAX_POLL_SECONDS", 120.0),
            http_timeout=_env_float("PONZI_HTTP_TIMEOUT", 10.0),
            auto_refresh=_env_flag("PONZI_AUTO_REFRESH"),
        )
