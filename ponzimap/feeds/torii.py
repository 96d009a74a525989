from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ponzimap.config import Settings
from ponzimap.constants import SQL_GET_AUCTIONS, SQL_GET_CONFIG, SQL_GET_LANDS, SQL_GET_STAKES

log = logging.getLogger(__name__)


class FeedError(RuntimeError):
    pass


class ToriiClient:
    """Reads the game tables from a Torii SQL endpoint and token ratios from the price API."""

    def __init__(self, sql_url: str, price_url: str, http: Optional[requests.Session] = None,
                 timeout: float = 10.0):
        self.sql_url = sql_url
        self.price_url = price_url
        self.http = http or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToriiClient":
        return cls(settings.sql_api_url, settings.price_api_url, timeout=settings.http_timeout)

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        if not url:
            raise FeedError("no upstream URL configured")
        try:
            resp = self.http.get(url, params=params, headers={"Accept": "application/json"},
                                 timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise FeedError(f"GET {url} failed: {e}") from e
        try:
            return resp.json()
        except ValueError as e:
            raise FeedError(f"GET {url} returned non-JSON body") from e

    def query(self, sql: str) -> List[Any]:
        rows = self._get_json(self.sql_url, params={"query": sql})
        if not isinstance(rows, list):
            raise FeedError(f"SQL endpoint returned {type(rows).__name__}, expected a list of rows")
        return rows

    def fetch_lands(self) -> List[Any]:
        return self.query(SQL_GET_LANDS)

    def fetch_auctions(self) -> List[Any]:
        return self.query(SQL_GET_AUCTIONS)

    def fetch_stakes(self) -> List[Any]:
        return self.query(SQL_GET_STAKES)

    def fetch_config(self) -> List[Any]:
        return self.query(SQL_GET_CONFIG)

    def fetch_prices(self) -> List[Any]:
        prices = self._get_json(self.price_url)
        if not isinstance(prices, list):
            raise FeedError(f"price API returned {type(prices).__name__}, expected a list")
        return prices


def refresh_sql(session, client: ToriiClient) -> bool:
    """One SQL tick: lands+stakes, auctions and config. Returns True if every part landed."""
    ok = True

    ticket = session.begin("lands")
    try:
        lands, stakes = client.fetch_lands(), client.fetch_stakes()
    except FeedError as e:
        session.fail("lands", ticket, e)
        ok = False
    else:
        session.commit_lands(ticket, lands, stakes)

    ticket = session.begin("auctions")
    try:
        auctions = client.fetch_auctions()
    except FeedError as e:
        session.fail("auctions", ticket, e)
        ok = False
    else:
        session.commit_auctions(ticket, auctions)

    ticket = session.begin("config")
    try:
        config = client.fetch_config()
    except FeedError as e:
        # the config table is optional; auction defaults still apply
        session.fail("config", ticket, e)
    else:
        session.commit_config(ticket, config)

    return ok


def refresh_prices(session, client: ToriiClient) -> bool:
    ticket = session.begin("prices")
    try:
        prices = client.fetch_prices()
    except FeedError as e:
        session.fail("prices", ticket, e)
        return False
    session.commit_prices(ticket, prices)
    return True
