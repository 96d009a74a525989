from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from ponzimap.config import configure_logging
from ponzimap.feeds.torii import ToriiClient, refresh_prices, refresh_sql
from ponzimap.formatting import display_fields
from ponzimap.grid import encode_coordinates, in_bounds
from ponzimap.models.tile import TileDetails
from ponzimap.poller import build_poller, start_background
from ponzimap.state import Session

log = logging.getLogger(__name__)


class RefreshRequest(BaseModel):
    sql: bool = True
    prices: bool = True


def _render(details: TileDetails) -> Dict[str, Any]:
    out = details.to_front()
    out["display"] = display_fields(details)
    return out


def create_app(session: Optional[Session] = None, client: Optional[ToriiClient] = None) -> FastAPI:
    configure_logging()
    session = session or Session()
    client = client or ToriiClient.from_settings(session.settings)

    app = FastAPI(title="PonziLand map analytics")
    app.state.session = session
    app.state.client = client

    if session.settings.auto_refresh:
        poller = build_poller(session, client, session.settings)

        @app.on_event("startup")
        def _start_poller() -> None:
            app.state.poller = start_background(poller)

        @app.on_event("shutdown")
        def _stop_poller() -> None:
            thread, stop = app.state.poller
            stop.set()
            thread.join(timeout=1.0)

    def _details(location: int, now: Optional[float]) -> Dict[str, Any]:
        if not in_bounds(location, session.settings.grid_size):
            raise HTTPException(status_code=404, detail=f"no tile at location {location}")
        try:
            return _render(session.tile_details(location, now))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/")
    def health():
        return {"ok": True, "lands": len(session.grid), "auctions": len(session.world.auctions)}

    @app.get("/state")
    def get_state():
        return session.state()

    @app.get("/tiles")
    def list_tiles(now: Optional[float] = None) -> List[Dict[str, Any]]:
        return [_render(d) for d in session.all_tile_details(now)]

    @app.get("/tiles/{location}")
    def get_tile(location: int, now: Optional[float] = None):
        return _details(location, now)

    @app.get("/tiles/{col}/{row}")
    def get_tile_at(col: int, row: int, now: Optional[float] = None):
        size = session.settings.grid_size
        if not (0 <= col < size and 0 <= row < size):
            raise HTTPException(status_code=404, detail=f"({col}, {row}) is off the {size}x{size} grid")
        return _details(encode_coordinates(col, row, size), now)

    @app.get("/auctions")
    def list_auctions(now: Optional[float] = None):
        return session.auctions(now)

    @app.get("/portfolio")
    def get_portfolio(owners: str = ""):
        wanted = [o.strip() for o in owners.split(",") if o.strip()]
        if not wanted:
            raise HTTPException(status_code=400, detail="owners is required (comma separated addresses)")
        return session.portfolio(wanted).to_front()

    @app.post("/refresh")
    def refresh(req: Optional[RefreshRequest] = None):
        req = req or RefreshRequest()
        result = {}
        if req.sql:
            result["sql"] = refresh_sql(session, client)
        if req.prices:
            result["prices"] = refresh_prices(session, client)
        log.info("manual refresh: %s", result)
        return {"refreshed": result, "state": session.state()}

    return app


app = create_app()
