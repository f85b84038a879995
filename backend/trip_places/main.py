"""
main.py – FastAPI entry point
=============================

Thin HTTP facade over the place engine for the booking client.

Routes
------
* ``GET  /healthz``          – liveness probe.
* ``GET  /places``           – popular strip + grouped list for a query.
* ``GET  /places/initial``   – locations merged with their sub-locations.
* ``POST /places/resolve``   – resolve one place to a boarding point.
* ``POST /trips/search``     – resolve origin/destination and search trips.

The trip API client (one ``httpx.AsyncClient``) lives for the app lifespan
on ``app.state.transport``.
"""

from __future__ import annotations

# ─── Std-lib / third-party ────────────────────────────────────────────
import datetime as dt
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Literal

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

# ─── Project modules ──────────────────────────────────────────────────
from . import config
from .booking import (
    TripSearchError,
    UnresolvedPlaceError,
    selection_conflict,
    submit_trip_search,
)
from .models import Coordinates, Place
from .places_service import initial_places, search_places
from .resolver import resolve_leaf
from .transport import HttpSearchTransport

# ─── Logging ──────────────────────────────────────────────────────────
LOG = logging.getLogger("api")

_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(logging.Formatter("%(levelname)s:     %(name)s - %(message)s"))
for _name in ("api", "resolver", "booking", "places_service", "transport", "extapi"):
    logging.getLogger(_name).addHandler(_handler)
    logging.getLogger(_name).setLevel(logging.INFO)


# ---------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------
class CoordinatesIn(BaseModel):
    lat: float
    lng: float


class PlaceIn(BaseModel):
    """A place as the client received it from ``/places``."""

    id: str
    kind: Literal["location", "sublocation"] = "location"
    title: str = ""
    subtitle: str | None = None
    parent_location_id: str | None = None
    coordinates: CoordinatesIn | None = None
    popular: bool = False
    raw: Any = None

    def to_place(self) -> Place:
        return Place(
            id=self.id,
            kind=self.kind,
            title=self.title or self.id,
            subtitle=self.subtitle,
            parent_location_id=self.parent_location_id,
            coordinates=(
                Coordinates(self.coordinates.lat, self.coordinates.lng)
                if self.coordinates
                else None
            ),
            popular=self.popular,
            raw=self.raw,
        )


class TripSearchIn(BaseModel):
    origin: PlaceIn
    destination: PlaceIn
    travel_date: dt.date


# ---------------------------------------------------------------------
# Lifespan – shared trip API client
# ---------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: N802 – FastAPI naming style
    """Open one pooled client for the trip API and close it on shutdown."""
    async with httpx.AsyncClient(timeout=config.TRIP_API_TIMEOUT) as client:
        app.state.transport = HttpSearchTransport(client)
        LOG.info("trip API at %s", config.TRIP_API_BASE_URL)
        yield


def _transport(request: Request) -> HttpSearchTransport:
    return request.app.state.transport


# ---------------------------------------------------------------------
# FastAPI instance & middleware
# ---------------------------------------------------------------------
app = FastAPI(title="Trip places", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# Health probe --------------------------------------------------------
@app.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> PlainTextResponse:
    """Return HTTP 200 with body “ok” if the app is up."""
    return PlainTextResponse("ok", status_code=200)


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------
@app.get("/places")
async def places(request: Request, q: str = Query("")) -> JSONResponse:
    """Popular locations plus the grouped result list for *q*."""
    groups = await search_places(_transport(request), q)
    return JSONResponse(content=jsonable_encoder(groups.to_dict()))


@app.get("/places/initial")
async def places_initial(
    request: Request,
    page: int = Query(1, ge=1),
    per: int = Query(30, ge=1, le=200),
) -> JSONResponse:
    """Locations (one page) each followed by their boarding points."""
    items = await initial_places(_transport(request), page=page, per=per)
    return JSONResponse(content=jsonable_encoder({"places": [p.to_dict() for p in items]}))


@app.post("/places/resolve")
async def places_resolve(request: Request, body: PlaceIn) -> JSONResponse:
    """Resolve one selected place; 422 when no boarding point can be found."""
    leaf = await resolve_leaf(body.to_place(), _transport(request))
    if leaf is None:
        raise HTTPException(
            status_code=422,
            detail="Could not determine boarding point. Please choose a different place.",
        )
    return JSONResponse(content=jsonable_encoder(leaf))


@app.post("/trips/search")
async def trips_search(request: Request, body: TripSearchIn) -> JSONResponse:
    """
    Resolve origin and destination, then forward the trip search.

    409 → the pair is not a valid trip; 422 → a place has no boarding
    point; 502 → the trip API failed.
    """
    origin, destination = body.origin.to_place(), body.destination.to_place()

    conflict = selection_conflict(origin, destination)
    if conflict:
        raise HTTPException(status_code=409, detail=conflict)

    try:
        outcome = await submit_trip_search(
            _transport(request), origin, destination, body.travel_date
        )
    except UnresolvedPlaceError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except TripSearchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return JSONResponse(content=jsonable_encoder(outcome))
