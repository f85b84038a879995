"""
booking.py
~~~~~~~~~~
Turn two selected places into a trip search.

* :func:`selection_conflict` – guard run when the user picks a place,
  rejecting origin/destination pairs that cannot make a trip.
* :func:`build_trip_search_payload` – ``searchTrips`` request body.
* :func:`submit_trip_search` – resolve both places, post, classify reply.

An unresolved place is never submitted with partial geodata: the caller
gets :class:`UnresolvedPlaceError` and should ask the user to pick again.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Literal, TypedDict

from .models import Place, ResolvedLeaf
from .normalizer import location_id_of, sublocation_id_of
from .resolver import resolve_leaf
from .transport import HttpSearchTransport

LOG = logging.getLogger("booking")

NO_TRIPS_IN_DIRECTION = "no_trips_in_chosen_direction"

MSG_SAME_CITY = "Origin and destination cannot be the same city/location."
MSG_SAME_POINT = "Origin and destination cannot be the same boarding point."
MSG_CITY_CONTAINS_POINT = (
    "Selected city contains the other selected boarding point. Pick a different place."
)
MSG_POINT_IN_CITY = "Selected boarding point belongs to the same city as the other side."
MSG_UNRESOLVED = "Could not determine boarding point for {side}. Please choose a different place."


class UnresolvedPlaceError(Exception):
    """A selected place could not be resolved to a boarding point."""

    def __init__(self, side: str, place: Place) -> None:
        super().__init__(MSG_UNRESOLVED.format(side=side))
        self.side = side
        self.place = place


class TripSearchError(Exception):
    """The trip API did not answer the search."""


class TripSearchOutcome(TypedDict):
    status: Literal["found", "reverse_available", "none"]
    trips: list[Any]
    payload: dict[str, Any]


def selection_conflict(chosen: Place, other: Place | None) -> str | None:
    """
    Return a user-facing message when *chosen* cannot pair with *other*.

    Both ids are compared as numbers: city vs. city, boarding point vs.
    boarding point, and a city against the other side's boarding-point city.
    """
    if other is None:
        return None

    this_sub, other_sub = sublocation_id_of(chosen), sublocation_id_of(other)
    this_loc, other_loc = location_id_of(chosen), location_id_of(other)
    this_is_city = not chosen.is_sublocation
    other_is_city = not other.is_sublocation

    if this_sub is not None and this_sub == other_sub:
        return MSG_SAME_POINT
    if this_loc is None or this_loc != other_loc:
        return None
    if this_is_city and other_is_city:
        return MSG_SAME_CITY
    if this_is_city:
        return MSG_CITY_CONTAINS_POINT
    if other_is_city:
        return MSG_POINT_IN_CITY
    return MSG_SAME_CITY


def _leg(leaf: ResolvedLeaf) -> dict[str, Any]:
    return {
        "sublocation_id": leaf["sublocation_id"],
        "lat": leaf["lat"],
        "lng": leaf["lng"],
    }


def build_trip_search_payload(
    origin: ResolvedLeaf,
    destination: ResolvedLeaf,
    travel_date: dt.date,
    *,
    earliest_time: str = "00:00",
    latest_time: str = "23:59",
    max_transfers: int = 1,
    min_transfer_minutes: int = 10,
    search_radius_km: int = 8,
) -> dict[str, Any]:
    """Body of the ``searchTrips`` request."""
    return {
        "origin": _leg(origin),
        "destination": _leg(destination),
        "travel_date": travel_date.isoformat(),
        "earliest_time": earliest_time,
        "latest_time": latest_time,
        "max_transfers": max_transfers,
        "min_transfer_minutes": min_transfer_minutes,
        "search_radius_km": search_radius_km,
    }


def classify_reply(data: Any) -> tuple[str, list[Any]]:
    """Map a ``searchTrips`` body onto (status, trips)."""
    if not isinstance(data, dict):
        return "none", []
    candidates = data.get("candidates") if isinstance(data.get("candidates"), dict) else {}
    reverse_ids = candidates.get("reverse_candidate_route_ids")
    if data.get("note") == NO_TRIPS_IN_DIRECTION and isinstance(reverse_ids, list) and reverse_ids:
        return "reverse_available", []
    trips = data.get("data")
    if isinstance(trips, list) and trips:
        return "found", trips
    return "none", []


async def submit_trip_search(
    transport: HttpSearchTransport,
    origin: Place,
    destination: Place,
    travel_date: dt.date,
) -> TripSearchOutcome:
    """
    Resolve both places and run the trip search.

    Raises:
        UnresolvedPlaceError: Either place resolved to ``None``.
        TripSearchError:      The ``searchTrips`` call failed.
    """
    origin_leaf = await resolve_leaf(origin, transport)
    destination_leaf = await resolve_leaf(destination, transport)

    if origin_leaf is None:
        raise UnresolvedPlaceError("origin", origin)
    if destination_leaf is None:
        raise UnresolvedPlaceError("destination", destination)

    payload = build_trip_search_payload(origin_leaf, destination_leaf, travel_date)
    LOG.info("[booking] searchTrips %s", payload)

    ok, data = await transport.search_trips(payload)
    if not ok:
        raise TripSearchError("Failed to search trips. Try again.")

    status, trips = classify_reply(data)
    LOG.info("[booking] %s (%d trips)", status, len(trips))
    return {"status": status, "trips": trips, "payload": payload}


__all__ = [
    "TripSearchError",
    "TripSearchOutcome",
    "UnresolvedPlaceError",
    "build_trip_search_payload",
    "classify_reply",
    "selection_conflict",
    "submit_trip_search",
]
