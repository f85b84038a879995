"""
tests/test_booking.py
~~~~~~~~~~~~~~~~~~~~~
Origin/destination guards, the ``searchTrips`` payload and reply handling.
"""

from __future__ import annotations

import datetime as dt

import pytest

from trip_places import booking
from trip_places.booking import (
    TripSearchError,
    UnresolvedPlaceError,
    build_trip_search_payload,
    classify_reply,
    selection_conflict,
    submit_trip_search,
)
from trip_places.models import Place
from trip_places.normalizer import normalize

PUNE = normalize({"id": "loc-1", "title": "Pune"}, 0)
MUMBAI = normalize({"id": "loc-2", "title": "Mumbai"}, 0)
WAKAD = normalize({"id": "subloc-10", "title": "Wakad", "location_id": 1}, 0)
HINJEWADI = normalize({"id": "subloc-11", "title": "Hinjewadi", "location_id": 1}, 0)
DADAR = normalize({"id": "subloc-20", "title": "Dadar", "location_id": 2, "lat": 19.0, "lng": 72.8}, 0)


# ── selection guards ─────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "chosen, other, expected",
    [
        (PUNE, None, None),
        (PUNE, MUMBAI, None),
        (WAKAD, DADAR, None),
        (PUNE, PUNE, booking.MSG_SAME_CITY),
        (WAKAD, WAKAD, booking.MSG_SAME_POINT),
        (PUNE, WAKAD, booking.MSG_CITY_CONTAINS_POINT),
        (WAKAD, PUNE, booking.MSG_POINT_IN_CITY),
        (WAKAD, HINJEWADI, booking.MSG_SAME_CITY),
    ],
)
def test_selection_conflict(chosen: Place, other: Place | None, expected: str | None) -> None:
    assert selection_conflict(chosen, other) == expected


def test_places_without_numeric_ids_never_conflict() -> None:
    a = Place(id="somewhere", kind="location", title="A")
    b = Place(id="elsewhere", kind="location", title="B")
    assert selection_conflict(a, b) is None


# ── payload / reply ──────────────────────────────────────────────────────


def test_build_trip_search_payload() -> None:
    origin = {"sublocation_id": 10, "lat": 18.5, "lng": 73.8, "source_record": {}}
    destination = {"sublocation_id": 20, "lat": None, "lng": None, "source_record": {}}

    payload = build_trip_search_payload(origin, destination, dt.date(2026, 10, 20))

    assert payload == {
        "origin": {"sublocation_id": 10, "lat": 18.5, "lng": 73.8},
        "destination": {"sublocation_id": 20, "lat": None, "lng": None},
        "travel_date": "2026-10-20",
        "earliest_time": "00:00",
        "latest_time": "23:59",
        "max_transfers": 1,
        "min_transfer_minutes": 10,
        "search_radius_km": 8,
    }


@pytest.mark.parametrize(
    "data, expected",
    [
        ({"data": [{"id": 1}]}, ("found", [{"id": 1}])),
        (
            {
                "note": "no_trips_in_chosen_direction",
                "candidates": {"reverse_candidate_route_ids": [4]},
            },
            ("reverse_available", []),
        ),
        (
            {"note": "no_trips_in_chosen_direction", "candidates": {"reverse_candidate_route_ids": []}},
            ("none", []),
        ),
        ({"data": []}, ("none", [])),
        (None, ("none", [])),
    ],
)
def test_classify_reply(data: object, expected: tuple) -> None:
    assert classify_reply(data) == expected


# ── submission ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_submit_resolves_and_posts(fake_transport) -> None:
    transport = fake_transport(trips=(True, {"data": [{"trip_id": 5}]}))

    outcome = await submit_trip_search(transport, WAKAD, DADAR, dt.date(2026, 11, 1))

    assert outcome["status"] == "found"
    assert outcome["trips"] == [{"trip_id": 5}]
    (payload,) = transport.trip_payloads
    assert payload["origin"] == {"sublocation_id": 10, "lat": None, "lng": None}
    assert payload["destination"] == {"sublocation_id": 20, "lat": 19.0, "lng": 72.8}
    assert transport.calls == []  # both were direct hits


@pytest.mark.asyncio
async def test_unresolved_place_blocks_submission(fake_transport) -> None:
    transport = fake_transport(trips=(True, {"data": []}))

    with pytest.raises(UnresolvedPlaceError) as excinfo:
        await submit_trip_search(transport, WAKAD, MUMBAI, dt.date(2026, 11, 1))

    assert excinfo.value.side == "destination"
    assert "Could not determine boarding point" in str(excinfo.value)
    assert transport.trip_payloads == []


@pytest.mark.asyncio
async def test_trip_api_failure(fake_transport) -> None:
    transport = fake_transport(trips=(False, None))

    with pytest.raises(TripSearchError):
        await submit_trip_search(transport, WAKAD, DADAR, dt.date(2026, 11, 1))
