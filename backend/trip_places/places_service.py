"""
places_service.py
~~~~~~~~~~~~~~~~~
Presentation-side helpers built on the normalizer and hierarchy builder.

Public helpers
--------------
    search_places(transport, q, max_results) -> Groups
        ``searchPlaces`` (always with sub-locations). A non-blank query that
        comes back empty is retried client-side against ``sublocationsAll``
        so boarding points still surface when the server's search misses
        them.

    initial_places(transport, page, per) -> list[Place]
        The list shown before the user types: one page of locations, each
        followed by its sub-locations from ``sublocationsAll``.
"""

from __future__ import annotations

import logging
from typing import Any

from . import config
from .constants import LOCATION_ID_PREFIX, SUBLOC_ID_PREFIX
from .hierarchy import build_groups
from .models import Groups, Place
from .normalizer import normalize_all, popular_flag, read_coordinates
from .transport import HttpSearchTransport

LOG = logging.getLogger("places_service")


def _text(record: Any, *names: str) -> str:
    if not isinstance(record, dict):
        return ""
    for name in names:
        if record.get(name) is not None:
            return str(record[name])
    return ""


def filter_sublocations(records: list[Any], q: str) -> list[Any]:
    """Keep records whose own title or parent title contains *q* (any case)."""
    needle = q.lower()
    return [
        r
        for r in records
        if needle in _text(r, "title", "name").lower()
        or needle in _text(r, "location_title", "parent_title").lower()
    ]


async def search_places(
    transport: HttpSearchTransport,
    q: str = "",
    max_results: int | None = None,
) -> Groups:
    """
    Search places and return the popular strip plus the grouped list.

    Args:
        transport:   Trip API transport.
        q:           User query; blank means "server default list".
        max_results: Cap applied after normalization
                     (default: ``config.PLACES_MAX_RESULTS``).
    """
    q = (q or "").strip()
    limit = config.PLACES_MAX_RESULTS if max_results is None else max_results

    params = {"include_sublocations": "1"}
    if q:
        params["q"] = q
    result = await transport.search(params)
    records = result["records"] if result["ok"] else []

    if q and not records:
        fallback = await transport.fetch_all_sublocations()
        if fallback["ok"]:
            matched = filter_sublocations(fallback["records"], q)
            if matched:
                LOG.info("[search] %r → %d sublocations via fallback", q, len(matched))
                records = matched

    places = normalize_all(records)[:limit]
    return build_groups(places)


def _location_place(loc: dict) -> Place:
    lid = _text(loc, "id")
    return Place(
        id=f"{LOCATION_ID_PREFIX}{lid}",
        kind="location",
        title=_text(loc, "title", "name") or f"Location {lid}",
        coordinates=read_coordinates(loc),
        popular=popular_flag(loc),
        raw=loc,
    )


def _sublocation_place(sub: dict, parent: Place | None) -> Place:
    sid = _text(sub, "id")
    return Place(
        id=f"{SUBLOC_ID_PREFIX}{sid}",
        kind="sublocation",
        title=_text(sub, "title", "name") or f"Subloc {sid}",
        subtitle=parent.title if parent else (_text(sub, "location_title") or None),
        parent_location_id=parent.id if parent else None,
        coordinates=read_coordinates(sub),
        raw=sub,
    )


async def initial_places(
    transport: HttpSearchTransport,
    page: int = 1,
    per: int = 30,
) -> list[Place]:
    """
    Merge a page of locations with all sub-locations.

    Returns locations in server order, each followed by its sub-locations.
    Without any location, up to *per* bare sub-locations are returned.
    Returns ``[]`` on any failure (the UI shows its own fallback).
    """
    try:
        loc_res = await transport.fetch_locations(page=page, per=per)
        sub_res = await transport.fetch_all_sublocations()
    except Exception as exc:  # noqa: BLE001
        LOG.warning("[initial] %s", exc)
        return []

    locations = [r for r in loc_res["records"] if isinstance(r, dict)] if loc_res["ok"] else []
    sublocations = [r for r in sub_res["records"] if isinstance(r, dict)] if sub_res["ok"] else []

    by_parent: dict[str, list[dict]] = {}
    for sub in sublocations:
        pid = _text(sub, "location_id", "locationId")
        by_parent.setdefault(pid, []).append(sub)

    places: list[Place] = []
    for loc in locations:
        parent = _location_place(loc)
        places.append(parent)
        for sub in by_parent.get(_text(loc, "id"), []):
            places.append(_sublocation_place(sub, parent))

    if not places:
        places = [_sublocation_place(sub, None) for sub in sublocations[:per]]

    return places


__all__ = ["filter_sublocations", "initial_places", "search_places"]
