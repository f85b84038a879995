"""
resolver.py
~~~~~~~~~~~
Resolve a selected place down to a concrete boarding point (sub-location)
that a trip search can use.

Strategies (first hit wins)
---------------------------
1. **direct_hit** – the place already carries a sub-location id; no I/O.
   An id that is only the record's position in its response never counts.
2. **targeted_requery** – ``searchPlaces`` for the place id, then its title
   (``include_sublocations=1``, ``limit=12``). Per batch: exact id match
   that is a sub-location → nearest sub-location to the place's coordinates
   (or the first one when it has none) → first nested ``sublocations`` /
   ``children`` / ``_sublocs`` entry of any row.
3. **title_fallback** – one broader search (``limit=20``) with the title;
   first sub-location, else the first row of any kind.
4. ``None`` – the caller must stop the booking and tell the user.

Requests are awaited one after another so the outcome only depends on the
server's answers. A failed request (``ok=False`` or an exception) counts as
an empty answer; a strategy that blows up counts as "no result". Nothing
here retries: the same inputs would degrade the same way.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from .constants import FALLBACK_QUERY_LIMIT, TARGETED_QUERY_LIMIT
from .geo import haversine_km
from .models import Coordinates, Place, ResolvedLeaf
from .normalizer import (
    declared_sublocation_id,
    extract_numeric_id,
    has_own_id,
    normalize_all,
    read_coordinates,
    sublocation_id_of,
)
from .transport import SearchTransport

LOG = logging.getLogger("resolver")

NESTED_SUBLOC_FIELDS = ("sublocations", "children", "_sublocs")

Strategy = Callable[[], Awaitable["ResolvedLeaf | None"]]


def _leaf(sublocation_id: int, coords: Coordinates | None, record: Any) -> ResolvedLeaf:
    return {
        "sublocation_id": sublocation_id,
        "lat": coords.lat if coords else None,
        "lng": coords.lng if coords else None,
        "source_record": record,
    }


def _usable_id(place: Place) -> int | None:
    """Numeric id of a search row; rows known only by position have none."""
    declared = declared_sublocation_id(place)
    if declared is not None:
        return declared
    if not has_own_id(place):
        return None
    return extract_numeric_id(place.id)


def _leaf_from_place(place: Place) -> ResolvedLeaf | None:
    sid = _usable_id(place)
    if sid is None:
        return None
    return _leaf(sid, place.coordinates, place.raw)


def nearest(origin: Coordinates, candidates: list[Place]) -> Place:
    """
    Closest candidate to *origin*; candidates without coordinates are skipped.

    Ties keep the first-seen candidate. When no candidate has coordinates the
    first one is returned.
    """
    best = candidates[0]
    best_km = float("inf")
    for cand in candidates:
        if cand.coordinates is None:
            continue
        km = haversine_km(origin.lat, origin.lng, cand.coordinates.lat, cand.coordinates.lng)
        if km < best_km:
            best, best_km = cand, km
    LOG.debug("[resolve] nearest %s at %.2f km", best.id, best_km)
    return best


def _nested_leaf(places: list[Place]) -> ResolvedLeaf | None:
    """First nested sub-location entry (alternate server shape)."""
    for place in places:
        raw = place.raw if isinstance(place.raw, Mapping) else {}
        nested = next(
            (raw[k] for k in NESTED_SUBLOC_FIELDS if isinstance(raw.get(k), list) and raw[k]),
            None,
        )
        if not nested or not isinstance(nested[0], Mapping):
            continue
        entry = nested[0]
        meta = entry.get("meta") if isinstance(entry.get("meta"), Mapping) else {}
        raw_id = next(
            (v for v in (entry.get("id"), entry.get("sublocation_id"), meta.get("id")) if v),
            None,
        )
        sid = extract_numeric_id(raw_id)
        if sid is not None:
            return _leaf(sid, read_coordinates(entry), entry)
    return None


def pick_from_batch(selected: Place, places: list[Place]) -> ResolvedLeaf | None:
    """Apply the per-batch rules of the targeted re-query to *places*."""
    wanted: set[str] = {selected.id} if has_own_id(selected) else set()
    meta_id = selected.meta.get("id")
    if meta_id is not None:
        wanted.add(str(meta_id))

    for place in places:
        if place.id in wanted and place.is_sublocation:
            leaf = _leaf_from_place(place)
            if leaf is not None:
                LOG.debug("[resolve] exact match %s", place.id)
                return leaf

    candidates = [p for p in places if p.is_sublocation and _usable_id(p) is not None]
    if candidates:
        chosen = (
            nearest(selected.coordinates, candidates)
            if selected.coordinates is not None
            else candidates[0]
        )
        return _leaf_from_place(chosen)

    return _nested_leaf(places)


async def _search(transport: SearchTransport, q: str, limit: int) -> list[Place]:
    """One ``searchPlaces`` call, normalized; failures yield ``[]``."""
    params = {"q": q, "include_sublocations": "1", "limit": str(limit)}
    try:
        result = await transport.search(params)
    except Exception as exc:  # noqa: BLE001 – transport must not break resolution
        LOG.warning("[resolve] search %r raised: %s", q, exc)
        return []
    if not result.get("ok"):
        LOG.info("[resolve] search %r failed", q)
        return []
    return normalize_all(result.get("records") or [])


def _strategies(selected: Place, transport: SearchTransport) -> list[tuple[str, Strategy]]:
    async def direct_hit() -> ResolvedLeaf | None:
        sid = sublocation_id_of(selected)
        if sid is None:
            return None
        return _leaf(sid, selected.coordinates, selected.raw)

    async def targeted_requery() -> ResolvedLeaf | None:
        queries: list[str] = []
        own_id = selected.id if has_own_id(selected) else None
        for q in (own_id, selected.title):
            if q and q.strip() and q not in queries:
                queries.append(q)
        for q in queries:
            places = await _search(transport, q, TARGETED_QUERY_LIMIT)
            if not places:
                continue
            leaf = pick_from_batch(selected, places)
            if leaf is not None:
                return leaf
        return None

    async def title_fallback() -> ResolvedLeaf | None:
        q = selected.title or selected.id
        if not q:
            return None
        places = await _search(transport, q, FALLBACK_QUERY_LIMIT)
        usable = [p for p in places if _usable_id(p) is not None]
        chosen = next((p for p in usable if p.is_sublocation), usable[0] if usable else None)
        return _leaf_from_place(chosen) if chosen else None

    return [
        ("direct_hit", direct_hit),
        ("targeted_requery", targeted_requery),
        ("title_fallback", title_fallback),
    ]


async def resolve_leaf(selected: Place, transport: SearchTransport) -> ResolvedLeaf | None:
    """
    Resolve *selected* to a boarding point.

    Args:
        selected:  A place the user picked (location or sub-location).
        transport: Search transport for the re-queries.

    Returns:
        ``ResolvedLeaf`` (coordinates may be ``None``) or ``None`` when every
        strategy came up empty. Never raises for transport problems.
    """
    for name, strategy in _strategies(selected, transport):
        try:
            leaf = await strategy()
        except Exception as exc:  # noqa: BLE001 – a broken strategy is a miss
            LOG.warning("[resolve] %s failed for %s: %s", name, selected.id, exc)
            continue
        if leaf is not None:
            LOG.info(
                "[resolve] %s → sublocation %s via %s",
                selected.id,
                leaf["sublocation_id"],
                name,
            )
            return leaf

    LOG.info("[resolve] could not determine boarding point for %s", selected.id)
    return None


__all__ = ["nearest", "pick_from_batch", "resolve_leaf"]
