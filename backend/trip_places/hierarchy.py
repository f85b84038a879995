"""
hierarchy.py
~~~~~~~~~~~~
Regroup one normalized search batch for display.

Output
------
* ``popular`` – popular locations (unique by id, first-seen order), shown
  as a chip strip.
* ``grouped`` – every other location in batch order, each followed by its
  sub-locations tagged ``indent_under_id=<location id>``; then the
  sub-locations that could not be placed under a shown location.

Parent linkage
--------------
A sub-location is attached via its explicit ``parent_location_id``, which
may name the location by its id (``loc-12``) or by the bare database id
(``12``, also read from the location's ``meta.id``). When that is missing
or points outside the batch, its ``subtitle`` is compared
case-insensitively with every location ``title`` and the earliest location
wins. There is no confidence threshold on that title match, so two cities
sharing a name will both collect the same boarding points; keep that in
mind before trusting the grouping for anything but display.

Nothing is sorted here: order is always batch order.
"""

from __future__ import annotations

import logging

from .constants import LOCATION_ID_PREFIX
from .models import DisplayEntry, Groups, Place
from .normalizer import extract_numeric_id

LOG = logging.getLogger("hierarchy")


def _link_keys(loc: Place) -> list[str]:
    """Bare database ids a child may use instead of *loc*'s own id."""
    keys: list[str] = []
    for value in (loc.meta.get("id"), loc.id if loc.id.startswith(LOCATION_ID_PREFIX) else None):
        number = extract_numeric_id(value)
        if number is not None:
            keys.append(str(number))
    return keys


def _find_parent(sub: Place, locations: dict[str, Place], by_key: dict[str, str]) -> str | None:
    parent = sub.parent_location_id
    if parent is not None:
        number = extract_numeric_id(parent)
        for key in (parent, str(number) if number is not None else None):
            if key is not None and key in by_key:
                return by_key[key]
    if sub.subtitle:
        wanted = sub.subtitle.lower()
        for loc_id, loc in locations.items():  # insertion order == batch order
            if loc.title.lower() == wanted:
                return loc_id
    return None


def build_groups(places: list[Place]) -> Groups:
    """
    Partition *places* into the popular strip and the grouped list.

    Args:
        places: One normalized batch, in server order.

    Returns:
        :class:`Groups`. Every input place appears exactly once across both
        lists (locations are unique by id; a repeated location id keeps its
        first occurrence).
    """
    locations: dict[str, Place] = {}
    for place in places:
        if place.kind == "location":
            locations.setdefault(place.id, place)

    by_key = {loc_id: loc_id for loc_id in locations}
    for loc_id, loc in locations.items():
        for key in _link_keys(loc):
            by_key.setdefault(key, loc_id)

    children: dict[str, list[Place]] = {}
    parent_of: dict[int, str] = {}
    for idx, place in enumerate(places):
        if place.kind != "sublocation":
            continue
        parent_id = _find_parent(place, locations, by_key)
        if parent_id is not None:
            children.setdefault(parent_id, []).append(place)
            parent_of[idx] = parent_id

    popular: list[Place] = []
    popular_ids: set[str] = set()
    for place in places:
        if place.kind == "location" and place.popular and place.id not in popular_ids:
            popular.append(place)
            popular_ids.add(place.id)

    grouped: list[DisplayEntry] = []
    emitted: set[str] = set()
    for place in places:
        if place.kind != "location":
            continue
        if place.id in popular_ids or place.id in emitted:
            continue
        grouped.append(DisplayEntry(place))
        emitted.add(place.id)
        for child in children.get(place.id, []):
            grouped.append(DisplayEntry(child, indent_under_id=place.id))

    # standalone, or attached to a location that is not in ``grouped``
    for idx, place in enumerate(places):
        if place.kind != "sublocation":
            continue
        if parent_of.get(idx) in emitted:
            continue
        grouped.append(DisplayEntry(place))

    LOG.debug(
        "[groups] %d places → %d popular, %d grouped",
        len(places),
        len(popular),
        len(grouped),
    )
    return Groups(popular=popular, grouped=grouped)


__all__ = ["build_groups"]
