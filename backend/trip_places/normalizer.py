"""
normalizer.py
~~~~~~~~~~~~~
Turn one raw ``searchPlaces`` / ``locations`` / ``sublocationsAll`` record
into a canonical :class:`~trip_places.models.Place`.

The trip API is not consistent about its shapes: ids may sit at the top
level or under ``meta``, the same concept has several field names
(``lat`` / ``latitude`` / ``lat_str`` …), and the location vs. sub-location
distinction is sometimes explicit and sometimes only implied. Every field
below is resolved with an explicit precedence chain; nothing here raises.

Field precedence
----------------
* **id** – ``id`` → ``sublocation_id`` → ``location_id`` → ``meta.id`` →
  ``meta.sublocation_id`` → ``meta.location_id`` → positional index.
* **kind** – ``type``/``kind`` containing "subloc" → id prefixed
  ``subloc-`` → any parent-location-id field → ``"location"``.
* **title** – ``title`` → ``name`` → ``place`` → ``"City <id>"`` /
  ``"Point <id>"``.
* **subtitle** – ``subtitle`` → ``location_title`` → ``parent_title`` →
  ``city``; ``""`` becomes ``None``.
* **coordinates** – top-level ``lat``/``latitude``/``lat_str`` then the
  same names under ``meta`` (``lng``/``longitude``/``lng_str`` likewise);
  both halves or nothing.
* **popular** – ``meta.popular`` → ``popular``; 1 / "1" / True / "true".
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from .constants import SUBLOC_ID_PREFIX
from .models import Coordinates, Place, PlaceKind

_TRAILING_DIGITS = re.compile(r"(\d+)$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

ID_FIELDS = ("id", "sublocation_id", "location_id")
TYPE_FIELDS = ("type", "kind")
PARENT_FIELDS = ("location_id", "locationId")
SUBLOC_ID_FIELDS = ("sublocation_id", "sublocationId")
TITLE_FIELDS = ("title", "name", "place")
SUBTITLE_FIELDS = ("subtitle", "location_title", "parent_title", "city")
LAT_FIELDS = ("lat", "latitude", "lat_str")
LNG_FIELDS = ("lng", "longitude", "lng_str")
POPULAR_TRUE = {"1", "true"}


# ── small helpers ─────────────────────────────────────────────────────────


def _as_mapping(obj: Any) -> Mapping[str, Any]:
    return obj if isinstance(obj, Mapping) else {}


def _meta_of(record: Mapping[str, Any]) -> Mapping[str, Any]:
    return _as_mapping(record.get("meta"))


def _first(*values: Any) -> Any:
    """First value that is not ``None`` (``0`` and ``""`` count as values)."""
    for value in values:
        if value is not None:
            return value
    return None


def _pick(record: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    return _first(*(record.get(n) for n in names))


def _as_text(value: Any) -> str:
    """Stringify an id-ish value; integral floats lose their ``.0``."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# ── public helpers ────────────────────────────────────────────────────────


def extract_numeric_id(value: Any) -> int | None:
    """
    Pull a numeric database id out of an id-ish value.

    ``"subloc-501"`` → 501, ``"loc:12"`` → 12, ``77`` → 77, ``"12abc"`` → 12,
    ``"abc"`` / ``None`` / ``""`` → None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value)
    if not text:
        return None
    m = _TRAILING_DIGITS.search(text)
    if m:
        return int(m.group(1))
    m = _LEADING_INT.match(text)
    return int(m.group(1)) if m else None


def read_coordinates(record: Any) -> Coordinates | None:
    """
    Return lat/lng from *record* (top level first, then ``meta``).

    A candidate counts when it is neither ``None`` nor ``""``. The pair is
    accepted only when **both** halves convert to finite floats.
    """
    top = _as_mapping(record)
    meta = _meta_of(top)

    def _candidate(names: tuple[str, ...]) -> Any:
        for source in (top, meta):
            for name in names:
                value = source.get(name)
                if value is not None and value != "":
                    return value
        return None

    lat = _as_float(_candidate(LAT_FIELDS))
    lng = _as_float(_candidate(LNG_FIELDS))
    if lat is None or lng is None:
        return None
    return Coordinates(lat, lng)


def popular_flag(record: Mapping[str, Any]) -> bool:
    """``meta.popular`` then ``popular``; 1, "1", True and "true" (any case) count."""
    value = _first(_meta_of(record).get("popular"), record.get("popular"))
    if value is None:
        return False
    if value is True or (not isinstance(value, bool) and value == 1):
        return True
    return str(value).strip().lower() in POPULAR_TRUE


def _infer_kind(record: Mapping[str, Any], place_id: str) -> PlaceKind:
    meta = _meta_of(record)
    type_value = _pick(record, TYPE_FIELDS)
    if type_value is not None and "subloc" in str(type_value).lower():
        return "sublocation"
    if place_id.startswith(SUBLOC_ID_PREFIX):
        return "sublocation"
    if _pick(record, PARENT_FIELDS) or _pick(meta, PARENT_FIELDS):
        return "sublocation"
    return "location"


def normalize(raw: Any, positional_index: int) -> Place:
    """
    Map one raw server record onto a :class:`Place`.

    Args:
        raw:              Whatever the server sent for this row. Non-mapping
                          values are treated as an empty record.
        positional_index: The row's index in its response; used as the id
                          when the record carries none.

    Returns:
        A best-effort ``Place``. Never raises.
    """
    record = _as_mapping(raw)
    meta = _meta_of(record)

    raw_id = source_id(record)
    place_id = _as_text(positional_index if raw_id is None else raw_id)

    kind = _infer_kind(record, place_id)

    title = next(
        (
            _as_text(v)
            for v in (record.get(n) for n in TITLE_FIELDS)
            if v is not None and _as_text(v).strip()
        ),
        f"Point {place_id}" if kind == "sublocation" else f"City {place_id}",
    )

    subtitle = _pick(record, SUBTITLE_FIELDS)
    subtitle = _as_text(subtitle) if subtitle not in (None, "") else None

    parent = _first(_pick(meta, PARENT_FIELDS), _pick(record, PARENT_FIELDS))
    parent_location_id = _as_text(parent) if parent not in (None, "") else None

    return Place(
        id=place_id,
        kind=kind,
        title=title,
        subtitle=subtitle,
        parent_location_id=parent_location_id,
        coordinates=read_coordinates(record),
        popular=popular_flag(record),
        raw=raw,
    )


def normalize_all(records: list[Any]) -> list[Place]:
    """Normalize a whole response batch, keeping server order."""
    return [normalize(r, idx) for idx, r in enumerate(records or [])]


def source_id(raw: Any) -> Any:
    """The record's own id, or ``None`` when only its position identifies it."""
    record = _as_mapping(raw)
    return _first(_pick(record, ID_FIELDS), _pick(_meta_of(record), ID_FIELDS))


def has_own_id(place: Place) -> bool:
    """False when *place* came from a record whose id is only its position."""
    return place.raw is None or source_id(place.raw) is not None


def declared_sublocation_id(place: Place) -> int | None:
    """``sublocation_id`` / ``sublocationId`` from the record (top level, then ``meta``)."""
    record = _as_mapping(place.raw)
    explicit = _first(_pick(record, SUBLOC_ID_FIELDS), _pick(place.meta, SUBLOC_ID_FIELDS))
    if explicit is None or explicit == "":
        return None
    return extract_numeric_id(explicit)


def sublocation_id_of(place: Place) -> int | None:
    """
    Return the boarding-point id *place* already carries, if any.

    A declared sub-location id wins; a sub-location otherwise falls back to
    its id suffix, unless that id is only the record's position.
    """
    declared = declared_sublocation_id(place)
    if declared is not None:
        return declared
    if place.is_sublocation and has_own_id(place):
        return extract_numeric_id(place.id)
    return None


def location_id_of(place: Place) -> int | None:
    """
    Return the city (location) id *place* belongs to.

    A location is its own city; a sub-location points at its parent via an
    explicit link in the record, then via ``parent_location_id``.
    """
    record = _as_mapping(place.raw)
    explicit = _first(_pick(place.meta, PARENT_FIELDS), _pick(record, PARENT_FIELDS))
    if explicit is not None and explicit != "":
        return extract_numeric_id(explicit)
    if place.is_sublocation:
        return extract_numeric_id(place.parent_location_id)
    return extract_numeric_id(place.id) if has_own_id(place) else None


__all__ = [
    "declared_sublocation_id",
    "extract_numeric_id",
    "has_own_id",
    "location_id_of",
    "normalize",
    "normalize_all",
    "popular_flag",
    "read_coordinates",
    "source_id",
    "sublocation_id_of",
]
