"""
models.py
~~~~~~~~~
Canonical shapes shared by the normalizer, hierarchy builder and resolver.

``Place`` and friends are frozen dataclasses: a batch of places is built
fresh from every API response and every later step derives new structures
from it instead of editing it. Wire-level results (``SearchResult``,
``ResolvedLeaf``) stay plain ``TypedDict``s because they are handed straight
to JSON payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple, TypedDict

PlaceKind = Literal["location", "sublocation"]


class Coordinates(NamedTuple):
    """A lat/lng pair in decimal degrees; both are always finite floats."""

    lat: float
    lng: float


@dataclass(frozen=True)
class Place:
    """One normalized location or sub-location (boarding point).

    Attributes:
        id: Unique within one response batch (e.g. ``"loc-12"``, ``"501"``).
        kind: ``"location"`` (a city) or ``"sublocation"`` (a boarding point).
        title: Display name, never empty.
        subtitle: Parent location's name for a sub-location, if known.
        parent_location_id: Explicit parent link supplied by the server.
        coordinates: Optional lat/lng.
        popular: Marketing flag, only meaningful for locations.
        raw: The untouched server record.
    """

    id: str
    kind: PlaceKind
    title: str
    subtitle: str | None = None
    parent_location_id: str | None = None
    coordinates: Coordinates | None = None
    popular: bool = False
    raw: Any = field(default=None, compare=False, repr=False)

    @property
    def is_sublocation(self) -> bool:
        return self.kind == "sublocation"

    @property
    def meta(self) -> dict:
        """The record's nested ``meta`` mapping, or ``{}``."""
        raw = self.raw if isinstance(self.raw, dict) else {}
        meta = raw.get("meta")
        return meta if isinstance(meta, dict) else {}

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view (``raw`` included as-is)."""
        return {
            "id": self.id,
            "kind": self.kind,
            "title": self.title,
            "subtitle": self.subtitle,
            "parent_location_id": self.parent_location_id,
            "coordinates": (
                {"lat": self.coordinates.lat, "lng": self.coordinates.lng}
                if self.coordinates
                else None
            ),
            "popular": self.popular,
            "raw": self.raw,
        }


@dataclass(frozen=True)
class DisplayEntry:
    """A place in the grouped list, optionally indented under a location."""

    place: Place
    indent_under_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {**self.place.to_dict(), "indent_under_id": self.indent_under_id}


@dataclass(frozen=True)
class Groups:
    """Presentation lists for one search batch."""

    popular: list[Place]
    grouped: list[DisplayEntry]

    def to_dict(self) -> dict[str, Any]:
        return {
            "popular": [p.to_dict() for p in self.popular],
            "grouped": [e.to_dict() for e in self.grouped],
        }


class SearchResult(TypedDict):
    """What a search transport hands back; ``ok=False`` means "no data"."""

    ok: bool
    records: list[Any]


class ResolvedLeaf(TypedDict):
    """A concrete boarding point ready for a trip search."""

    sublocation_id: int
    lat: float | None
    lng: float | None
    source_record: Any


__all__ = [
    "Coordinates",
    "DisplayEntry",
    "Groups",
    "Place",
    "PlaceKind",
    "ResolvedLeaf",
    "SearchResult",
]
