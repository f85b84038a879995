"""
geo.py
~~~~~~
Great-circle helpers used to rank boarding-point candidates.

Distances are only ever compared with each other, so the spherical-Earth
approximation (mean radius 6371 km) is plenty.
"""

from __future__ import annotations

import math

from .constants import R_EARTH_KM


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great‑circle distance (km) between *lat1/lng1* and *lat2/lng2*."""

    φ1, φ2 = map(math.radians, (lat1, lat2))
    dφ = math.radians(lat2 - lat1)
    dλ = math.radians(lng2 - lng1)
    a = math.sin(dφ / 2) ** 2 + math.cos(φ1) * math.cos(φ2) * math.sin(dλ / 2) ** 2
    return 2 * R_EARTH_KM * math.asin(math.sqrt(a))


__all__ = ["haversine_km"]
