from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, isfinite, radians, sin, sqrt

from movermatch.core.errors import InvalidRequest

"""
Geospatial helpers.

We keep a tiny geometry layer here so the matcher can do distance calculations
without pulling in heavier GIS dependencies. A spherical earth is accurate to
well under 1% for intra-country moving distances.
"""

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees (validated on construction)."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for name, value, bound in (("latitude", self.latitude, 90), ("longitude", self.longitude, 180)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidRequest(f"{name} must be a number, got {value!r}")
            if not isfinite(value) or not -bound <= value <= bound:
                raise InvalidRequest(f"{name} must be within [-{bound}, {bound}], got {value!r}")


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle distance in kilometres between two points."""
    lat1 = radians(a.latitude)
    lon1 = radians(a.longitude)
    lat2 = radians(b.latitude)
    lon2 = radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Round-off can push h a hair outside [0, 1].
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(h), sqrt(1 - h))


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle distance in meters between two points."""
    return haversine_km(a, b) * 1000.0
