from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import Iterable, List, TypeVar

from .entities import Coordinates


EARTH_RADIUS_KM = 6371.0

# absorbs float rounding for records sitting exactly on the boundary
_BOUNDARY_TOLERANCE_KM = 1e-6

T = TypeVar("T")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = radians(lat1), radians(lat2)
    dphi = radians(lat2 - lat1)
    dlambda = radians(lon2 - lon1)
    a = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlambda / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_to(center: Coordinates, record) -> float:
    return haversine_km(center.latitude, center.longitude, record.latitude, record.longitude)


def filter_by_radius(records: Iterable[T], center: Coordinates, radius_km: float) -> List[T]:
    """Keep records whose coordinate lies within ``radius_km`` of ``center``.

    The boundary is inclusive and input order is preserved. Records only need
    ``latitude`` and ``longitude`` attributes.
    """
    if radius_km < 0:
        raise ValueError("radius_km must be non-negative")
    limit = radius_km + _BOUNDARY_TOLERANCE_KM
    return [record for record in records if distance_to(center, record) <= limit]


# Rough bounding boxes: continental US, Hawaii, Alaska.
_US_BOUNDS = (
    (24.396308, 49.384358, -125.0, -66.93457),
    (18.91619, 28.402123, -178.334698, -154.806773),
    (51.209, 71.406, -179.148909, -129.979506),
)


def is_us_location(latitude: float, longitude: float) -> bool:
    return any(
        min_lat <= latitude <= max_lat and min_lon <= longitude <= max_lon
        for min_lat, max_lat, min_lon, max_lon in _US_BOUNDS
    )


__all__ = ["EARTH_RADIUS_KM", "distance_to", "filter_by_radius", "haversine_km", "is_us_location"]
