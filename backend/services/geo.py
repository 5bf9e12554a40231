"""
Great-circle helpers for radius search.

Candidates are first narrowed with a latitude/longitude bounding box that
the database can answer from an index, then filtered exactly with the
haversine distance.
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_008.8


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float
    # True when the box crosses the antimeridian (min_lng > max_lng)
    wraps: bool = False


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in metres between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lng: float, radius_m: float) -> BoundingBox:
    """Smallest lat/lng box containing every point within ``radius_m``."""
    d_lat = math.degrees(radius_m / EARTH_RADIUS_M)
    min_lat = lat - d_lat
    max_lat = lat + d_lat

    # Near the poles every longitude can be within range
    if min_lat <= -90 or max_lat >= 90:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), -180.0, 180.0)

    d_lng = math.degrees(
        math.asin(min(1.0, math.sin(radius_m / EARTH_RADIUS_M) / math.cos(math.radians(lat))))
    )
    min_lng = lng - d_lng
    max_lng = lng + d_lng

    if d_lng >= 180:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)
    if min_lng < -180:
        return BoundingBox(min_lat, max_lat, min_lng + 360, max_lng, wraps=True)
    if max_lng > 180:
        return BoundingBox(min_lat, max_lat, min_lng, max_lng - 360, wraps=True)
    return BoundingBox(min_lat, max_lat, min_lng, max_lng)
