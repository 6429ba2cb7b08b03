"""
Great-circle helpers for nearby store lookups.
"""

import math
from typing import Tuple

EARTH_RADIUS_M = 6371000.0


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in metres between two coordinates."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lng: float, radius_m: float) -> Tuple[float, float, float, float]:
    """
    Return (min_lat, max_lat, min_lng, max_lng) enclosing the radius.
    Near the poles the longitude span covers the whole circle.
    """
    angular = radius_m / EARTH_RADIUS_M
    d_lat = math.degrees(angular)

    sin_ratio = math.sin(angular) / max(math.cos(math.radians(lat)), 1e-12)
    if sin_ratio >= 1.0:
        d_lng = 180.0
    else:
        d_lng = math.degrees(math.asin(sin_ratio))
    return lat - d_lat, lat + d_lat, lng - d_lng, lng + d_lng
