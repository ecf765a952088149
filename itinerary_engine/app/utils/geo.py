"""Geographic helpers."""

import math

from itinerary_engine.app.models.common import Coordinates

EARTH_RADIUS_M = 6_371_000.0


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Great-circle (haversine) distance between two points in meters."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))
