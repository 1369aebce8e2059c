"""
Distance calculation using the Haversine formula.

Assumption
----------
We use great-circle (Haversine) distance instead of a real routing engine
so route matching stays a pure computation with no external API.  Road
distance for pricing is supplied by the driver when it is known.

Complexity: O(1) per call, O(n) for a path of n points.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def has_coordinates(point) -> bool:
    """True when *point* carries both a latitude and a longitude (0.0 counts)."""
    return (
        point is not None
        and getattr(point, "latitude", None) is not None
        and getattr(point, "longitude", None) is not None
    )


def distance_between_km(a, b) -> Optional[float]:
    """Haversine distance between two located points, ``None`` if either lacks coordinates."""
    if not (has_coordinates(a) and has_coordinates(b)):
        return None
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def path_length_km(points: Iterable) -> Optional[float]:
    """Sum of hops along *points*; ``None`` as soon as one point is unlocated."""
    total = 0.0
    previous = None
    for point in points:
        if not has_coordinates(point):
            return None
        if previous is not None:
            total += haversine_km(
                previous.latitude, previous.longitude,
                point.latitude, point.longitude,
            )
        previous = point
    return total
