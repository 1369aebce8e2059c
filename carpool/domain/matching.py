"""
Route Matching
==============

Decides whether a rider's requested pickup / destination is compatible with
a published ride's route.  Pure functions, no I/O.

Policy
------
1. **No filter**       -- either rider endpoint omitted => match.
2. **Same place**      -- rider destination within ``proximity_km`` of the
   ride destination (or, without coordinates, a name match) => match.
3. **Bounding box**    -- with coordinates for all four points, a point P is
   *between* A and B when its latitude lies within
   ``[min(A.lat, B.lat) - eps, max(A.lat, B.lat) + eps]`` and likewise for
   longitude.  Match when both rider points are between the ride's pickup
   and destination, or when some waypoint (checked in stop order) is near
   the rider destination, or splits the route so that the rider pickup is
   on the first leg or the rider destination on the second.
4. **Name fallback**    -- with coordinates missing anywhere, compare place
   names case-insensitively, either containing the other.  The rider pickup
   is compared with the ride pickup, the rider destination with waypoints.

The waypoint rule does not require the rider's segment to line up with the
waypoint order: any satisfying waypoint is enough.  Route correctness is
deliberately traded for usability when geocoding is unavailable.

Complexity: O(w) per ride for w waypoints.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .distance import distance_between_km, has_coordinates

DEFAULT_TOLERANCE_DEG = 0.01
DEFAULT_PROXIMITY_KM = 1.0
DEFAULT_SAME_LOCATION_KM = 0.05


def is_point_between(point, start, end, tolerance: float = DEFAULT_TOLERANCE_DEG) -> bool:
    """Bounding-box containment of *point* in the box spanned by *start* / *end*."""
    min_lat = min(start.latitude, end.latitude) - tolerance
    max_lat = max(start.latitude, end.latitude) + tolerance
    min_lng = min(start.longitude, end.longitude) - tolerance
    max_lng = max(start.longitude, end.longitude) + tolerance
    return (
        min_lat <= point.latitude <= max_lat
        and min_lng <= point.longitude <= max_lng
    )


def names_match(first, second) -> bool:
    """Case-insensitive substring match on place names; blank names never match."""
    name1 = (getattr(first, "place_name", None) or "").strip().lower()
    name2 = (getattr(second, "place_name", None) or "").strip().lower()
    if not name1 or not name2:
        return False
    return name1 in name2 or name2 in name1


def is_within(first, second, radius_km: float) -> bool:
    """Great-circle proximity; falls back to names when coordinates are missing."""
    distance = distance_between_km(first, second)
    if distance is None:
        return names_match(first, second)
    return distance <= radius_km


def ordered_waypoints(route) -> list:
    return sorted(getattr(route, "waypoints", None) or [], key=lambda w: w.stop_order)


def route_matches(
    route,
    rider_pickup=None,
    rider_destination=None,
    *,
    tolerance: float = DEFAULT_TOLERANCE_DEG,
    proximity_km: float = DEFAULT_PROXIMITY_KM,
) -> bool:
    """Return whether *route* serves a rider going from *rider_pickup* to *rider_destination*."""
    if _omitted(rider_pickup) or _omitted(rider_destination):
        return True

    if is_within(route.destination, rider_destination, proximity_km):
        return True

    waypoints = ordered_waypoints(route)
    corners = (route.pickup, route.destination, rider_pickup, rider_destination)
    if not all(has_coordinates(p) for p in corners):
        return _names_fallback(route, waypoints, rider_pickup, rider_destination)

    if is_point_between(
        rider_pickup, route.pickup, route.destination, tolerance
    ) and is_point_between(
        rider_destination, route.pickup, route.destination, tolerance
    ):
        return True

    for waypoint in waypoints:
        if not has_coordinates(waypoint):
            continue
        if (
            is_within(waypoint, rider_destination, proximity_km)
            or is_point_between(rider_pickup, route.pickup, waypoint, tolerance)
            or is_point_between(rider_destination, waypoint, route.destination, tolerance)
        ):
            return True
    return False


def dedupe_waypoints(
    pickup,
    destination,
    waypoints: Iterable,
    radius_km: float = DEFAULT_SAME_LOCATION_KM,
) -> list:
    """
    Drop waypoints that repeat the pickup, the destination or an earlier stop.

    Input order is preserved; callers renumber the survivors.
    """
    kept: list = []
    for waypoint in waypoints:
        if any(
            _located_and_same(waypoint, other, radius_km)
            for other in (pickup, destination, *kept)
        ):
            continue
        kept.append(waypoint)
    return kept


# ── Internals ─────────────────────────────────────────────────────────


def _omitted(point: Optional[object]) -> bool:
    if point is None:
        return True
    return not has_coordinates(point) and not (getattr(point, "place_name", None) or "").strip()


def _names_fallback(route, waypoints: list, rider_pickup, rider_destination) -> bool:
    if names_match(route.pickup, rider_pickup):
        return True
    return any(names_match(waypoint, rider_destination) for waypoint in waypoints)


def _located_and_same(first, second, radius_km: float) -> bool:
    distance = distance_between_km(first, second)
    if distance is None:
        return False
    return distance <= radius_km
