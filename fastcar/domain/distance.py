"""
Distance and duration approximations for price estimates.

Assumption
----------
The dispatch console normally sends the distance and duration it measured.
When it only has the two end points, we fall back to great-circle
(Haversine) distance and a flat average speed plus a fixed pickup
overhead.  No routing engine is consulted.

Complexity: O(1) per call.
"""

import math

from .entities import Location

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


def estimate_route(
    pickup: Location,
    dropoff: Location,
    average_speed_kmh: float = 30.0,
    fixed_overhead_min: float = 3.0,
) -> tuple[float, float]:
    """Return ``(distance_km, duration_min)`` between two points."""
    distance = haversine_km(
        pickup.latitude, pickup.longitude, dropoff.latitude, dropoff.longitude
    )
    return distance, distance / average_speed_kmh * 60 + fixed_overhead_min
