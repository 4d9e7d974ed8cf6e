"""
Zone geofencing
===============

Resolves which pricing zone contains a pickup point.

Algorithm
---------
Crossing-number (ray casting): a horizontal ray is cast from the point
towards +x and the polygon edges it crosses are counted.  An odd count
means the point is inside.  Coordinates are evaluated as
``x = longitude``, ``y = latitude``.

Boundary ambiguity
~~~~~~~~~~~~~~~~~~
A point lying exactly on an edge or vertex has no defined classification
under this test: depending on the edge orientation it may count as inside
or outside.  This is an accepted approximation for pricing purposes.

Resolution order
----------------
Zones are tested in declaration order and the first containing zone wins,
so overlapping zones must be declared most-specific first.

Complexity: O(V) per zone, O(sum of V) per lookup.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .entities import Zone


def point_in_polygon(
    x: float, y: float, ring: Sequence[tuple[float, float]]
) -> bool:
    """Return True if (x, y) is inside *ring* by the crossing-number test."""
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if (yi > y) != (yj > y):
            # yi != yj here, so the division is safe
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


class GeoZoneResolver:
    """Stateless lookup over an ordered, read-only zone configuration."""

    def __init__(self, zones: Iterable[Zone] = ()):
        self._zones: tuple[Zone, ...] = tuple(zones)

    @property
    def zones(self) -> tuple[Zone, ...]:
        return self._zones

    def resolve(self, latitude: float, longitude: float) -> Optional[Zone]:
        """Return the first zone containing the point, or None."""
        for zone in self._zones:
            if point_in_polygon(longitude, latitude, zone.ring):
                return zone
        return None
