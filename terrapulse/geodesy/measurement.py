"""Geodesic measurement of drawn field geometry.

Turns ordered ``GeoPoint`` sequences gathered from map interaction into
real-world area (acres) and distance (metres) on a spherical Earth.

- Area uses the spherical-excess approximation with the WGS 84
  equatorial radius.  It is accurate for field- and farm-sized polygons
  and drifts over continental extents.
- Distance uses the haversine formula with the mean Earth radius.

The two radii are different constants (see ``terrapulse.core.constants``).

All functions are pure and reentrant.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from terrapulse.core.constants import (
    ACRES_PER_SQ_METRE,
    AREA_EARTH_RADIUS_M,
    DISTANCE_EARTH_RADIUS_M,
    KILOMETRE_THRESHOLD_M,
    MIN_POLYGON_POINTS,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from terrapulse.models.geo import GeoPoint

logger = logging.getLogger("terrapulse.geodesy.measurement")


# ---------------------------------------------------------------------------
# Area
# ---------------------------------------------------------------------------


def compute_area_acres(polygon: Sequence[GeoPoint]) -> float:
    """Compute the area enclosed by a ring of points, in acres.

    The ring is closed implicitly (last point connects to the first).
    Orientation is irrelevant: the absolute value is taken.

    Args:
        polygon: Ordered vertices; the first point is not repeated.

    Returns:
        Area in acres rounded to 2 decimal places.  ``0.0`` for fewer
        than three points.
    """
    n = len(polygon)
    if n < MIN_POLYGON_POINTS:
        return 0.0

    total = 0.0
    for i in range(n):
        p1 = polygon[i]
        p2 = polygon[(i + 1) % n]
        lat1 = math.radians(p1.lat)
        lat2 = math.radians(p2.lat)
        total += (math.radians(p2.lng) - math.radians(p1.lng)) * (
            2 + math.sin(lat1) + math.sin(lat2)
        )

    area_m2 = abs(total * AREA_EARTH_RADIUS_M * AREA_EARTH_RADIUS_M / 2)
    acres = round_half_up(area_m2 * ACRES_PER_SQ_METRE, 2)

    logger.debug("Area computed | vertices=%d | area=%.2f acres", n, acres)
    return acres


# ---------------------------------------------------------------------------
# Distance
# ---------------------------------------------------------------------------


def compute_distance_m(p1: GeoPoint, p2: GeoPoint) -> float:
    """Great-circle distance between two points in metres (haversine)."""
    lat1 = math.radians(p1.lat)
    lat2 = math.radians(p2.lat)
    delta_lat = math.radians(p2.lat - p1.lat)
    delta_lng = math.radians(p2.lng - p1.lng)

    a = (
        math.sin(delta_lat / 2) * math.sin(delta_lat / 2)
        + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lng / 2) * math.sin(delta_lng / 2)
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return DISTANCE_EARTH_RADIUS_M * c


def compute_perimeter_m(polygon: Sequence[GeoPoint]) -> float:
    """Length of the closed ring in metres, summed edge by edge.

    Returns ``0.0`` for fewer than two points.  Two points count as an
    out-and-back ring.
    """
    n = len(polygon)
    if n < 2:
        return 0.0
    return sum(compute_distance_m(polygon[i], polygon[(i + 1) % n]) for i in range(n))


def format_distance(meters: float) -> tuple[float, str]:
    """Apply the display unit policy to a distance.

    Returns:
        ``(meters / 1000, "km")`` at or above 1000 m, else ``(meters, "m")``.
    """
    if meters >= KILOMETRE_THRESHOLD_M:
        return meters / 1000, "km"
    return meters, "m"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float, places: int) -> float:
    """Round a non-negative value with halves going up (``0.125 -> 0.13``)."""
    scale = 10**places
    return math.floor(value * scale + 0.5) / scale
