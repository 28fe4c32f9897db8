"""Shared constants.

Earth radii, unit conversions, SSE framing literals and NDVI thresholds
used across the geodesy, streaming and advisor modules.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Geodesy
# ---------------------------------------------------------------------------

AREA_EARTH_RADIUS_M: float = 6_378_137.0
"""WGS-84 equatorial radius, used as a sphere for polygon area."""

DISTANCE_EARTH_RADIUS_M: float = 6_371_000.0
"""Mean Earth radius used by the haversine distance."""

ACRES_PER_SQ_METRE: float = 0.000247105
"""Square metres to acres."""

KILOMETRE_THRESHOLD_M: float = 1000.0
"""Distances at or above this are reported in kilometres."""

MIN_POLYGON_POINTS: int = 3

# ---------------------------------------------------------------------------
# Server-Sent-Events framing
# ---------------------------------------------------------------------------

DATA_PREFIX: str = "data: "
COMMENT_PREFIX: str = ":"
DONE_SENTINEL: str = "[DONE]"
EVENT_STREAM_CONTENT_TYPE: str = "text/event-stream"

# ---------------------------------------------------------------------------
# NDVI health bands
# ---------------------------------------------------------------------------

NDVI_HEALTHY_MIN: float = 0.6
NDVI_MODERATE_MIN: float = 0.3
