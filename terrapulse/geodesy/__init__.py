"""Geodesic measurement of field polygons and map clicks."""

from terrapulse.geodesy.measure_tool import GeoTool, MeasureTool
from terrapulse.geodesy.measurement import (
    compute_area_acres,
    compute_distance_m,
    compute_perimeter_m,
    format_distance,
)

__all__ = [
    "GeoTool",
    "MeasureTool",
    "compute_area_acres",
    "compute_distance_m",
    "compute_perimeter_m",
    "format_distance",
]
