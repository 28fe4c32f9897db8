"""Custom overlay layers (GeoJSON and CSV uploads)."""

from terrapulse.layers.custom_layer import (
    LAYER_COLORS,
    CustomLayer,
    LayerParseError,
    layer_area_acres,
    load_layer,
    parse_csv_points,
    parse_geojson,
)

__all__ = [
    "LAYER_COLORS",
    "CustomLayer",
    "LayerParseError",
    "layer_area_acres",
    "load_layer",
    "parse_csv_points",
    "parse_geojson",
]
