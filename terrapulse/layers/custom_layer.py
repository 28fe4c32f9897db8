"""Custom overlay layers uploaded by the user.

Accepts GeoJSON (``.geojson`` / ``.json``) and CSV point files and
normalises both into a GeoJSON ``FeatureCollection`` dict:

- GeoJSON: a ``FeatureCollection`` is kept as-is, a bare ``Feature`` is
  wrapped; anything else is rejected.
- CSV: needs a header row with a latitude column (``lat``, ``latitude``,
  ``y``) and a longitude column (``lng``, ``lon``, ``longitude``, ``x``),
  matched case-insensitively.  Each row with finite coordinates becomes
  a ``Point`` feature carrying every column as a property.

Polygon acreage for a layer is computed with the same spherical formula
used for drawn fields, so overlays and fields are directly comparable.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import math
import uuid
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

from shapely.errors import GeometryTypeError
from shapely.geometry import MultiPolygon, Polygon, shape

from terrapulse.core.exceptions import ValidationError
from terrapulse.geodesy.measurement import compute_area_acres, round_half_up
from terrapulse.models.geo import GeoPoint, ModelValidationError

logger = logging.getLogger("terrapulse.layers.custom_layer")

LAYER_COLORS: tuple[str, ...] = (
    "#ef4444",  # red
    "#3b82f6",  # blue
    "#22c55e",  # green
    "#f59e0b",  # amber
    "#8b5cf6",  # violet
    "#ec4899",  # pink
)

GEOJSON_EXTENSIONS = frozenset({".geojson", ".json"})
CSV_EXTENSIONS = frozenset({".csv"})

LAT_COLUMNS = ("lat", "latitude", "y")
LNG_COLUMNS = ("lng", "lon", "longitude", "x")


class LayerParseError(ValidationError):
    """Raised when an uploaded layer file cannot be turned into features."""

    default_stage = "custom_layer"
    default_code = "LAYER_PARSE_FAILED"


@dataclass(slots=True)
class CustomLayer:
    """A user-supplied overlay layer.

    Attributes:
        id: Random layer identifier.
        name: File name without its extension.
        type: Source format, ``"geojson"`` or ``"csv"``.
        data: GeoJSON ``FeatureCollection`` dict.
        visible: Whether the layer is drawn on the map.
        color: Display colour picked from ``LAYER_COLORS``.
    """

    id: str
    name: str
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    visible: bool = True
    color: str = LAYER_COLORS[0]

    @property
    def feature_count(self) -> int:
        return len(self.data.get("features", []))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_layer(file_name: str, content: str, *, existing: int = 0) -> CustomLayer:
    """Parse an uploaded file into a ``CustomLayer``.

    Args:
        file_name: Original file name; its extension selects the parser.
        content: Decoded file contents.
        existing: Number of layers already loaded (selects the colour).

    Raises:
        LayerParseError: Unsupported extension or unparsable content.
    """
    path = PurePath(file_name)
    extension = path.suffix.lower()

    if extension in GEOJSON_EXTENSIONS:
        layer_type = "geojson"
        data = parse_geojson(content)
    elif extension in CSV_EXTENSIONS:
        layer_type = "csv"
        data = parse_csv_points(content)
    else:
        msg = f"Unsupported file type {extension or '(none)'!r} for {file_name!r}. Use GeoJSON or CSV."
        raise LayerParseError(msg)

    layer = CustomLayer(
        id=str(uuid.uuid4()),
        name=path.stem,
        type=layer_type,
        data=data,
        color=LAYER_COLORS[existing % len(LAYER_COLORS)],
    )
    logger.info(
        "Layer loaded | name=%s | type=%s | features=%d | color=%s",
        layer.name,
        layer.type,
        layer.feature_count,
        layer.color,
    )
    return layer


def parse_geojson(content: str) -> dict[str, Any]:
    """Return a ``FeatureCollection`` dict from GeoJSON text.

    Raises:
        LayerParseError: Invalid JSON, or neither a Feature nor a
            FeatureCollection.
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse GeoJSON file: {exc.msg} (line {exc.lineno})"
        raise LayerParseError(msg) from exc

    kind = parsed.get("type") if isinstance(parsed, dict) else None
    if kind == "FeatureCollection":
        return parsed
    if kind == "Feature":
        return {"type": "FeatureCollection", "features": [parsed]}
    msg = f"Invalid GeoJSON format: expected Feature or FeatureCollection, got {kind!r}"
    raise LayerParseError(msg)


def parse_csv_points(content: str) -> dict[str, Any]:
    """Convert CSV rows with latitude/longitude columns into Point features.

    Rows whose coordinates are not finite numbers (including ``nan`` and
    ``inf``) are skipped.

    Raises:
        LayerParseError: Malformed CSV or missing coordinate columns.
    """
    try:
        reader = csv.DictReader(io.StringIO(content))
        columns = reader.fieldnames or []
        rows = list(reader)
    except csv.Error as exc:
        msg = f"CSV parsing error: {exc}"
        raise LayerParseError(msg) from exc

    lat_col = _find_column(columns, LAT_COLUMNS)
    lng_col = _find_column(columns, LNG_COLUMNS)
    if lat_col is None or lng_col is None:
        msg = "CSV must have latitude and longitude columns"
        raise LayerParseError(msg)

    features: list[dict[str, Any]] = []
    skipped = 0
    for row in rows:
        try:
            lat = float(row[lat_col])
            lng = float(row[lng_col])
        except (TypeError, ValueError):
            skipped += 1
            continue
        if not (math.isfinite(lat) and math.isfinite(lng)):
            skipped += 1
            continue
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [lng, lat]},
                "properties": {k: v for k, v in row.items() if k is not None},
            }
        )

    if skipped:
        logger.warning("Skipped CSV rows without finite coordinates | skipped=%d", skipped)

    return {"type": "FeatureCollection", "features": features}


def layer_area_acres(layer: CustomLayer) -> float:
    """Total polygon area of a layer in acres.

    Polygon and MultiPolygon features contribute their exterior area
    minus holes; other geometry types contribute nothing.  Features
    with unreadable geometry are skipped with a warning.
    """
    total = 0.0
    for index, feature in enumerate(layer.data.get("features", [])):
        geometry = feature.get("geometry") if isinstance(feature, dict) else None
        if not geometry:
            continue
        try:
            geom = shape(geometry)
            total += _geometry_acres(geom)
        except (GeometryTypeError, ModelValidationError, ValueError, TypeError, KeyError) as exc:
            logger.warning(
                "Skipping unreadable feature geometry | layer=%s | index=%d | error=%s",
                layer.name,
                index,
                exc,
            )
    return round_half_up(total, 2)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _find_column(columns: list[str], candidates: tuple[str, ...]) -> str | None:
    for column in columns:
        if column is not None and column.strip().lower() in candidates:
            return column
    return None


def _ring_points(coords: Any) -> list[GeoPoint]:
    points = [GeoPoint.from_lnglat(c) for c in coords]
    # Shapely rings repeat the first vertex.
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points


def _polygon_acres(polygon: Polygon) -> float:
    area = compute_area_acres(_ring_points(polygon.exterior.coords))
    for hole in polygon.interiors:
        area -= compute_area_acres(_ring_points(hole.coords))
    return max(area, 0.0)


def _geometry_acres(geom: Any) -> float:
    if isinstance(geom, Polygon):
        return _polygon_acres(geom)
    if isinstance(geom, MultiPolygon):
        return sum(_polygon_acres(part) for part in geom.geoms)
    return 0.0
