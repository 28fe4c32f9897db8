"""Typed geometry and measurement models.

- ``GeoPoint``: an immutable latitude/longitude pair (WGS 84 degrees).
- ``MeasurementKind``: distance or area.
- ``MeasurementResult``: tagged result of a completed measurement action.

Design notes:
- All models are frozen dataclasses; points are never mutated, only
  collected into ordered sequences.
- Polygons are plain ``Sequence[GeoPoint]`` rings with an implicit
  closing edge (the first point is not repeated).
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from terrapulse.core.constants import KILOMETRE_THRESHOLD_M
from terrapulse.core.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, ValidationError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        ValidationError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Points
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees.

    No datum transform is performed; coordinates are taken as WGS 84.

    Attributes:
        lat: Latitude in degrees (-90 to 90).
        lng: Longitude in degrees.  Not wrapped: clicks on a repeated copy
            of the world map arrive outside [-180, 180] and are kept as
            given, so edges across the antimeridian keep their true span.
    """

    lat: float
    lng: float

    def __post_init__(self) -> None:
        _check_range("GeoPoint", "lat", self.lat, -90, 90)
        _check_finite("GeoPoint", "lng", self.lng)

    @classmethod
    def from_lnglat(cls, coord: tuple[float, float] | list[float]) -> GeoPoint:
        """Build a point from a GeoJSON-ordered ``(lng, lat)`` pair."""
        return cls(lat=float(coord[1]), lng=float(coord[0]))

    def as_lnglat(self) -> tuple[float, float]:
        """Return the point in GeoJSON ``(lng, lat)`` order."""
        return (self.lng, self.lat)


# ---------------------------------------------------------------------------
# Measurement results
# ---------------------------------------------------------------------------


class MeasurementKind(enum.Enum):
    """Which measurement tool produced a result."""

    DISTANCE = "distance"
    AREA = "area"


@dataclass(frozen=True, slots=True)
class MeasurementResult:
    """A transient measurement value handed back to the caller.

    Exactly one of ``meters`` / ``acres`` is meaningful, selected by
    ``kind``.  Use the ``distance()`` and ``area()`` constructors.
    """

    kind: MeasurementKind
    meters: float = 0.0
    acres: float = 0.0

    def __post_init__(self) -> None:
        _check_min("MeasurementResult", "meters", self.meters, 0)
        _check_min("MeasurementResult", "acres", self.acres, 0)

    @classmethod
    def distance(cls, meters: float) -> MeasurementResult:
        return cls(kind=MeasurementKind.DISTANCE, meters=meters)

    @classmethod
    def area(cls, acres: float) -> MeasurementResult:
        return cls(kind=MeasurementKind.AREA, acres=acres)

    @property
    def value(self) -> float:
        """Display value: kilometres or metres for distance, acres for area."""
        if self.kind is MeasurementKind.AREA:
            return self.acres
        if self.meters >= KILOMETRE_THRESHOLD_M:
            return self.meters / 1000
        return self.meters

    @property
    def unit(self) -> str:
        """Display unit matching ``value`` (``"km"``, ``"m"`` or ``"acres"``)."""
        if self.kind is MeasurementKind.AREA:
            return "acres"
        return "km" if self.meters >= KILOMETRE_THRESHOLD_M else "m"

    def to_dict(self) -> dict[str, object]:
        """Serialise to the tagged-union dict form."""
        if self.kind is MeasurementKind.AREA:
            return {"kind": self.kind.value, "acres": self.acres}
        return {"kind": self.kind.value, "meters": self.meters}


# ---------------------------------------------------------------------------
# Validation helpers (module-private)
# ---------------------------------------------------------------------------


def _check_range(model: str, field_name: str, value: float, lo: float, hi: float) -> None:
    """Raise `ModelValidationError` if *value* falls outside [lo, hi]."""
    if not lo <= value <= hi:
        raise ModelValidationError(model, field_name, value, f"must be between {lo} and {hi}")


def _check_min(model: str, field_name: str, value: float, lo: float) -> None:
    """Raise `ModelValidationError` if *value* is below *lo*."""
    if value < lo:
        raise ModelValidationError(model, field_name, value, f"must be >= {lo}")


def _check_finite(model: str, field_name: str, value: float) -> None:
    """Raise `ModelValidationError` if *value* is NaN or infinite."""
    if not math.isfinite(value):
        raise ModelValidationError(model, field_name, value, "must be a finite number")
