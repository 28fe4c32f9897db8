"""Data models and schemas.

- GeoPoint / MeasurementResult: geometry inputs and measurement outputs
- FieldData / WeatherData / AdvisorRequest: advisor request body
"""

from terrapulse.models.field import (
    AdvisorRequest,
    FieldData,
    NdviStatus,
    WeatherData,
    classify_ndvi,
    general_query,
)
from terrapulse.models.geo import (
    GeoPoint,
    MeasurementKind,
    MeasurementResult,
    ModelValidationError,
)

__all__ = [
    "AdvisorRequest",
    "FieldData",
    "GeoPoint",
    "MeasurementKind",
    "MeasurementResult",
    "ModelValidationError",
    "NdviStatus",
    "WeatherData",
    "classify_ndvi",
    "general_query",
]
