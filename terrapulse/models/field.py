"""Pydantic models for the advisor request body.

The advisor endpoint receives a field description (name, area, NDVI and
optional environmental readings), an optional weather snapshot, and an
optional free-text question.  The same models are used by the client
that builds the POST body and by the proxy that validates it.

NDVI is treated as an opaque reading here; it is classified into health
bands for display and prompting but never computed.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field

from terrapulse.core.constants import NDVI_HEALTHY_MIN, NDVI_MODERATE_MIN


class NdviStatus(enum.Enum):
    """Vegetation health band derived from an NDVI score."""

    HEALTHY = "Healthy"
    MODERATE = "Moderate"
    POOR = "Poor"
    NO_DATA = "No data"


def classify_ndvi(score: float | None) -> NdviStatus:
    """Map an NDVI score onto a health band.

    ``>= 0.6`` is healthy, ``>= 0.3`` moderate, anything lower poor.
    ``None`` means no reading is available.
    """
    if score is None:
        return NdviStatus.NO_DATA
    if score >= NDVI_HEALTHY_MIN:
        return NdviStatus.HEALTHY
    if score >= NDVI_MODERATE_MIN:
        return NdviStatus.MODERATE
    return NdviStatus.POOR


class FieldData(BaseModel):
    """Field description sent to the advisor.

    Attributes:
        name: Field name as shown in the sidebar.
        area_acres: Computed field area in acres.
        ndvi_score: NDVI reading in [-1, 1], or ``None`` when unavailable.
        precipitation: 7-day precipitation in millimetres.
        soil_moisture: Soil moisture percentage.
        temperature: Surface temperature in degrees Fahrenheit.
    """

    name: str = Field(min_length=1)
    area_acres: float = Field(default=0.0, ge=0)
    ndvi_score: float | None = Field(default=None, ge=-1, le=1)
    precipitation: float | None = None
    soil_moisture: float | None = Field(default=None, ge=0, le=100)
    temperature: float | None = None

    @property
    def ndvi_status(self) -> NdviStatus:
        return classify_ndvi(self.ndvi_score)


class WeatherData(BaseModel):
    """Current weather snapshot for the field location."""

    temperature: float
    humidity: float = Field(ge=0, le=100)
    precipitation: float = Field(ge=0)
    wind_speed: float = Field(ge=0)
    conditions: str = ""


class AdvisorRequest(BaseModel):
    """Complete advisor POST body."""

    field: FieldData
    weather: WeatherData | None = None
    query: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body, omitting absent optional readings.

        ``ndvi_score`` is always present (``null`` when unknown).
        """
        field_payload = self.field.model_dump(exclude_none=True)
        field_payload["ndvi_score"] = self.field.ndvi_score
        payload: dict[str, object] = {"field": field_payload}
        if self.weather is not None:
            payload["weather"] = self.weather.model_dump()
        if self.query:
            payload["query"] = self.query
        return payload


GENERAL_QUERY_FIELD_NAME = "General Query"


def general_query(query: str) -> AdvisorRequest:
    """Build a chat-style request that is not tied to a drawn field."""
    return AdvisorRequest(
        field=FieldData(name=GENERAL_QUERY_FIELD_NAME, area_acres=0, ndvi_score=None),
        query=query,
    )
