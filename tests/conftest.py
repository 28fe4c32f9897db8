"""Shared pytest fixtures for the TerraPulse test suite."""

from __future__ import annotations

import json

import pytest

from terrapulse.core.config import AdvisorConfig
from terrapulse.models.field import AdvisorRequest, FieldData, WeatherData
from terrapulse.models.geo import GeoPoint

# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------


def sse_data(content: str) -> str:
    """Return one newline-terminated chat-completion delta line."""
    event = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(event, ensure_ascii=False)}\n"


def sse_stream(*contents: str, done: bool = True) -> bytes:
    """Return a complete SSE body carrying *contents* as separate deltas."""
    body = "".join(sse_data(c) for c in contents)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


# ---------------------------------------------------------------------------
# Geometry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def equator_triangle() -> list[GeoPoint]:
    """Right triangle with 0.01 degree legs at the equator (~153 acres)."""
    return [GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.01), GeoPoint(0.01, 0.0)]


@pytest.fixture()
def yakima_block() -> list[GeoPoint]:
    """Rectangular orchard block in the Yakima Valley (46.6 N)."""
    return [
        GeoPoint(46.6040, -120.5210),
        GeoPoint(46.6130, -120.5210),
        GeoPoint(46.6130, -120.5080),
        GeoPoint(46.6040, -120.5080),
    ]


# ---------------------------------------------------------------------------
# Advisor fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def advisor_config() -> AdvisorConfig:
    return AdvisorConfig(
        advisor_url="https://example.test/functions/v1/rural-advisor",
        api_key="publishable-key",
        gateway_url="https://gateway.example.test/v1/chat/completions",
        gateway_api_key="gateway-secret",
        model="test-model",
        timeout_s=5.0,
    )


@pytest.fixture()
def field_request() -> AdvisorRequest:
    return AdvisorRequest(
        field=FieldData(
            name="North Pasture",
            area_acres=42.5,
            ndvi_score=0.72,
            precipitation=12,
            soil_moisture=45,
            temperature=71,
        ),
        weather=WeatherData(
            temperature=68,
            humidity=55,
            precipitation=3.2,
            wind_speed=8,
            conditions="Partly cloudy",
        ),
    )
