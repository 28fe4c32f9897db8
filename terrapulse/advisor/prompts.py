"""Prompt construction for the advisor proxy.

The proxy does no model work of its own: it wraps the field description
in a fixed advisor persona and forwards it to the chat-completion
gateway as a streaming request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from terrapulse.models.field import AdvisorRequest

SYSTEM_PROMPT = """You are a Rural AI Advisor - an expert agricultural consultant with deep knowledge of:
- Crop health assessment using NDVI (Normalized Difference Vegetation Index)
- Weather impact on farming
- Irrigation and soil management
- Pest and disease prevention
- Sustainable farming practices

Analyze the provided field data and give actionable, practical advice. Be concise but thorough.
Format your response with clear sections using markdown:
- **Health Status**: Quick assessment
- **Key Observations**: What the data tells us
- **Recommendations**: Specific actions to take
- **Weather Considerations**: How current/upcoming weather affects the field

Keep responses under 300 words. Be encouraging but honest about any concerns."""

FIELD_CLOSING = "Please analyze this agricultural field and provide recommendations."


def build_field_prompt(request: AdvisorRequest) -> str:
    """Render the user message describing the field, weather and question."""
    field = request.field
    ndvi = f"{field.ndvi_score:.2f}" if field.ndvi_score is not None else "Not available"

    lines = [
        f"Field: {field.name}",
        f"Area: {field.area_acres:g} acres",
        f"NDVI Score: {ndvi} ({field.ndvi_status.value})",
    ]
    if field.precipitation is not None:
        lines.append(f"Precipitation (7-day): {field.precipitation:g} mm")
    if field.soil_moisture is not None:
        lines.append(f"Soil Moisture: {field.soil_moisture:g}%")
    if field.temperature is not None:
        lines.append(f"Surface Temperature: {field.temperature:g}°F")

    weather = request.weather
    if weather is not None:
        lines += [
            "",
            "Current Weather:",
            f"- Temperature: {weather.temperature:g}°F",
            f"- Humidity: {weather.humidity:g}%",
            f"- Conditions: {weather.conditions}",
            f"- Wind Speed: {weather.wind_speed:g} mph",
            f"- Recent Precipitation: {weather.precipitation:g} mm",
        ]

    lines.append("")
    if request.query:
        lines.append(f"Question: {request.query}")
    else:
        lines.append(FIELD_CLOSING)
    return "\n".join(lines)


def build_gateway_payload(request: AdvisorRequest, model: str) -> dict[str, object]:
    """Build the streaming chat-completion body sent to the gateway."""
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_field_prompt(request)},
        ],
        "stream": True,
    }
