from __future__ import annotations

from typing import Any

import httpx

from research_chat.config import settings
from research_chat.errors import FetchError


async def get_forecast(latitude: float, longitude: float) -> dict[str, Any]:
    """Current temperature plus hourly/daily forecast from Open-Meteo."""
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise FetchError(f"Coordinates out of range: {latitude}, {longitude}")

    params: dict[str, Any] = {
        "latitude": latitude,
        "longitude": longitude,
        "current": "temperature_2m",
        "hourly": "temperature_2m",
        "daily": "sunrise,sunset",
        "timezone": "auto",
    }

    try:
        async with httpx.AsyncClient(timeout=settings.fetch_timeout_seconds) as client:
            response = await client.get(settings.weather_base_url, params=params)
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise FetchError(f"Weather request failed: {e}") from e

    if not isinstance(payload, dict):
        raise FetchError("Weather response was not a JSON object")
    return payload
