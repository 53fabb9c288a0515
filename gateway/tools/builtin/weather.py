"""Weather tool — query current conditions via weatherapi.com."""
import logging
from typing import Any, Dict

import httpx
from pydantic import BaseModel, Field

from ...config import settings
from ...errors import ConfigurationError, UpstreamError
from ..registry import register_tool

logger = logging.getLogger(__name__)


class WeatherArgs(BaseModel):
    location: str = Field(
        ..., min_length=2, max_length=100,
        description="City name, zip code, or 'latitude,longitude'.",
    )


async def _fetch_current(location: str, api_key: str) -> Dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(
                f"{settings.weather_base_url.rstrip('/')}/current.json",
                params={"key": api_key, "q": location},
            )
    except httpx.HTTPError as e:
        raise UpstreamError(f"Weather API request failed: {e}", location=location) from e

    if resp.status_code >= 400:
        raise UpstreamError(
            f"Weather API error: {resp.status_code} {resp.reason_phrase}",
            location=location, status=resp.status_code,
        )
    try:
        return resp.json()
    except ValueError as e:
        raise UpstreamError("Weather API returned invalid JSON", location=location) from e


def normalize(data: Dict[str, Any], location: str) -> Dict[str, Any]:
    loc = data.get("location") or {}
    current = data.get("current") or {}
    condition = current.get("condition") or {}
    return {
        "location": loc.get("name", location),
        "region": loc.get("region"),
        "country": loc.get("country"),
        "temperature_c": current.get("temp_c"),
        "temperature_f": current.get("temp_f"),
        "condition": condition.get("text"),
        "icon": condition.get("icon"),
        "humidity": current.get("humidity"),
        "wind_kph": current.get("wind_kph"),
        "wind_dir": current.get("wind_dir"),
        "last_updated": current.get("last_updated"),
    }


@register_tool(
    "get_current_weather",
    description=(
        "Returns the current weather for a location: temperature, condition, humidity and wind. "
        "Always provide 'location' as a city name, zip code, or coordinates (latitude,longitude), "
        "e.g. 'London', '90210', '48.8566,2.3522'. If the user gives no location, ask for one."
    ),
    params=WeatherArgs,
    category="info",
)
async def get_current_weather(args: WeatherArgs, session=None, **kwargs) -> dict:
    api_key = settings.weather_api_key
    if not api_key:
        raise ConfigurationError(
            "Weather API key not set in WEATHER_API_KEY env variable", location=args.location)

    data = await _fetch_current(args.location, api_key)
    result = normalize(data, args.location)
    logger.info(f"Weather: {result['location']} {result['temperature_c']}C {result['condition']}")
    return result
