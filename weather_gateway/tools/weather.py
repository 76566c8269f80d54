"""MCP tool for looking up enriched weather by city."""

import logging

from fastmcp import FastMCP

from weather_gateway.models.weather import AQI_UNAVAILABLE, UV_INDEX_UNAVAILABLE, WeatherData
from weather_gateway.server import get_service
from weather_gateway.tools.error_messages import safe_tool_wrapper

logger = logging.getLogger(__name__)


def format_weather(data: WeatherData) -> str:
    """Render a WeatherData record as a short multi-line summary."""
    place = f"{data.name}, {data.country}" if data.country else data.name
    conditions = ", ".join(w.description for w in data.weather if w.description)
    main = data.main

    lines = [
        f"{place} (local time {data.local_time})",
        f"  Temperature: {main.temp_celsius:.1f}°C / {main.temp_fahrenheit:.1f}°F "
        f"(feels like {main.feels_like.celsius:.1f}°C)",
        f"  Range: {main.temp_min.celsius:.1f}°C to {main.temp_max.celsius:.1f}°C",
        f"  Humidity: {main.humidity}%  Pressure: {main.pressure} hPa",
        f"  Wind: {data.wind.speed_kmh:.1f} km/h {data.wind.direction}",
    ]
    if conditions:
        lines.append(f"  Conditions: {conditions}")
    lines.append(f"  Sunrise {data.sunrise_time}, sunset {data.sunset_time}")

    uv = "unavailable" if data.uv_index == UV_INDEX_UNAVAILABLE else f"{data.uv_index:.1f}"
    lines.append(f"  UV index: {uv}")
    if data.aqi == AQI_UNAVAILABLE:
        lines.append("  Air quality: unavailable")
    else:
        lines.append(f"  Air quality: {data.air_quality} (AQI {data.aqi})")

    source = "cache" if data.cache_hit else "live"
    lines.append(f"  Updated {data.last_updated} ({source})")
    return "\n".join(lines)


def register_weather_tools(mcp: FastMCP) -> None:
    """Register weather lookup tools on the MCP server."""

    @mcp.tool
    async def get_weather(city: str) -> str:
        """Get current weather for a city, with UV index and air quality.

        Results are cached per city for a few minutes.

        Args:
            city: City name, e.g. "London" or "Paris,FR".

        Returns:
            Formatted weather summary, or an error message.
        """

        async def _lookup() -> str:
            data = await get_service().get_weather(city)
            return format_weather(data)

        return await safe_tool_wrapper(_lookup, context={"city": city.strip()})
