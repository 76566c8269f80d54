"""OpenWeatherMap client: current weather, UV index and air quality."""

import logging

import httpx
from pydantic import ValidationError

from weather_gateway.clients.errors import UpstreamUnavailableError, classify_response
from weather_gateway.models.weather import (
    AIR_QUALITY_UNKNOWN,
    AirQualityResponse,
    OpenWeatherResponse,
    UVResponse,
)

logger = logging.getLogger(__name__)

_AIR_QUALITY_LABELS = {
    1: "Good",
    2: "Fair",
    3: "Moderate",
    4: "Poor",
    5: "Very Poor",
}


def air_quality_label(aqi: int) -> str:
    """Describe an OpenWeatherMap AQI level (1-5)."""
    return _AIR_QUALITY_LABELS.get(aqi, AIR_QUALITY_UNKNOWN)


class OpenWeatherClient:
    """Thin async wrapper over the OpenWeatherMap 2.5 API.

    Every call enforces its own client-side timeout; nothing is retried.

    Args:
        api_key: OpenWeatherMap API key.
        base_url: API root, overridable for tests and proxies.
        timeout: Per-request timeout in seconds.
    """

    BASE_URL = "https://api.openweathermap.org/data/2.5"

    def __init__(
        self, api_key: str, base_url: str | None = None, timeout: float = 10.0
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout

    async def _get(self, path: str, params: dict, subject: str | None = None) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/{path}",
                    params={**params, "appid": self.api_key},
                )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"Failed to reach weather API: {exc}") from exc

        classify_response(response, subject)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(f"Failed to parse {path} response: {exc}") from exc

    async def get_weather(self, city: str) -> OpenWeatherResponse:
        """Fetch current weather for a city name, in metric units.

        Raises:
            UpstreamNotFoundError: The provider does not know the city.
            UpstreamUnavailableError: Transport, status or parse failure.
        """
        data = await self._get("weather", {"q": city, "units": "metric"}, subject=city)
        try:
            return OpenWeatherResponse.model_validate(data)
        except ValidationError as exc:
            raise UpstreamUnavailableError(f"Failed to parse weather data: {exc}") from exc

    async def get_uv_index(self, lat: float, lon: float) -> float:
        """Fetch the UV index at a coordinate."""
        data = await self._get("uvi", {"lat": lat, "lon": lon})
        try:
            return UVResponse.model_validate(data).value
        except ValidationError as exc:
            raise UpstreamUnavailableError(f"Failed to parse UV data: {exc}") from exc

    async def get_air_quality(self, lat: float, lon: float) -> tuple[int, str]:
        """Fetch the air quality index at a coordinate.

        Returns:
            ``(aqi, label)``. An empty reading list yields ``(0, "Unknown")``.
        """
        data = await self._get("air_pollution", {"lat": lat, "lon": lon})
        try:
            readings = AirQualityResponse.model_validate(data)
        except ValidationError as exc:
            raise UpstreamUnavailableError(f"Failed to parse air quality data: {exc}") from exc

        if not readings.items:
            return 0, AIR_QUALITY_UNKNOWN
        aqi = readings.items[0].main.aqi
        return aqi, air_quality_label(aqi)
