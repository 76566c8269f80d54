"""Turn an OpenWeatherMap payload into a WeatherData record, plus unit helpers."""

import math
from datetime import UTC, datetime, timedelta, timezone

from weather_gateway.models.weather import (
    Cloudiness,
    Coordinates,
    MainReadings,
    OpenWeatherResponse,
    Temperature,
    WeatherData,
    WindReadings,
)

_COMPASS_POINTS = [
    "N", "NNE", "NE", "ENE",
    "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW",
    "W", "WNW", "NW", "NNW",
]

MS_TO_KMH = 3.6


def convert_temperatures(celsius: float) -> tuple[float, float]:
    """Return ``(kelvin, fahrenheit)`` for a Celsius temperature."""
    kelvin = celsius + 273.15
    fahrenheit = celsius * 9 / 5 + 32
    return round_to_decimal(kelvin, 2), round_to_decimal(fahrenheit, 2)


def wind_direction(degrees: int) -> str:
    """Map a bearing in degrees to a 16-point compass direction.

    Each point covers 22.5 degrees centred on its bearing. Negative and
    >360 values are normalised first.
    """
    degrees = degrees % 360
    index = int((degrees + 11.25) / 22.5) % 16
    return _COMPASS_POINTS[index]


def unix_to_time(timezone_offset: int, timestamp: int) -> str:
    """Format a unix timestamp as ``HH:MM:SS`` in a fixed UTC offset (seconds)."""
    tz = timezone(timedelta(seconds=timezone_offset))
    return datetime.fromtimestamp(timestamp, tz=tz).strftime("%H:%M:%S")


def round_to_decimal(value: float, decimals: int) -> float:
    """Round half up to *decimals* places."""
    multiplier = 10**decimals
    return math.floor(value * multiplier + 0.5) / multiplier


def _temperature(celsius: float) -> Temperature:
    kelvin, fahrenheit = convert_temperatures(celsius)
    return Temperature(kelvin=kelvin, celsius=celsius, fahrenheit=fahrenheit)


def transform_weather(
    response: OpenWeatherResponse, now: datetime | None = None
) -> WeatherData:
    """Build the primary part of a WeatherData record.

    Enrichment fields keep their "unavailable" defaults; the caller fills
    them in along with ``last_updated`` and ``cache_hit``.

    Args:
        response: Parsed current-weather payload.
        now: Reference time for ``local_time``. Defaults to the current time.
    """
    now = now or datetime.now(tz=UTC)
    local_tz = timezone(timedelta(seconds=response.timezone))
    current = _temperature(response.main.temp)

    return WeatherData(
        name=response.name,
        country=response.sys.country,
        timezone=response.timezone,
        local_time=now.astimezone(local_tz).strftime("%H:%M:%S %Z"),
        main=MainReadings(
            temp_kelvin=current.kelvin,
            temp_celsius=current.celsius,
            temp_fahrenheit=current.fahrenheit,
            feels_like=_temperature(response.main.feels_like),
            temp_min=_temperature(response.main.temp_min),
            temp_max=_temperature(response.main.temp_max),
            humidity=response.main.humidity,
            pressure=response.main.pressure,
        ),
        wind=WindReadings(
            speed_ms=response.wind.speed,
            speed_kmh=response.wind.speed * MS_TO_KMH,
            direction=wind_direction(response.wind.deg),
            degrees=response.wind.deg,
        ),
        clouds=Cloudiness(all=response.clouds.all),
        weather=[condition.model_copy() for condition in response.weather],
        visibility_meters=response.visibility,
        sunrise=response.sys.sunrise,
        sunset=response.sys.sunset,
        sunrise_time=unix_to_time(response.timezone, response.sys.sunrise),
        sunset_time=unix_to_time(response.timezone, response.sys.sunset),
        coordinates=Coordinates(latitude=response.coord.lat, longitude=response.coord.lon),
    )
