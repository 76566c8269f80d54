from weather_gateway.models.stats import CacheStats, CityCount, MetricsSnapshot
from weather_gateway.models.weather import (
    AIR_QUALITY_UNKNOWN,
    AQI_UNAVAILABLE,
    UV_INDEX_UNAVAILABLE,
    AirQualityResponse,
    Coordinates,
    OpenWeatherResponse,
    Temperature,
    UVResponse,
    WeatherCondition,
    WeatherData,
)

__all__ = [
    "AIR_QUALITY_UNKNOWN",
    "AQI_UNAVAILABLE",
    "UV_INDEX_UNAVAILABLE",
    "AirQualityResponse",
    "CacheStats",
    "CityCount",
    "Coordinates",
    "MetricsSnapshot",
    "OpenWeatherResponse",
    "Temperature",
    "UVResponse",
    "WeatherCondition",
    "WeatherData",
]
