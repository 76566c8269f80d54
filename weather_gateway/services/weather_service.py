"""Cache-aside weather lookups with concurrent UV / air-quality enrichment."""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from weather_gateway.clients.cache import TTLCache
from weather_gateway.clients.errors import InvalidInputError
from weather_gateway.models.stats import CacheStats, MetricsSnapshot
from weather_gateway.models.weather import (
    AIR_QUALITY_UNKNOWN,
    AQI_UNAVAILABLE,
    UV_INDEX_UNAVAILABLE,
    OpenWeatherResponse,
    WeatherData,
)
from weather_gateway.services.metrics import MetricsAggregator
from weather_gateway.services.transform import transform_weather

logger = logging.getLogger(__name__)

LAST_UPDATED_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


class WeatherFetcher(Protocol):
    """The upstream calls the service depends on."""

    async def get_weather(self, city: str) -> OpenWeatherResponse: ...

    async def get_uv_index(self, lat: float, lon: float) -> float: ...

    async def get_air_quality(self, lat: float, lon: float) -> tuple[int, str]: ...


def normalize_city(city: str) -> str:
    """Trim and lowercase a city name. Raises InvalidInputError if nothing is left."""
    normalized = (city or "").strip().lower()
    if not normalized:
        raise InvalidInputError("city name cannot be empty")
    return normalized


class WeatherService:
    """Serves enriched weather records, caching them per city.

    Args:
        fetcher: Upstream client (see ``WeatherFetcher``).
        cache: Cache of ``WeatherData`` keyed by normalized city name.
        metrics: Aggregator that receives one observation per timed request.
        top_cities_limit: How many cities ``metrics_snapshot`` ranks.
        clock: Monotonic time source in seconds for request durations.
    """

    def __init__(
        self,
        fetcher: WeatherFetcher,
        cache: TTLCache,
        metrics: MetricsAggregator,
        top_cities_limit: int = 10,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.fetcher = fetcher
        self.cache = cache
        self.metrics = metrics
        self.top_cities_limit = top_cities_limit
        self._clock = clock
        self._inflight: set[asyncio.Task] = set()

    def _elapsed_ms(self, started: float) -> float:
        return (self._clock() - started) * 1000

    async def get_weather(self, city: str) -> WeatherData:
        """Return weather for *city*, from cache when fresh.

        Empty input is rejected before any cache or network access and is
        not counted in the request metrics.

        Raises:
            InvalidInputError: *city* is empty or whitespace.
            UpstreamNotFoundError: The provider does not know the city.
            UpstreamUnavailableError: The provider could not be reached or parsed.
        """
        started = self._clock()
        key = normalize_city(city)
        self.metrics.record_subject_request(key)

        cached, found = self.cache.get(key)
        if found:
            data = cached.model_copy(update={"cache_hit": True}, deep=True)
            duration = self._elapsed_ms(started)
            self.metrics.record_request(duration, cache_hit=True)
            logger.info("Cache hit for city: %s (took %.1fms)", key, duration)
            return data

        logger.info("Cache miss for city: %s, fetching from API", key)
        # Shielded so a caller that goes away still lets the fetch finish and
        # populate the cache for later requests.
        task = asyncio.ensure_future(self._fetch_and_store(key, started))
        self._inflight.add(task)
        task.add_done_callback(self._forget)
        return await asyncio.shield(task)

    def _forget(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if not task.cancelled():
            # Mark the exception retrieved; the awaiting caller (if any) gets it too.
            task.exception()

    async def _fetch_and_store(self, key: str, started: float) -> WeatherData:
        try:
            response = await self.fetcher.get_weather(key)
        except Exception as exc:
            self.metrics.record_request(self._elapsed_ms(started), cache_hit=False, error=exc)
            raise

        uv_index, (aqi, air_quality) = await asyncio.gather(
            self._fetch_uv_index(response.coord.lat, response.coord.lon),
            self._fetch_air_quality(response.coord.lat, response.coord.lon),
        )

        data = transform_weather(response)
        data.uv_index = uv_index
        data.aqi = aqi
        data.air_quality = air_quality
        data.cache_hit = False
        data.last_updated = datetime.now(tz=UTC).strftime(LAST_UPDATED_FORMAT)

        self.cache.set(key, data.model_copy(deep=True))

        duration = self._elapsed_ms(started)
        self.metrics.record_request(duration, cache_hit=False)
        logger.info(
            "Fetched and cached weather for %s (took %.1fms)", data.name or key, duration
        )
        return data

    async def _fetch_uv_index(self, lat: float, lon: float) -> float:
        try:
            return await self.fetcher.get_uv_index(lat, lon)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to get UV index: %s", exc)
            return UV_INDEX_UNAVAILABLE

    async def _fetch_air_quality(self, lat: float, lon: float) -> tuple[int, str]:
        try:
            return await self.fetcher.get_air_quality(lat, lon)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to get air quality: %s", exc)
            return AQI_UNAVAILABLE, AIR_QUALITY_UNKNOWN

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def metrics_snapshot(self) -> MetricsSnapshot:
        return self.metrics.snapshot(top_n=self.top_cities_limit)

    def clear_cache(self) -> None:
        self.cache.clear()

    def reset_metrics(self) -> None:
        self.metrics.reset()

    def close(self) -> None:
        """Stop background work owned by the service (the cache sweep)."""
        self.cache.close()

    async def aclose(self) -> None:
        """Let in-flight fetches finish, then close."""
        if self._inflight:
            logger.info("Waiting for %d in-flight fetches", len(self._inflight))
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
        self.close()
