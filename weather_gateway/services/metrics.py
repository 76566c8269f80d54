"""Request metrics: counters, a bounded latency window, exact percentiles."""

import math
import time
from collections import Counter, deque
from collections.abc import Callable
from datetime import timedelta

from weather_gateway.clients.locks import ReadWriteLock
from weather_gateway.models.stats import CityCount, MetricsSnapshot


def percentile(samples: list[float], pct: float) -> float:
    """Exact order-statistic percentile.

    Sorts a copy of *samples* and picks index ``floor(N * pct / 100)``,
    clamped to ``N - 1``. Returns 0 for no samples.
    """
    if not samples:
        return 0.0
    ordered = sorted(samples)
    index = min(math.floor(len(ordered) * pct / 100), len(ordered) - 1)
    return ordered[index]


def _rate(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return part / whole * 100


class MetricsAggregator:
    """Thread-safe request metrics for the lifetime of the process.

    Args:
        window_size: Number of most recent latencies kept for averages
            and percentiles. Oldest samples are dropped first.
        clock: Monotonic time source in seconds, used for uptime.
    """

    def __init__(
        self,
        window_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self.window_size = window_size
        self._clock = clock
        self._lock = ReadWriteLock()
        self._init_state()

    def _init_state(self) -> None:
        self._total = 0
        self._success = 0
        self._errors = 0
        self._cache_hits = 0
        self._cache_misses = 0
        self._latencies: deque[float] = deque(maxlen=self.window_size)
        self._cities: Counter[str] = Counter()
        self._start = self._clock()

    def record_request(
        self, duration_ms: float, cache_hit: bool, error: BaseException | None = None
    ) -> None:
        """Record one completed request."""
        with self._lock.write_locked():
            self._total += 1
            if cache_hit:
                self._cache_hits += 1
            else:
                self._cache_misses += 1
            if error is not None:
                self._errors += 1
            else:
                self._success += 1
            self._latencies.append(float(duration_ms))

    def record_subject_request(self, city: str) -> None:
        """Count a request for *city*.

        The city key space is unbounded; fine for the moderate number of
        distinct cities a single instance sees.
        """
        with self._lock.write_locked():
            self._cities[city] += 1

    def snapshot(self, top_n: int = 10) -> MetricsSnapshot:
        """Compute summary statistics without changing any state."""
        with self._lock.read_locked():
            uptime = max(self._clock() - self._start, 0.0)
            samples = list(self._latencies)
            # Count descending, then city name so equal counts order stably.
            ranked = sorted(self._cities.items(), key=lambda item: (-item[1], item[0]))
            total = self._total
            success = self._success
            errors = self._errors
            hits = self._cache_hits
            misses = self._cache_misses
            unique = len(self._cities)

        uptime_minutes = uptime / 60
        return MetricsSnapshot(
            total_requests=total,
            success_requests=success,
            errors=errors,
            cache_hits=hits,
            cache_misses=misses,
            cache_hit_rate=_rate(hits, hits + misses),
            error_rate=_rate(errors, total),
            average_response_ms=sum(samples) / len(samples) if samples else 0.0,
            p95_response_ms=percentile(samples, 95),
            p99_response_ms=percentile(samples, 99),
            uptime_seconds=uptime,
            uptime=str(timedelta(seconds=round(uptime))),
            requests_per_minute=total / uptime_minutes if uptime_minutes > 0 else 0.0,
            top_cities=[CityCount(city=city, count=count) for city, count in ranked[:top_n]],
            total_unique_cities=unique,
        )

    def reset(self) -> None:
        """Zero everything and restart the uptime clock. Administrative use only."""
        with self._lock.write_locked():
            self._init_state()
