"""In-memory TTL cache with hit/miss metrics and a background expiry sweep."""

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import NamedTuple

from weather_gateway.clients.locks import ReadWriteLock
from weather_gateway.models.stats import CacheStats

logger = logging.getLogger(__name__)

EXPIRY_FORMAT = "%Y-%m-%d %H:%M:%S"


class CacheEntry(NamedTuple):
    value: object
    expires_at: float


class CacheMetrics:
    """Tracks cache hit/miss statistics."""

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage in [0, 100]."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total * 100


class TTLCache:
    """Fixed-TTL cache safe for concurrent use from threads and tasks.

    Expired entries are never returned, but ``get`` does not remove them;
    they are dropped when overwritten by ``set`` or by the periodic sweep.

    Args:
        ttl_seconds: Lifetime of every entry.
        sweep_interval_seconds: Seconds between background sweeps. ``None``
            disables the sweep thread (``sweep()`` can still be called).
        clock: Source of the current time in epoch seconds.
    """

    def __init__(
        self,
        ttl_seconds: float = 600,
        sweep_interval_seconds: float | None = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._lock = ReadWriteLock()
        # Readers share the rwlock, so counter updates need their own mutex.
        self._counter_lock = threading.Lock()
        self.metrics = CacheMetrics()

        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None
        if sweep_interval_seconds is not None:
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(sweep_interval_seconds,),
                daemon=True,
                name="ttl-cache-sweep",
            )
            self._sweeper.start()

        logger.info("Cache initialized with %s expiry time", timedelta(seconds=ttl_seconds))

    def get(self, key: str) -> tuple[object | None, bool]:
        """Look up *key*.

        Returns:
            ``(value, True)`` if a live entry exists, otherwise ``(None, False)``.
        """
        with self._lock.read_locked():
            entry = self._store.get(key)
            found = entry is not None and self._clock() < entry.expires_at

        with self._counter_lock:
            if found:
                self.metrics.hits += 1
            else:
                self.metrics.misses += 1

        if not found:
            return None, False
        return entry.value, True

    def set(self, key: str, value: object) -> None:
        """Store *value*, replacing any existing entry for *key*."""
        with self._lock.write_locked():
            self._store[key] = CacheEntry(value, self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        """Remove all entries. Hit/miss counters are kept."""
        with self._lock.write_locked():
            self._store = {}
        logger.info("Cache cleared")

    def size(self) -> int:
        """Number of entries that have not yet expired."""
        with self._lock.read_locked():
            now = self._clock()
            return sum(1 for entry in self._store.values() if now < entry.expires_at)

    def stats(self) -> CacheStats:
        with self._lock.read_locked():
            now = self._clock()
            entries = {
                key: datetime.fromtimestamp(entry.expires_at).strftime(EXPIRY_FORMAT)
                for key, entry in self._store.items()
                if now < entry.expires_at
            }
        with self._counter_lock:
            hits = self.metrics.hits
            misses = self.metrics.misses
            hit_rate = self.metrics.hit_rate

        return CacheStats(
            total_entries=len(entries),
            hit_count=hits,
            miss_count=misses,
            hit_rate=hit_rate,
            cache_duration=str(timedelta(seconds=self.ttl_seconds)),
            entries=entries,
        )

    def sweep(self) -> int:
        """Physically remove expired entries. Returns the number removed."""
        with self._lock.write_locked():
            now = self._clock()
            expired = [key for key, entry in self._store.items() if now >= entry.expires_at]
            for key in expired:
                del self._store[key]

        if expired:
            logger.info("Cleaned %d expired cache entries", len(expired))
        return len(expired)

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            try:
                self.sweep()
            except Exception:  # noqa: BLE001
                logger.exception("Cache sweep failed")

    def close(self) -> None:
        """Stop the background sweep thread."""
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=2.0)
            self._sweeper = None

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def __enter__(self) -> "TTLCache":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
