from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    total_entries: int
    hit_count: int
    miss_count: int
    hit_rate: float  # percent
    cache_duration: str
    entries: dict[str, str] = Field(default_factory=dict)  # key -> expiry time


class CityCount(BaseModel):
    city: str
    count: int


class MetricsSnapshot(BaseModel):
    """Point-in-time view of request metrics. Rates are percentages."""

    total_requests: int
    success_requests: int
    errors: int
    cache_hits: int
    cache_misses: int
    cache_hit_rate: float
    error_rate: float
    average_response_ms: float
    p95_response_ms: float
    p99_response_ms: float
    uptime_seconds: float
    uptime: str
    requests_per_minute: float
    top_cities: list[CityCount] = Field(default_factory=list)
    total_unique_cities: int
