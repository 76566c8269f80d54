import pytest

from tests.factories import FakeClock, make_fetcher
from weather_gateway.clients.cache import TTLCache
from weather_gateway.services.metrics import MetricsAggregator
from weather_gateway.services.weather_service import WeatherService


@pytest.fixture(autouse=True)
def _set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure required env vars are set for all tests."""
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-openweather-key")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Cache on a fake clock with the sweep thread disabled."""
    with TTLCache(ttl_seconds=600, sweep_interval_seconds=None, clock=clock) as c:
        yield c


@pytest.fixture
def metrics():
    return MetricsAggregator()


@pytest.fixture
def fetcher():
    return make_fetcher()


@pytest.fixture
def service(fetcher, cache, metrics):
    svc = WeatherService(fetcher, cache, metrics)
    yield svc
    svc.close()
