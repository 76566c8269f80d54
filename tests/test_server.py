import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from fastmcp import Client, FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.server.middleware.rate_limiting import RateLimitingMiddleware
from mcp import McpError

from weather_gateway.clients.openweather import OpenWeatherClient
from weather_gateway.config import Settings
from weather_gateway.server import (
    _reset_service,
    app_lifespan,
    build_service,
    get_service,
    initialize,
    mcp,
    setup_logging,
    setup_middleware,
)


def _clear_root_handlers() -> None:
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


class TestSetupLogging:
    """Test setup_logging configuration."""

    def setup_method(self):
        _clear_root_handlers()

    def teardown_method(self):
        _clear_root_handlers()

    def test_sets_root_logger_level(self, tmp_path):
        setup_logging("DEBUG", tmp_path)
        assert logging.getLogger().level == logging.DEBUG

    def test_creates_console_handler(self, tmp_path):
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        stream_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1

    def test_log_file_path(self, tmp_path):
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        file_handler = next(
            h for h in root.handlers if isinstance(h, RotatingFileHandler)
        )
        assert Path(file_handler.baseFilename) == tmp_path / "logs" / "server.log"

    def test_no_duplicate_handlers_on_second_call(self, tmp_path):
        setup_logging("INFO", tmp_path)
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        stream_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(stream_handlers) == 1
        assert len(file_handlers) == 1

    def test_invalid_log_level_falls_back_to_info(self, tmp_path):
        setup_logging("INVALID_LEVEL", tmp_path)
        assert logging.getLogger().level == logging.INFO


class TestInitialize:
    """Test the initialize function."""

    def setup_method(self):
        from weather_gateway.config import reset_settings

        reset_settings()
        _clear_root_handlers()

    def teardown_method(self):
        from weather_gateway.config import reset_settings

        reset_settings()
        _clear_root_handlers()

    def test_returns_mcp_instance(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        assert initialize() is mcp

    def test_creates_logs_subdir(self, tmp_path, monkeypatch):
        data_dir = tmp_path / "new_data"
        monkeypatch.setenv("DATA_DIR", str(data_dir))
        initialize()
        assert (data_dir / "logs").exists()

    async def test_registers_tools(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        initialize()
        names = {tool.name for tool in (await mcp.get_tools()).values()}
        assert {
            "get_weather",
            "cache_status",
            "clear_cache",
            "service_metrics",
            "reset_metrics",
            "health",
            "readiness",
        } <= names

    def test_attaches_middleware(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        initialize()
        initialize()
        limiters = [m for m in mcp.middleware if isinstance(m, RateLimitingMiddleware)]
        assert len(limiters) == 1
        assert any(isinstance(m, LoggingMiddleware) for m in mcp.middleware)


def _ping_server(rate_limit_per_minute: int) -> FastMCP:
    server = FastMCP("test")

    @server.tool
    def ping() -> str:
        return "pong"

    setup_middleware(
        server, Settings(_env_file=None, rate_limit_per_minute=rate_limit_per_minute)
    )
    return server


class TestSetupMiddleware:
    """Test request logging and rate limiting middleware."""

    def test_registers_logging_then_rate_limit(self):
        server = _ping_server(100)
        assert [type(m) for m in server.middleware] == [
            LoggingMiddleware,
            RateLimitingMiddleware,
        ]

    def test_rate_limit_from_settings(self):
        limiter = _ping_server(120).middleware[1]
        assert limiter.burst_capacity == 120
        assert limiter.max_requests_per_second == pytest.approx(2.0)

    def test_second_call_adds_nothing(self):
        server = _ping_server(100)
        setup_middleware(server, Settings(_env_file=None))
        assert len(server.middleware) == 2

    async def test_within_limit_succeeds(self):
        async with Client(_ping_server(100)) as client:
            result = await client.call_tool("ping", {})
        assert "pong" in str(result)

    async def test_over_limit_call_rejected(self):
        outcomes = []
        async with Client(_ping_server(5)) as client:
            for _ in range(10):
                try:
                    await client.call_tool("ping", {})
                    outcomes.append("ok")
                except (McpError, ToolError) as exc:
                    outcomes.append(str(exc))

        assert outcomes[0] == "ok"
        assert outcomes.count("ok") <= 5
        assert any("Rate limit exceeded" in outcome for outcome in outcomes)


class TestBuildService:
    def test_wires_settings(self):
        settings = Settings(
            _env_file=None,
            openweather_api_key="k",
            cache_expiry_minutes=5,
            cache_sweep_interval_seconds=120,
            latency_window_size=50,
            top_cities_limit=3,
            request_timeout_seconds=4,
        )
        service = build_service(settings)
        try:
            assert isinstance(service.fetcher, OpenWeatherClient)
            assert service.fetcher.api_key == "k"
            assert service.fetcher.timeout == 4
            assert service.cache.ttl_seconds == 300
            assert service.metrics.window_size == 50
            assert service.top_cities_limit == 3
        finally:
            service.close()


class TestAppLifespan:
    """Test the async service lifecycle."""

    def setup_method(self):
        from weather_gateway.config import reset_settings

        reset_settings()
        _reset_service()

    def teardown_method(self):
        from weather_gateway.config import reset_settings

        reset_settings()
        _reset_service()

    async def test_lifespan_builds_and_closes_service(self):
        import weather_gateway.server as server_module

        async with app_lifespan(mcp) as result:
            service = result["service"]
            assert server_module._service is service
            assert get_service() is service
            assert not service.cache.closed

        assert server_module._service is None
        assert service.cache.closed

    async def test_lifespan_requires_api_key(self):
        from weather_gateway.config import get_settings

        get_settings().openweather_api_key = ""
        with pytest.raises(RuntimeError, match="OPENWEATHER_API_KEY"):
            async with app_lifespan(mcp):
                pass


class TestGetService:
    def setup_method(self):
        _reset_service()

    def teardown_method(self):
        _reset_service()

    def test_raises_when_not_initialized(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            get_service()

    def test_reset_service_clears_reference(self):
        import weather_gateway.server as server_module

        server_module._service = "sentinel"  # type: ignore[assignment]
        _reset_service()
        assert server_module._service is None
