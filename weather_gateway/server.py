import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastmcp import FastMCP
from fastmcp.server.middleware import MiddlewareContext
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.server.middleware.rate_limiting import RateLimitingMiddleware

from weather_gateway.clients.cache import TTLCache
from weather_gateway.clients.openweather import OpenWeatherClient
from weather_gateway.config import Settings
from weather_gateway.services.metrics import MetricsAggregator
from weather_gateway.services.weather_service import WeatherService

logger = logging.getLogger(__name__)

_service: WeatherService | None = None


def get_service() -> WeatherService:
    """Get the current WeatherService instance. Raises if not initialized."""
    if _service is None:
        raise RuntimeError("Weather service not initialized. Server lifespan has not started.")
    return _service


def _reset_service() -> None:
    """Clear the module-level service reference. Used in tests."""
    global _service  # noqa: PLW0603
    _service = None


def build_service(settings: Settings) -> WeatherService:
    """Wire the OpenWeatherMap client, cache and metrics into a WeatherService."""
    client = OpenWeatherClient(
        settings.openweather_api_key,
        base_url=settings.openweather_base_url,
        timeout=settings.request_timeout_seconds,
    )
    cache = TTLCache(
        ttl_seconds=settings.cache_ttl_seconds,
        sweep_interval_seconds=settings.cache_sweep_interval_seconds,
    )
    metrics = MetricsAggregator(window_size=settings.latency_window_size)
    return WeatherService(
        client, cache, metrics, top_cities_limit=settings.top_cities_limit
    )


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Build the weather service on startup and stop its cache sweep on shutdown."""
    global _service  # noqa: PLW0603
    from weather_gateway.config import get_settings

    settings = get_settings()
    missing = settings.validate_required()
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    _service = build_service(settings)
    logger.info("Weather service initialized")

    try:
        yield {"service": _service}
    finally:
        await _service.aclose()
        _service = None
        logger.info("Weather service stopped")


mcp = FastMCP("weather-gateway", lifespan=app_lifespan)


def setup_logging(log_level: str, data_dir: Path) -> None:
    """Configure logging with file rotation and console output.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        data_dir: Base data directory; logs go to data_dir/logs/server.log.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler: exact type check avoids matching subclasses (FileHandler, etc.)
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    log_dir = data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "server.log"

    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def _client_id(context: MiddlewareContext) -> str:
    ctx = context.fastmcp_context
    return (ctx.client_id if ctx is not None else None) or "anonymous"


def setup_middleware(server: FastMCP, settings: Settings) -> None:
    """Attach request logging and per-client rate limiting to *server*.

    Logging is added first so rejected requests are logged too. Each client
    gets ``rate_limit_per_minute`` requests, refilled evenly over a minute.
    Calling this again on the same server is a no-op.
    """
    if any(isinstance(m, RateLimitingMiddleware) for m in server.middleware):
        return

    server.add_middleware(LoggingMiddleware(logger=logging.getLogger("weather_gateway.requests")))
    server.add_middleware(
        RateLimitingMiddleware(
            max_requests_per_second=settings.rate_limit_per_minute / 60,
            burst_capacity=settings.rate_limit_per_minute,
            get_client_id=_client_id,
        )
    )


def initialize() -> FastMCP:
    """Set up directories, logging, and register tools. Returns the MCP server."""
    from weather_gateway.config import get_settings

    settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / "logs").mkdir(exist_ok=True)

    setup_logging(settings.log_level, settings.data_dir)
    setup_middleware(mcp, settings)

    from weather_gateway.tools.admin import register_admin_tools
    from weather_gateway.tools.health import register_health_tools
    from weather_gateway.tools.weather import register_weather_tools

    register_weather_tools(mcp)
    register_admin_tools(mcp)
    register_health_tools(mcp)

    logger.info("Weather gateway MCP server initialized")
    return mcp
