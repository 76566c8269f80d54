"""Health and readiness check tools."""

from datetime import UTC, datetime

from fastmcp import FastMCP

from weather_gateway.server import get_service

SERVICE_NAME = "weather-gateway"
SERVICE_VERSION = "1.0.0"


def register_health_tools(mcp: FastMCP) -> None:
    """Register health and readiness tools on the MCP server."""

    @mcp.tool
    async def health() -> dict:
        """Lightweight liveness check, no external calls."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(tz=UTC).isoformat(timespec="seconds"),
            "cache_entries": get_service().cache.size(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }

    @mcp.tool
    async def readiness() -> dict:
        """Report whether the cache and metrics components are up."""
        try:
            service = get_service()
        except RuntimeError:
            checks = {"cache": False, "metrics": False}
        else:
            checks = {"cache": not service.cache.closed, "metrics": True}
        return {
            "status": "ready" if all(checks.values()) else "not_ready",
            "timestamp": datetime.now(tz=UTC).isoformat(timespec="seconds"),
            "checks": checks,
        }
