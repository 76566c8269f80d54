"""MCP tools for inspecting and resetting the cache and request metrics."""

import logging
from datetime import UTC, datetime

from fastmcp import FastMCP

from weather_gateway.models.stats import CacheStats, MetricsSnapshot
from weather_gateway.server import get_service

logger = logging.getLogger(__name__)


def format_cache_stats(stats: CacheStats) -> str:
    lines = [
        f"Cache: {stats.total_entries} live entries (TTL {stats.cache_duration})",
        f"  Hits: {stats.hit_count}  Misses: {stats.miss_count}  "
        f"Hit rate: {stats.hit_rate:.1f}%",
    ]
    if stats.entries:
        lines.append("  Entries:")
        for key in sorted(stats.entries):
            lines.append(f"    {key}: expires {stats.entries[key]}")
    return "\n".join(lines)


def format_metrics(snapshot: MetricsSnapshot) -> str:
    lines = [
        f"Uptime: {snapshot.uptime} ({snapshot.requests_per_minute:.2f} requests/min)",
        f"  Requests: {snapshot.total_requests} "
        f"({snapshot.success_requests} ok, {snapshot.errors} errors, "
        f"{snapshot.error_rate:.1f}% error rate)",
        f"  Cache: {snapshot.cache_hits} hits, {snapshot.cache_misses} misses "
        f"({snapshot.cache_hit_rate:.1f}% hit rate)",
        f"  Latency: avg {snapshot.average_response_ms:.1f}ms, "
        f"p95 {snapshot.p95_response_ms:.1f}ms, p99 {snapshot.p99_response_ms:.1f}ms",
        f"  Cities: {snapshot.total_unique_cities} distinct",
    ]
    for rank, entry in enumerate(snapshot.top_cities, start=1):
        lines.append(f"    {rank}. {entry.city}: {entry.count}")
    return "\n".join(lines)


def register_admin_tools(mcp: FastMCP) -> None:
    """Register cache and metrics administration tools on the MCP server."""

    @mcp.tool
    async def cache_status() -> str:
        """Show cache size, hit rate and when each cached city expires."""
        return format_cache_stats(get_service().cache_stats())

    @mcp.tool
    async def clear_cache() -> str:
        """Drop every cached weather record. Hit/miss counters are kept."""
        get_service().clear_cache()
        now = datetime.now(tz=UTC).isoformat(timespec="seconds")
        logger.info("Cache cleared via tool")
        return f"Cache cleared successfully at {now}."

    @mcp.tool
    async def service_metrics() -> str:
        """Show request counts, error and cache-hit rates, latency percentiles
        and the most requested cities."""
        return format_metrics(get_service().metrics_snapshot())

    @mcp.tool
    async def reset_metrics() -> str:
        """Zero all request metrics and restart the uptime clock."""
        get_service().reset_metrics()
        logger.info("Metrics reset via tool")
        return "Metrics reset."
