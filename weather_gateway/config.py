from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables and .env file.

    ``OPENWEATHER_API_KEY`` is required once the server starts; it may be
    empty at construction time so tooling and tests can build Settings
    without it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Upstream provider
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    request_timeout_seconds: float = 10.0

    # Cache & metrics
    cache_expiry_minutes: int = 10
    cache_sweep_interval_seconds: float = 300.0
    latency_window_size: int = 1000
    top_cities_limit: int = 10

    # Request handling
    rate_limit_per_minute: int = 100

    # Remote hosting: transport and bind address
    mcp_transport: str = "stdio"
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8080

    # Paths & logging. Default is <project_root>/data so it works
    # regardless of the process working directory.
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cache_ttl_seconds(self) -> int:
        return self.cache_expiry_minutes * 60

    def validate_required(self) -> list[str]:
        """Return the names of required env vars that are missing."""
        return [] if self.openweather_api_key else ["OPENWEATHER_API_KEY"]


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
