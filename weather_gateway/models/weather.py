from pydantic import BaseModel, Field

UV_INDEX_UNAVAILABLE = -1.0
AQI_UNAVAILABLE = -1
AIR_QUALITY_UNKNOWN = "Unknown"


# ── OpenWeatherMap wire format ───────────────────────────────────────────────


class Coord(BaseModel):
    lat: float = 0.0
    lon: float = 0.0


class WeatherCondition(BaseModel):
    main: str = ""
    description: str = ""
    icon: str = ""


class MainBlock(BaseModel):
    temp: float = 0.0
    feels_like: float = 0.0
    temp_min: float = 0.0
    temp_max: float = 0.0
    pressure: int = 0
    humidity: int = 0


class WindBlock(BaseModel):
    speed: float = 0.0
    deg: int = 0


class CloudsBlock(BaseModel):
    all: int = 0


class SysBlock(BaseModel):
    country: str = ""
    sunrise: int = 0
    sunset: int = 0


class OpenWeatherResponse(BaseModel):
    """Current-weather payload from ``/data/2.5/weather`` (metric units)."""

    name: str = ""
    coord: Coord = Field(default_factory=Coord)
    weather: list[WeatherCondition] = Field(default_factory=list)
    main: MainBlock = Field(default_factory=MainBlock)
    visibility: int = 0
    wind: WindBlock = Field(default_factory=WindBlock)
    clouds: CloudsBlock = Field(default_factory=CloudsBlock)
    dt: int = 0
    sys: SysBlock = Field(default_factory=SysBlock)
    timezone: int = 0  # offset from UTC in seconds


class UVResponse(BaseModel):
    value: float


class AirQualityMain(BaseModel):
    aqi: int


class AirQualityItem(BaseModel):
    main: AirQualityMain


class AirQualityResponse(BaseModel):
    items: list[AirQualityItem] = Field(default_factory=list, alias="list")


# ── Enriched record ──────────────────────────────────────────────────────────


class Temperature(BaseModel):
    kelvin: float
    celsius: float
    fahrenheit: float


class MainReadings(BaseModel):
    temp_kelvin: float
    temp_celsius: float
    temp_fahrenheit: float
    feels_like: Temperature
    temp_min: Temperature
    temp_max: Temperature
    humidity: int
    pressure: int


class WindReadings(BaseModel):
    speed_ms: float
    speed_kmh: float
    direction: str
    degrees: int


class Cloudiness(BaseModel):
    all: int


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class WeatherData(BaseModel):
    """Weather for one city, enriched with UV index and air quality.

    ``uv_index`` and ``aqi`` are ``-1`` and ``air_quality`` is ``"Unknown"``
    when the corresponding enrichment call failed.
    """

    name: str
    country: str
    timezone: int
    local_time: str
    main: MainReadings
    wind: WindReadings
    clouds: Cloudiness
    weather: list[WeatherCondition]
    visibility_meters: int
    sunrise: int
    sunset: int
    sunrise_time: str
    sunset_time: str
    uv_index: float = UV_INDEX_UNAVAILABLE
    air_quality: str = AIR_QUALITY_UNKNOWN
    aqi: int = AQI_UNAVAILABLE
    coordinates: Coordinates
    last_updated: str = ""
    cache_hit: bool = False
