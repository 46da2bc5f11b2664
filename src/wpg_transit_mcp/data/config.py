from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransitConfig(BaseSettings):
    """Configuration for Winnipeg Transit API access and resolver defaults.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    api_key: str | None = Field(default=None, alias="WPG_TRANSIT_API_KEY")
    base_url: str = "https://api.winnipegtransit.com/v4"
    request_timeout_seconds: float = Field(default=30.0, alias="WPG_TRANSIT_TIMEOUT")

    # City centre, used when no location hint is available
    default_latitude: float = 49.8951
    default_longitude: float = -97.1384

    # Stop search
    search_radius_meters: int = 5000
    fallback_radius_meters: int = 15000
    fallback_result_limit: int = 20
    display_limit: int = 12
    search_debounce_seconds: float = Field(default=0.35, alias="WPG_TRANSIT_SEARCH_DEBOUNCE")

    # Nearby stops and schedules
    nearby_radius_meters: int = 500
    schedule_max_results_per_route: int = 10

    geolocation_timeout_seconds: float = 6.0

    # Type-ahead search sessions kept in memory; the least recently used is evicted
    max_search_sessions: int = 256


@lru_cache
def get_transit_config() -> TransitConfig:
    """Get transit configuration (cached singleton).

    Returns:
        TransitConfig with values from .env file or environment variables.
    """
    return TransitConfig()
