"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ITINERARY_",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Trip timezone used to capture "now" for open-status checks
    trip_timezone: str = "Asia/Tokyo"

    # Day bounds (HH:MM, local trip time)
    default_day_start: str = "09:00"
    default_day_end: str = "21:00"

    # Visit and transition defaults (minutes)
    default_visit_minutes: int = 90
    transition_buffer_minutes: int = 10
    default_travel_minutes: int = 15

    # Travel mode speeds (km/h) for the great-circle estimator
    walk_speed_kmh: float = 4.5
    transit_speed_kmh: float = 25.0
    train_speed_kmh: float = 60.0
    car_speed_kmh: float = 30.0
    bicycle_speed_kmh: float = 14.0

    # Walk legs longer than this switch to transit
    walk_threshold_minutes: int = 10

    # Optional OSRM-compatible routing service
    routing_base_url: str | None = None
    routing_timeout_ms: int = 4000

    # Availability batch fan-out
    fanout_cap: int = 4

    # Route sequencer refinement
    route_two_opt_min_stops: int = 8
    route_two_opt_max_passes: int = 5


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
