"""
Configuration settings for the Driver Portal.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Driver Portal"
    api_version: str = "v1"
    debug: bool = False
    log_level: str = "INFO"
    display_timezone: str = "UTC"

    # Hosted backend (PostgREST + auth)
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = "anon-key-change-this"

    # Access token verification
    supabase_jwt_secret: str = "super-secret-jwt-token-with-at-least-32-characters"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Backend collections
    trips_source: str = "driver_trips"  # driver-scoped read view
    trips_table: str = "driver_trips"
    drivers_table: str = "drivers"
    notifications_table: str = "notifications"
    checkpoints_table: str = "journey_checkpoints"

    # Fixed tags written with side records
    notification_type: str = "driver_update"
    notification_module: str = "driver_portal"
    checkpoint_completion_method: str = "driver_portal"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
