"""
Configuration management for BulbFit backend.
Uses pydantic-settings for environment variable handling.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # API Configuration
    api_title: str = "BulbFit API"
    api_version: str = "1.0.0"
    debug: bool = False

    # Catalog Configuration
    database_path: Path = Path(__file__).parent.parent / "data" / "bulbfit.db"
    catalog_base_url: str | None = None  # remote BulbFit service; local SQLite when unset
    catalog_timeout: int = 10

    # Cache-Control for /fitment/options
    options_cache_max_age: int = 21600  # 6 hours
    years_cache_max_age: int = 86400  # 24 hours
    stale_while_revalidate: int = 86400

    # Selection sessions
    session_ttl_seconds: int = Field(3600, gt=0)
    max_sessions: int = Field(1000, gt=0)

    # Manual support shown when the bulb cannot be picked automatically
    support_phone: str = "+359 88 000 0000"
    support_phone_tel: str = "+359880000000"


# Global settings instance
settings = Settings()
