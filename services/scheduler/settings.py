"""
Settings and configuration for Scheduler Service.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    db_url_scheduler: str = Field(
        default=...,
        description="Database connection string for scheduler service",
        validation_alias=AliasChoices("DB_URL_SCHEDULER", "db_url_scheduler"),
    )

    # Calendar cache
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for the calendar cache; caching is off when unset",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )
    cache_enabled: bool = Field(
        default=True,
        description="Whether calendar pages and user lookups are cached",
        validation_alias=AliasChoices("CACHE_ENABLED", "cache_enabled"),
    )
    calendar_cache_ttl_seconds: int = Field(
        default=1800,
        description="TTL for cached calendar pages and user lookups",
        validation_alias=AliasChoices(
            "CALENDAR_CACHE_TTL_SECONDS", "calendar_cache_ttl_seconds"
        ),
    )

    # Calendar pagination
    default_page_size: int = Field(
        default=10,
        description="Date groups per calendar page when size is not given",
        validation_alias=AliasChoices("DEFAULT_PAGE_SIZE", "default_page_size"),
    )
    max_page_size: int = Field(
        default=100,
        description="Largest accepted calendar page size",
        validation_alias=AliasChoices("MAX_PAGE_SIZE", "max_page_size"),
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
        validation_alias=AliasChoices("LOG_FORMAT", "log_format"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def cache_active(self) -> bool:
        return self.cache_enabled and bool(self.redis_url)


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
