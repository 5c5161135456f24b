"""Configuration management for notionview.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

ONE_DAY = 60 * 60 * 24
NINE_MONTHS = ONE_DAY * 270


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NOTIONVIEW_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "notionview"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/v1"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8787
    workers: int = 1

    # Upstream (Notion api/v3) Settings
    notion_api_url: str = "https://www.notion.so/api/v3"
    notion_timeout_seconds: float = Field(default=25.0, gt=0)
    notion_referer: str | None = None
    notion_origin: str | None = None
    notion_asset_base_url: str = "https://www.notion.so"
    user_time_zone: str = "UTC"
    default_row_limit: int = Field(default=999, ge=1)
    search_default_limit: int = Field(default=20, ge=1)
    require_token: bool = Field(
        default=False,
        description="Reject requests without a bearer token instead of querying public pages",
    )

    # Edge Cache Settings
    cache_enabled: bool = True
    cache_fresh_seconds: int = Field(
        default=0,
        ge=0,
        description="Seconds a cached response is served without background revalidation",
    )
    cache_s_maxage: int = ONE_DAY
    cache_max_age: int = ONE_DAY
    cache_stale_while_revalidate: int = NINE_MONTHS
    cache_max_entries: int = Field(default=1000, ge=1)

    # CORS Settings
    cors_origins: Annotated[list[str], NoDecode] = Field(default=["*"])
    cors_allow_methods: Annotated[list[str], NoDecode] = Field(
        default=["GET", "HEAD", "POST", "OPTIONS"]
    )
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("cors_origins", "cors_allow_methods", "cors_allow_headers", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | list[str]) -> list[str]:
        """Parse CORS values from a JSON list, comma-separated string or list."""
        if isinstance(v, str):
            if v.lstrip().startswith("["):
                return json.loads(v)
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("notion_api_url", "notion_asset_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so resources can be appended with a single slash."""
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def cache_control(self) -> str:
        """Cache-Control header value attached to cacheable responses."""
        return (
            f"public, s-maxage={self.cache_s_maxage}, max-age={self.cache_max_age}, "
            f"stale-while-revalidate={self.cache_stale_while_revalidate}"
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
