"""
Configuration and settings for the listings service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # MongoDB. Without a URL the service runs in memory-only mode.
    mongodb_url: Optional[str] = Field(default=None)
    mongodb_database: str = Field(default="listings")
    mongodb_timeout_ms: int = Field(default=2000, gt=0)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)

    # Logging
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
