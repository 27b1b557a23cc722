"""
Configuration settings for Smart Storage.

Uses Pydantic Settings to load environment variables for the durable store
location, region layout and logging.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Durable store
    store_path: Path = Field(Path("data/smart_storage.mem"), alias="STORE_PATH")
    store_bucket_size_pages: int = Field(16, alias="STORE_BUCKET_SIZE_PAGES", ge=1, le=1024)

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
