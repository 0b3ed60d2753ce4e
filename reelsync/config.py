"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="reelsync", alias="APP_NAME")

    trakt_api_url: HttpUrl = Field(
        default="https://api.trakt.tv", alias="TRAKT_API_URL"
    )
    trakt_client_id: str | None = Field(default=None, alias="TRAKT_CLIENT_ID")

    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_image_url: HttpUrl = Field(
        default="https://image.tmdb.org/t/p", alias="TMDB_IMAGE_URL"
    )

    omdb_api_url: HttpUrl = Field(
        default="https://www.omdbapi.com", alias="OMDB_API_URL"
    )
    omdb_api_key: str | None = Field(default=None, alias="OMDB_API_KEY")

    fanart_api_url: HttpUrl = Field(
        default="https://webservice.fanart.tv/v3", alias="FANART_API_URL"
    )
    fanart_api_key: str | None = Field(default=None, alias="FANART_API_KEY")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./reelsync.db", alias="DATABASE_URL"
    )

    season_concurrency: int = Field(
        default=3, alias="SEASON_CONCURRENCY", ge=1, le=10
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    @field_validator(
        "trakt_client_id",
        "tmdb_api_key",
        "omdb_api_key",
        "fanart_api_key",
        mode="before",
    )
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> object:
        """Treat empty API keys from the environment as not configured."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
