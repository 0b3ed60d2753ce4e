"""Utilities for resolving artwork and seasons from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import MissingIdentifier
from ..models import ContentType, ImageSet
from .base import ProviderClient, pick_localized

# TMDB size names used for each ImageSet slot, largest first.
POSTER_SIZES = ("original", "w780", "w500", "w185")
BACKDROP_SIZES = ("original", "w1280", "w780", "w300")


class TMDBClient(ProviderClient):
    """Client for TMDB image listings and season catalogs."""

    name = "tmdb"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        log: logging.Logger | None = None,
    ):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        super().__init__(settings, http_client, log=log)
        self._image_base = str(settings.tmdb_image_url).rstrip("/")

    def image_url(self, path: str | None, size: str) -> str | None:
        """Build an absolute image URL for a TMDB file path."""

        if not path:
            return None
        if path.startswith("http"):
            return path
        return f"{self._image_base}/{size}/{path.lstrip('/')}"

    def _image_set(self, path: str, sizes: tuple[str, ...]) -> ImageSet:
        full, high, medium, thumb = (self.image_url(path, size) for size in sizes)
        return ImageSet(full=full, high=high, medium=medium, thumb=thumb)

    async def images(
        self, content_type: ContentType, tmdb_id: int | None
    ) -> dict[str, ImageSet]:
        """Return the English (or untagged) poster and backdrop of a title."""

        if not tmdb_id:
            raise MissingIdentifier(self.name, "tmdb_id")

        kind = "movie" if content_type == "movie" else "tv"
        data = await self._get_json(
            f"/{kind}/{tmdb_id}/images",
            params={
                "api_key": self._settings.tmdb_api_key,
                "include_image_language": "en,null",
            },
        )
        if not isinstance(data, dict):
            return {}

        found: dict[str, ImageSet] = {}
        poster = pick_localized(data.get("posters") or [])
        if poster and poster.get("file_path"):
            found["poster"] = self._image_set(poster["file_path"], POSTER_SIZES)
        backdrop = pick_localized(data.get("backdrops") or [])
        if backdrop and backdrop.get("file_path"):
            found["backdrop"] = self._image_set(backdrop["file_path"], BACKDROP_SIZES)
        return found

    async def season(self, tmdb_id: int | None, season_number: int) -> dict[str, Any]:
        """Fetch one season of a show together with its episodes."""

        if not tmdb_id:
            raise MissingIdentifier(self.name, "tmdb_id")

        data = await self._get_json(
            f"/tv/{tmdb_id}/season/{season_number}",
            params={"api_key": self._settings.tmdb_api_key},
        )
        if not isinstance(data, dict):
            return {}
        return data
