"""Poster lookups against the OMDb API, keyed by IMDb id."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings
from ..errors import MissingIdentifier, ProviderNotFound, ProviderRateLimited
from ..models import ContentType, ImageSet
from .base import ProviderClient


class OMDbClient(ProviderClient):
    name = "omdb"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        log: logging.Logger | None = None,
    ):
        if not settings.omdb_api_key:
            raise ValueError("OMDb API key is required when initialising OMDbClient")
        super().__init__(settings, http_client, log=log)

    async def images(self, content_type: ContentType, imdb_id: str | None) -> dict[str, ImageSet]:
        """Return the poster OMDb knows for ``imdb_id``."""

        if not imdb_id:
            raise MissingIdentifier(self.name, "imdb_id")

        data = await self._get_json(
            "/",
            params={
                "i": imdb_id,
                "type": "movie" if content_type == "movie" else "series",
                "apikey": self._settings.omdb_api_key,
            },
        )
        if not isinstance(data, dict):
            return {}

        # OMDb reports most failures with a 200 and Response "False".
        if str(data.get("Response", "True")).lower() == "false":
            error = str(data.get("Error") or "unknown error")
            if "limit" in error.lower() or "api key" in error.lower():
                raise ProviderRateLimited(self.name, error)
            raise ProviderNotFound(self.name, error)

        poster = data.get("Poster")
        if isinstance(poster, str) and poster.startswith("http"):
            return {"poster": ImageSet.from_url(poster)}
        return {}
