"""Artwork lookups against fanart.tv."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import MissingIdentifier
from ..models import ContentType, ImageSet
from .base import ProviderClient, pick_localized

# Fanart.tv keys consulted for each image slot, in order of preference.
MOVIE_KEYS: dict[str, tuple[str, ...]] = {
    "banner": ("moviebanner",),
    "backdrop": ("moviebackground", "hdmovieclearart"),
    "poster": ("movieposter",),
    "logo": ("movielogo", "hdmovielogo"),
}
SHOW_KEYS: dict[str, tuple[str, ...]] = {
    "banner": ("tvbanner",),
    "backdrop": ("showbackground",),
    "poster": ("tvposter",),
    "logo": ("hdtvlogo", "clearlogo"),
}


class FanartClient(ProviderClient):
    name = "fanart"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        log: logging.Logger | None = None,
    ):
        if not settings.fanart_api_key:
            raise ValueError("Fanart API key is required when initialising FanartClient")
        super().__init__(settings, http_client, log=log)

    async def images(
        self, content_type: ContentType, artwork_id: int | str | None
    ) -> dict[str, ImageSet]:
        """Return every image slot fanart.tv can fill for the title.

        Movies are looked up by TMDB id, shows by TVDB id.
        """

        if not artwork_id:
            raise MissingIdentifier(
                self.name, "tmdb_id" if content_type == "movie" else "tvdb_id"
            )

        kind = "movies" if content_type == "movie" else "tv"
        data = await self._get_json(
            f"/{kind}/{artwork_id}",
            params={"api_key": self._settings.fanart_api_key},
        )
        if not isinstance(data, dict):
            return {}

        keys = MOVIE_KEYS if content_type == "movie" else SHOW_KEYS
        found: dict[str, ImageSet] = {}
        for field, candidates in keys.items():
            for key in candidates:
                url = self._first_url(data.get(key))
                if url:
                    found[field] = self._image_set(url)
                    break
        return found

    @staticmethod
    def _first_url(entries: Any) -> str | None:
        if not isinstance(entries, list) or not entries:
            return None
        entry = pick_localized(entries, language_key="lang") or entries[0]
        if not isinstance(entry, dict):
            return None
        url = entry.get("url")
        if isinstance(url, str) and url.startswith("http"):
            return url
        return None

    @staticmethod
    def _image_set(url: str) -> ImageSet:
        preview = url.replace("/fanart/", "/preview/")
        return ImageSet(full=url, high=url, medium=preview, thumb=preview)
