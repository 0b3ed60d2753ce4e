"""Utilities for communicating with the Trakt API."""

from __future__ import annotations

from typing import Any

from ..models import ContentType
from .base import ProviderClient


def _kind(content_type: ContentType) -> str:
    return "movies" if content_type == "movie" else "shows"


class TraktClient(ProviderClient):
    """Thin wrapper around the Trakt HTTP API, the canonical metadata source."""

    name = "trakt"

    def _headers(self) -> dict[str, str]:
        headers = {
            "trakt-api-version": "2",
            "User-Agent": f"{self._settings.app_name} (reelsync)",
        }
        if self._settings.trakt_client_id:
            headers["trakt-api-key"] = self._settings.trakt_client_id
        return headers

    async def summary(self, content_type: ContentType, slug: str) -> dict[str, Any] | None:
        """Fetch the full summary of a movie or show."""

        data = await self._get_json(
            f"/{_kind(content_type)}/{slug}",
            params={"extended": "full"},
            headers=self._headers(),
        )
        if not isinstance(data, dict) or not data:
            return None
        return data

    async def watching(self, content_type: ContentType, slug: str) -> int:
        """Return how many users are watching the title right now."""

        data = await self._get_json(
            f"/{_kind(content_type)}/{slug}/watching",
            headers=self._headers(),
        )
        if not isinstance(data, list):
            self._logger.warning("Unexpected Trakt watching response for %s", slug)
            return 0
        return len(data)
