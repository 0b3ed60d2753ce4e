"""Canonical metadata retrieval for a single title."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import NotFound, ProviderError, ProviderNotFound, TransientProviderError
from ..models import (
    AirInfo,
    ContentType,
    Images,
    MovieRecord,
    Rating,
    Runtime,
    ShowRecord,
)
from ..utils import format_runtime, now_epoch, to_epoch
from .trakt import TraktClient

logger = logging.getLogger(__name__)


def artwork_id_key(content_type: ContentType) -> str:
    """Trakt id used to query artwork: TMDB for movies, TVDB for shows."""

    return "tmdb" if content_type == "movie" else "tvdb"


class MetadataFetcher:
    """Build a draft record from the canonical metadata provider."""

    def __init__(self, trakt: TraktClient, *, log: logging.Logger | None = None):
        self._trakt = trakt
        self._logger = log or logger

    async def fetch(self, content_type: ContentType, slug: str) -> MovieRecord | ShowRecord:
        """Return a draft record with placeholder images.

        Raises ``NotFound`` when Trakt has no usable record for ``slug`` and
        ``TransientProviderError`` for any other provider failure.
        """

        try:
            summary = await self._trakt.summary(content_type, slug)
        except ProviderNotFound as exc:
            raise NotFound(slug, "unknown to trakt") from exc
        except TransientProviderError:
            raise
        except ProviderError as exc:
            raise TransientProviderError(
                exc.provider, str(exc), status_code=exc.status_code
            ) from exc

        if not summary:
            raise NotFound(slug, "empty summary")

        ids: dict[str, Any] = summary.get("ids") or {}
        required = ("imdb", "tmdb", artwork_id_key(content_type))
        missing = [key for key in dict.fromkeys(required) if not ids.get(key)]
        if missing:
            raise NotFound(slug, f"missing {', '.join(missing)} id")

        numeric: dict[str, int] = {}
        for key in dict.fromkeys(("tmdb", artwork_id_key(content_type))):
            try:
                numeric[key] = int(ids[key])
            except (TypeError, ValueError) as exc:
                raise NotFound(slug, f"unparseable {key} id {ids[key]!r}") from exc

        watching = await self._watching(content_type, slug)
        common: dict[str, Any] = {
            "id": str(ids["imdb"]),
            "tmdb_id": numeric["tmdb"],
            "title": summary.get("title") or slug,
            "slug": ids.get("slug") or slug,
            "synopsis": summary.get("overview"),
            "certification": summary.get("certification"),
            "trailer": summary.get("trailer"),
            "runtime": Runtime(**format_runtime(summary.get("runtime"))),
            "genres": summary.get("genres") or ["unknown"],
            "rating": Rating.from_raw(
                summary.get("rating"), votes=summary.get("votes"), watching=watching
            ),
            "images": Images(),
            "updated_at": now_epoch(),
        }

        if content_type == "movie":
            return MovieRecord(
                **common,
                released=to_epoch(summary.get("released")),
                torrents=[],
            )

        airs: dict[str, Any] = summary.get("airs") or {}
        return ShowRecord(
            **common,
            released=to_epoch(summary.get("first_aired")),
            tvdb_id=numeric["tvdb"],
            air_info=AirInfo(
                network=summary.get("network"),
                country=summary.get("country"),
                day=airs.get("day"),
                time=airs.get("time"),
                status=summary.get("status"),
            ),
        )

    async def _watching(self, content_type: ContentType, slug: str) -> int:
        try:
            return await self._trakt.watching(content_type, slug)
        except ProviderError as exc:
            self._logger.warning("Could not fetch watchers for '%s': %s", slug, exc)
            return 0
