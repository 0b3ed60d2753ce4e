"""Torrent reconciliation for movies."""

from __future__ import annotations

import logging
from typing import Iterable

from ..errors import PersistenceError
from ..models import MovieRecord, TorrentEntry
from .store import ContentStore

logger = logging.getLogger(__name__)


def _dedupe(torrents: Iterable[TorrentEntry]) -> list[TorrentEntry]:
    best: dict[tuple[str, str], TorrentEntry] = {}
    for torrent in torrents:
        current = best.get(torrent.key)
        if current is None or torrent.seeds > current.seeds:
            best[torrent.key] = torrent
    return list(best.values())


def merge_torrents(
    incoming: Iterable[TorrentEntry], stored: Iterable[TorrentEntry]
) -> list[TorrentEntry]:
    """Merge a freshly scraped torrent set into the stored one.

    Stored torrents the scrape missed are kept. When both sides have a torrent
    for the same ``(quality, language)`` the stored one wins only with strictly
    more seeds. The result holds at most one torrent per key.
    """

    merged = _dedupe(incoming)
    for torrent in stored:
        match = next((t for t in merged if t.key == torrent.key), None)
        if match is None:
            merged.append(torrent)
        elif torrent.seeds > match.seeds:
            # Only the entry with the same quality *and* language goes.
            merged = [
                t
                for t in merged
                if not (t.quality == torrent.quality and t.language == torrent.language)
            ]
            merged.append(torrent)
    return merged


class MovieReconciler:
    """Attach scraped torrents to a movie draft and persist the result."""

    def __init__(self, store: ContentStore, *, log: logging.Logger | None = None):
        self._store = store
        self._logger = log or logger

    async def add_torrents(
        self, movie: MovieRecord, torrents: Iterable[TorrentEntry]
    ) -> MovieRecord | None:
        """Return the persisted movie, or ``None`` when nothing was committed."""

        movie = movie.model_copy(update={"torrents": _dedupe(torrents)})
        try:
            found = await self._store.get(movie.id)
            if found is None:
                self._logger.info("'%s' is a new movie!", movie.title)
            else:
                self._logger.info("'%s' is an existing movie.", found.title)
                if isinstance(found, MovieRecord) and found.torrents:
                    movie = movie.model_copy(
                        update={"torrents": merge_torrents(movie.torrents, found.torrents)}
                    )
            return await self._store.upsert(movie)
        except PersistenceError as exc:
            self._logger.error("Could not update movie '%s': %s", movie.slug, exc)
        except Exception:
            self._logger.exception("Unexpected error while updating movie '%s'", movie.slug)
        return None
