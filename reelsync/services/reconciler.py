"""High level orchestration of one reconciliation cycle."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from ..models import ContentType, MovieRecord, ShowRecord, TitleRef
from .images import ImageResolutionCascade
from .metadata import MetadataFetcher
from .movies import MovieReconciler
from .shows import EpisodeMerger, SeasonAssembler

logger = logging.getLogger(__name__)

Variant = Callable[[MovieRecord | ShowRecord, TitleRef], Awaitable[MovieRecord | ShowRecord | None]]


class Reconciler:
    """Run fetch, image resolution, merge and persist for one title.

    The scheduler calling ``reconcile`` must not run two cycles for the same
    title at once; the engine takes no locks of its own.
    """

    def __init__(
        self,
        fetcher: MetadataFetcher,
        cascade: ImageResolutionCascade,
        movies: MovieReconciler,
        assembler: SeasonAssembler,
        episodes: EpisodeMerger,
        *,
        log: logging.Logger | None = None,
    ):
        self._fetcher = fetcher
        self._cascade = cascade
        self._movies = movies
        self._assembler = assembler
        self._episodes = episodes
        self._logger = log or logger
        self._variants: dict[ContentType, Variant] = {
            "movie": self._reconcile_movie,
            "show": self._reconcile_show,
        }

    async def reconcile(self, title: TitleRef) -> MovieRecord | ShowRecord | None:
        """Reconcile ``title`` and return the persisted record.

        ``NotFound`` and ``TransientProviderError`` from the metadata fetch
        propagate. ``None`` means the merge or the write did not commit and the
        next cycle may try again.
        """

        self._logger.info("Reconciling %s '%s'", title.content_type, title.slug)
        draft = await self._fetcher.fetch(title.content_type, title.slug)
        draft = await self._cascade.resolve(draft)
        record = await self._variants[title.content_type](draft, title)
        if record is None:
            self._logger.warning("Reconciliation of '%s' did not commit", title.slug)
        return record

    async def _reconcile_movie(
        self, draft: MovieRecord | ShowRecord, title: TitleRef
    ) -> MovieRecord | None:
        if not isinstance(draft, MovieRecord):
            raise TypeError(f"Expected a movie record for '{title.slug}', got a {draft.content_type}")
        return await self._movies.add_torrents(draft, title.torrents)

    async def _reconcile_show(
        self, draft: MovieRecord | ShowRecord, title: TitleRef
    ) -> ShowRecord | None:
        if not isinstance(draft, ShowRecord):
            raise TypeError(f"Expected a show record for '{title.slug}', got a {draft.content_type}")
        show = await self._assembler.assemble(draft, title.episodes)
        return await self._episodes.merge(show)
