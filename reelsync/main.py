"""Wiring of the reconciliation engine for host processes."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from .config import Settings
from .database import Database
from .services.fanart import FanartClient
from .services.images import ImageResolutionCascade, build_steps
from .services.metadata import MetadataFetcher
from .services.movies import MovieReconciler
from .services.omdb import OMDbClient
from .services.reconciler import Reconciler
from .services.shows import EpisodeMerger, SeasonAssembler
from .services.store import ContentStore
from .services.tmdb import TMDBClient
from .services.trakt import TraktClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Engine:
    database: Database
    store: ContentStore
    reconciler: Reconciler


@asynccontextmanager
async def open_engine(
    settings: Settings, *, log: logging.Logger | None = None
) -> AsyncIterator[Engine]:
    """Open HTTP clients and the database, and yield a ready reconciler."""

    log = log or logger
    exit_stack = AsyncExitStack()
    database = Database(settings.database_url)
    try:
        trakt_http = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.trakt_api_url),
                timeout=httpx.Timeout(20.0, connect=10.0),
            )
        )
        tmdb_http = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.tmdb_api_url),
                timeout=httpx.Timeout(15.0, connect=5.0),
            )
        )
        tmdb = TMDBClient(settings, tmdb_http, log=log)

        omdb: OMDbClient | None = None
        if settings.omdb_api_key:
            omdb_http = await exit_stack.enter_async_context(
                httpx.AsyncClient(
                    base_url=str(settings.omdb_api_url),
                    timeout=httpx.Timeout(15.0, connect=5.0),
                )
            )
            omdb = OMDbClient(settings, omdb_http, log=log)
        else:
            log.info("OMDB_API_KEY not set, OMDb posters disabled")

        fanart: FanartClient | None = None
        if settings.fanart_api_key:
            fanart_http = await exit_stack.enter_async_context(
                httpx.AsyncClient(
                    base_url=str(settings.fanart_api_url),
                    timeout=httpx.Timeout(15.0, connect=5.0),
                )
            )
            fanart = FanartClient(settings, fanart_http, log=log)
        else:
            log.info("FANART_API_KEY not set, fanart.tv artwork disabled")

        await database.create_all()
        store = ContentStore(database.session_factory, log=log)
        reconciler = Reconciler(
            MetadataFetcher(TraktClient(settings, trakt_http, log=log), log=log),
            ImageResolutionCascade(
                build_steps(tmdb=tmdb, omdb=omdb, fanart=fanart), log=log
            ),
            MovieReconciler(store, log=log),
            SeasonAssembler(tmdb, concurrency=settings.season_concurrency, log=log),
            EpisodeMerger(store, log=log),
            log=log,
        )

        yield Engine(database=database, store=store, reconciler=reconciler)
    finally:
        await database.dispose()
        await exit_stack.aclose()
