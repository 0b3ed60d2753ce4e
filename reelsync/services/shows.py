"""Season assembly and episode reconciliation for shows."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from ..errors import PersistenceError, ReconcileError
from ..models import Episode, EpisodeBuckets, Season, ShowRecord, TorrentEntry
from ..utils import to_epoch
from .store import ContentStore
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


class SeasonAssembler:
    """Build the season tree of a show from TMDB and the scraped torrents."""

    def __init__(
        self,
        tmdb: TMDBClient,
        *,
        concurrency: int = 3,
        log: logging.Logger | None = None,
    ):
        self._tmdb = tmdb
        self._concurrency = max(1, concurrency)
        self._logger = log or logger

    async def assemble(self, show: ShowRecord, episodes: EpisodeBuckets) -> ShowRecord:
        """Fetch every season present in ``episodes`` and attach it to ``show``.

        Seasons are fetched concurrently, at most ``concurrency`` at a time, and
        all of them finish before this returns.
        """

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _bounded(season_number: int) -> Season | None:
            async with semaphore:
                return await self.assemble_season(show, episodes, season_number)

        await asyncio.gather(*(_bounded(number) for number in sorted(episodes)))
        return show

    async def assemble_season(
        self, show: ShowRecord, episodes: EpisodeBuckets, season_number: int
    ) -> Season | None:
        """Fetch one season and place it in ``show``; ``None`` if it was skipped."""

        try:
            data = await self._tmdb.season(show.tmdb_id, season_number)
            season = self._build_season(data, episodes.get(season_number) or {}, season_number)
        except (ReconcileError, ValueError, TypeError) as exc:
            self._logger.error(
                "Could not assemble season %s of '%s': %s", season_number, show.slug, exc
            )
            return None

        self._place(show, season)
        aired = [
            episode.first_aired for episode in season.episodes if episode.first_aired is not None
        ]
        if aired and (
            show.latest_episode_aired_at is None or max(aired) > show.latest_episode_aired_at
        ):
            show.latest_episode_aired_at = max(aired)
        return season

    def _build_season(
        self,
        data: dict[str, Any],
        buckets: dict[int, dict[str, TorrentEntry]],
        season_number: int,
    ) -> Season:
        built: list[Episode] = []
        for entry in data.get("episodes") or []:
            if not isinstance(entry, dict) or entry.get("episode_number") is None:
                continue
            number = int(entry["episode_number"])
            built.append(
                Episode(
                    season=season_number,
                    number=number,
                    tmdb_id=entry.get("id"),
                    title=entry.get("name"),
                    synopsis=entry.get("overview"),
                    first_aired=to_epoch(entry.get("air_date")),
                    image=self._tmdb.image_url(entry.get("still_path"), "w300"),
                    torrents=dict(buckets.get(number) or {}),
                )
            )

        unknown = sorted(set(buckets) - {episode.number for episode in built})
        if unknown:
            self._logger.debug(
                "Season %s has torrents for unknown episodes %s", season_number, unknown
            )

        return Season(
            number=season_number,
            tmdb_id=data.get("id"),
            title=data.get("name"),
            synopsis=data.get("overview"),
            first_aired=to_epoch(data.get("air_date")),
            image=self._tmdb.image_url(data.get("poster_path"), "w500"),
            episodes=built,
        )

    @staticmethod
    def _place(show: ShowRecord, season: Season) -> None:
        # A season assembled twice replaces the earlier copy.
        show.seasons = sorted(
            [existing for existing in show.seasons if existing.number != season.number]
            + [season],
            key=lambda item: item.number,
        )
        keys = {episode.key for episode in season.episodes}
        show.episodes = [
            episode for episode in show.episodes if episode.key not in keys
        ] + list(season.episodes)


def merge_episode(incoming: Episode, stored: Episode) -> Episode:
    """Reconcile the torrents of one episode, quality by quality.

    The stored torrent wins when it has strictly more seeds or points at the
    same URL; a quality only the stored episode has is kept.
    """

    torrents = dict(incoming.torrents)
    for quality, found in stored.torrents.items():
        current = torrents.get(quality)
        if current is None or found.seeds > current.seeds or found.url == current.url:
            torrents[quality] = found
    return incoming.model_copy(update={"torrents": torrents})


def _sync_seasons(seasons: Iterable[Season], episodes: list[Episode]) -> list[Season]:
    by_season: dict[int, list[Episode]] = {}
    for episode in episodes:
        by_season.setdefault(episode.season, []).append(episode)
    return [
        season.model_copy(
            update={
                "episodes": sorted(
                    by_season.get(season.number, []), key=lambda item: item.number
                )
            }
        )
        for season in sorted(seasons, key=lambda item: item.number)
    ]


class EpisodeMerger:
    """Merge an assembled show into its stored record and persist it."""

    def __init__(self, store: ContentStore, *, log: logging.Logger | None = None):
        self._store = store
        self._logger = log or logger

    async def merge(self, show: ShowRecord) -> ShowRecord | None:
        """Return the persisted show, or ``None`` when nothing was committed."""

        try:
            found = await self._store.get(show.id)
            if found is None:
                self._logger.info("'%s' is a new show!", show.title)
                merged = show
            else:
                self._logger.info("'%s' is an existing show.", found.title)
                merged = self._merge_into(show, found) if isinstance(found, ShowRecord) else show

            merged = merged.model_copy(
                update={
                    "seasons": _sync_seasons(merged.seasons, merged.episodes),
                    "num_seasons": merged.count_seasons(),
                }
            )
            return await self._store.upsert(merged)
        except PersistenceError as exc:
            self._logger.error("Could not update show '%s': %s", show.slug, exc)
        except Exception:
            self._logger.exception("Unexpected error while updating show '%s'", show.slug)
        return None

    @staticmethod
    def _merge_into(show: ShowRecord, found: ShowRecord) -> ShowRecord:
        episodes = list(show.episodes)
        positions = {episode.key: index for index, episode in enumerate(episodes)}
        latest = show.latest_episode_aired_at

        for stored in found.episodes:
            position = positions.get(stored.key)
            if position is None:
                positions[stored.key] = len(episodes)
                episodes.append(stored)
                continue
            if stored.first_aired is not None and (latest is None or stored.first_aired > latest):
                latest = stored.first_aired
            episodes[position] = merge_episode(episodes[position], stored)

        season_numbers = {season.number for season in show.seasons}
        seasons = list(show.seasons) + [
            season for season in found.seasons if season.number not in season_numbers
        ]

        return show.model_copy(
            update={
                "episodes": episodes,
                "seasons": seasons,
                "latest_episode_aired_at": latest,
            }
        )
