"""Tests for season assembly and episode reconciliation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from reelsync.errors import PersistenceError, TransientProviderError
from reelsync.models import Episode, Season, ShowRecord, TorrentEntry
from reelsync.services.shows import EpisodeMerger, SeasonAssembler, merge_episode
from reelsync.services.store import ContentStore


def torrent(quality: str, seeds: int, url: str | None = None) -> TorrentEntry:
    return TorrentEntry(quality=quality, url=url or f"magnet:?xt={quality}-{seeds}", seeds=seeds)


def make_show(**overrides: Any) -> ShowRecord:
    data: dict[str, Any] = {
        "id": "tt3230854",
        "tmdb_id": 63639,
        "tvdb_id": 280619,
        "title": "The Expanse",
        "slug": "the-expanse",
    }
    data.update(overrides)
    return ShowRecord(**data)


def season_payload(number: int, episodes: int) -> dict[str, Any]:
    return {
        "id": 1000 + number,
        "season_number": number,
        "name": f"Season {number}",
        "overview": f"Overview {number}",
        "air_date": f"201{number}-01-01",
        "poster_path": f"/season{number}.jpg",
        "episodes": [
            {
                "id": 5000 + number * 100 + index,
                "episode_number": index,
                "name": f"Episode {index}",
                "overview": "",
                "air_date": f"201{number}-01-{index:02d}",
                "still_path": f"/still{number}{index}.jpg",
            }
            for index in range(1, episodes + 1)
        ],
    }


class FakeTMDB:
    """Season catalog with optional per-season failures and call tracking."""

    def __init__(self, seasons: dict[int, dict[str, Any]], failing: set[int] | None = None):
        self._seasons = seasons
        self._failing = failing or set()
        self.active = 0
        self.peak = 0

    def image_url(self, path: str | None, size: str) -> str | None:
        return f"https://image.tmdb.org/t/p/{size}{path}" if path else None

    async def season(self, tmdb_id: int | None, season_number: int) -> dict[str, Any]:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01)
            if season_number in self._failing:
                raise TransientProviderError("tmdb", "season unavailable", status_code=500)
            return self._seasons[season_number]
        finally:
            self.active -= 1


@pytest.mark.anyio("asyncio")
async def test_assemble_season_builds_episodes_with_torrents() -> None:
    tmdb = FakeTMDB({1: season_payload(1, 3)})
    show = make_show()
    buckets = {1: {2: {"720p": torrent("720p", 10)}}}

    season = await SeasonAssembler(tmdb).assemble_season(show, buckets, 1)  # type: ignore[arg-type]

    assert season is not None
    assert season.title == "Season 1"
    assert season.image == "https://image.tmdb.org/t/p/w500/season1.jpg"
    assert [episode.number for episode in season.episodes] == [1, 2, 3]
    assert season.episodes[1].torrents["720p"].seeds == 10
    assert season.episodes[0].torrents == {}
    assert show.seasons == [season]
    assert len(show.episodes) == 3
    assert show.latest_episode_aired_at == season.episodes[2].first_aired


@pytest.mark.anyio("asyncio")
async def test_assembling_a_season_twice_does_not_duplicate_it() -> None:
    tmdb = FakeTMDB({1: season_payload(1, 2)})
    assembler = SeasonAssembler(tmdb)  # type: ignore[arg-type]
    show = make_show()

    await assembler.assemble_season(show, {1: {}}, 1)
    await assembler.assemble_season(show, {1: {}}, 1)

    assert [season.number for season in show.seasons] == [1]
    assert len(show.episodes) == 2


@pytest.mark.anyio("asyncio")
async def test_assemble_bounds_concurrency_and_skips_failed_seasons(
    caplog: pytest.LogCaptureFixture,
) -> None:
    tmdb = FakeTMDB({n: season_payload(n, 2) for n in range(1, 7)}, failing={3})
    buckets = {n: {1: {"1080p": torrent("1080p", n)}} for n in range(1, 7)}
    show = make_show()

    with caplog.at_level(logging.ERROR):
        await SeasonAssembler(tmdb, concurrency=2).assemble(show, buckets)  # type: ignore[arg-type]

    assert tmdb.peak <= 2
    assert [season.number for season in show.seasons] == [1, 2, 4, 5, 6]
    assert any("season 3" in record.getMessage().lower() for record in caplog.records)


def test_merge_episode_rules_per_quality() -> None:
    incoming = Episode(
        season=1,
        number=1,
        torrents={
            "480p": torrent("480p", 5, url="magnet:?same"),
            "720p": torrent("720p", 20),
            "1080p": torrent("1080p", 3),
        },
    )
    stored = Episode(
        season=1,
        number=1,
        torrents={
            "480p": torrent("480p", 1, url="magnet:?same"),
            "720p": torrent("720p", 20, url="magnet:?older"),
            "1080p": torrent("1080p", 30),
            "2160p": torrent("2160p", 2),
        },
    )

    merged = merge_episode(incoming, stored)

    assert merged.torrents["480p"] == stored.torrents["480p"]
    assert merged.torrents["720p"] == incoming.torrents["720p"]
    assert merged.torrents["1080p"] == stored.torrents["1080p"]
    assert merged.torrents["2160p"] == stored.torrents["2160p"]


def assembled_show(episodes: list[Episode]) -> ShowRecord:
    numbers = sorted({episode.season for episode in episodes})
    return make_show(
        seasons=[Season(number=number) for number in numbers],
        episodes=episodes,
    )


@pytest.mark.anyio("asyncio")
async def test_first_save_computes_num_seasons(store: ContentStore) -> None:
    show = assembled_show(
        [Episode(season=1, number=1), Episode(season=1, number=2), Episode(season=2, number=1)]
    )

    saved = await EpisodeMerger(store).merge(show)

    assert saved is not None
    assert saved.num_seasons == 2
    assert [len(season.episodes) for season in saved.seasons] == [2, 1]
    assert await store.distinct_seasons(show.id) == [1, 2]


@pytest.mark.anyio("asyncio")
async def test_merge_keeps_stored_episodes_and_better_torrents(store: ContentStore) -> None:
    merger = EpisodeMerger(store)
    await merger.merge(
        assembled_show(
            [
                Episode(season=1, number=1, first_aired=100, torrents={"720p": torrent("720p", 50)}),
                Episode(season=1, number=2, first_aired=200, torrents={"720p": torrent("720p", 5)}),
                Episode(season=2, number=1, first_aired=900, torrents={"480p": torrent("480p", 1)}),
            ]
        )
    )

    incoming = assembled_show(
        [
            Episode(season=1, number=1, first_aired=100, torrents={"720p": torrent("720p", 10)}),
            Episode(season=1, number=2, first_aired=200, torrents={"720p": torrent("720p", 8)}),
            Episode(season=3, number=1, first_aired=300, torrents={"1080p": torrent("1080p", 7)}),
        ]
    )
    saved = await merger.merge(incoming)

    assert saved is not None
    episodes = {episode.key: episode for episode in saved.episodes}
    assert set(episodes) == {(1, 1), (1, 2), (2, 1), (3, 1)}
    assert episodes[(1, 1)].torrents["720p"].seeds == 50
    assert episodes[(1, 2)].torrents["720p"].seeds == 8
    assert episodes[(2, 1)].torrents["480p"].seeds == 1
    assert saved.num_seasons == 3 == saved.count_seasons()
    assert [season.number for season in saved.seasons] == [1, 2, 3]
    assert saved.latest_episode_aired_at == 200


@pytest.mark.anyio("asyncio")
async def test_merge_is_idempotent(store: ContentStore) -> None:
    merger = EpisodeMerger(store)
    show = assembled_show(
        [Episode(season=1, number=1, torrents={"720p": torrent("720p", 3)})]
    )

    first = await merger.merge(show)
    second = await merger.merge(show)

    assert first is not None and second is not None
    assert first.episodes == second.episodes
    assert first.num_seasons == second.num_seasons == 1


class BrokenStore:
    async def get(self, content_id: str):
        raise PersistenceError("database is locked")

    async def upsert(self, record):  # pragma: no cover - never reached
        raise AssertionError("upsert should not run")


@pytest.mark.anyio("asyncio")
async def test_merge_errors_yield_none(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        result = await EpisodeMerger(BrokenStore()).merge(make_show())  # type: ignore[arg-type]

    assert result is None
    assert any("database is locked" in record.getMessage() for record in caplog.records)


@pytest.mark.anyio("asyncio")
async def test_latest_air_date_is_stable_across_cycles(store: ContentStore) -> None:
    """Reconciling the same scrape twice reports the same latest air date."""

    tmdb = FakeTMDB({1: season_payload(1, 3)})
    assembler = SeasonAssembler(tmdb)  # type: ignore[arg-type]
    merger = EpisodeMerger(store)
    buckets = {1: {1: {"720p": torrent("720p", 10)}}}

    first = await merger.merge(await assembler.assemble(make_show(), buckets))
    second = await merger.merge(await assembler.assemble(make_show(), buckets))

    assert first is not None and second is not None
    assert first.latest_episode_aired_at == second.latest_episode_aired_at
    assert second.latest_episode_aired_at == max(
        episode.first_aired for episode in second.episodes if episode.first_aired is not None
    )
