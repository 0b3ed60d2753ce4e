"""Pydantic models describing persisted content records."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import slugify

ContentType = Literal["movie", "show"]

IMAGE_FIELDS: tuple[str, ...] = ("banner", "backdrop", "poster", "logo")

# Fields owned by the user rather than by any provider; they survive every
# reconciliation cycle untouched.
PRESERVED_FIELDS: tuple[str, ...] = ("bookmarked", "bookmarked_on", "watched", "download")


class TorrentEntry(BaseModel):
    """A single torrent discovered for a movie or an episode."""

    model_config = ConfigDict(populate_by_name=True)

    quality: str
    language: str = "en"
    url: str
    seeds: int = 0
    peers: int = 0
    size: int | None = None
    file_size: str | None = None
    provider: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.quality, self.language)


class ImageSet(BaseModel):
    """One artwork resolved at several sizes."""

    full: str
    high: str
    medium: str
    thumb: str

    @classmethod
    def from_url(cls, url: str) -> "ImageSet":
        """Use a single URL for every size when the provider has no variants."""

        return cls(full=url, high=url, medium=url, thumb=url)


class Images(BaseModel):
    """Artwork slots of a record; ``None`` is the unresolved placeholder."""

    banner: ImageSet | None = None
    backdrop: ImageSet | None = None
    poster: ImageSet | None = None
    logo: ImageSet | None = None

    def missing(self) -> list[str]:
        return [name for name in IMAGE_FIELDS if getattr(self, name) is None]

    def is_complete(self) -> bool:
        return not self.missing()


class Rating(BaseModel):
    votes: int = 0
    watching: int = 0
    percentage: int = Field(default=0, ge=0, le=100)
    stars: float = Field(default=0.0, ge=0, le=5)

    @classmethod
    def from_raw(cls, raw_rating: Any, *, votes: Any = 0, watching: int = 0) -> "Rating":
        """Convert a 0-10 provider rating into percentage and stars."""

        try:
            value = float(raw_rating or 0)
        except (TypeError, ValueError):
            value = 0.0
        percentage = min(max(round(value * 10), 0), 100)
        return cls(
            votes=int(votes or 0),
            watching=watching,
            percentage=percentage,
            stars=round(percentage / 100 * 5, 2),
        )


class Runtime(BaseModel):
    full: str = ""
    short: str = ""
    hours: int = 0
    minutes: int = 0


class WatchState(BaseModel):
    complete: bool = False
    progress: float = 0


class DownloadState(BaseModel):
    downloaded: bool = False
    downloaded_on: int | None = None
    download_status: str | None = None
    download_quality: str | None = None


class ContentRecord(BaseModel):
    """Fields shared by movie and show documents."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    tmdb_id: int
    content_type: ContentType
    title: str
    slug: str
    synopsis: str | None = None
    released: int | None = None
    certification: str | None = None
    trailer: str | None = None
    runtime: Runtime = Field(default_factory=Runtime)
    genres: list[str] = Field(default_factory=lambda: ["unknown"])
    rating: Rating = Field(default_factory=Rating)
    images: Images = Field(default_factory=Images)
    created_at: int | None = None
    updated_at: int | None = None

    bookmarked: bool = False
    bookmarked_on: int | None = None
    watched: WatchState = Field(default_factory=WatchState)
    download: DownloadState = Field(default_factory=DownloadState)

    @field_validator("genres", mode="before")
    @classmethod
    def _default_genres(cls, value: object) -> object:
        if not value:
            return ["unknown"]
        return value


class MovieRecord(ContentRecord):
    content_type: Literal["movie"] = "movie"
    torrents: list[TorrentEntry] = Field(default_factory=list)


class Episode(BaseModel):
    season: int
    number: int
    tmdb_id: int | None = None
    title: str | None = None
    synopsis: str | None = None
    first_aired: int | None = None
    image: str | None = None
    torrents: dict[str, TorrentEntry] = Field(default_factory=dict)

    @property
    def key(self) -> tuple[int, int]:
        return (self.season, self.number)


class Season(BaseModel):
    number: int
    tmdb_id: int | None = None
    title: str | None = None
    synopsis: str | None = None
    first_aired: int | None = None
    image: str | None = None
    episodes: list[Episode] = Field(default_factory=list)


class AirInfo(BaseModel):
    network: str | None = None
    country: str | None = None
    day: str | None = None
    time: str | None = None
    status: str | None = None


class ShowRecord(ContentRecord):
    content_type: Literal["show"] = "show"
    tvdb_id: int
    air_info: AirInfo = Field(default_factory=AirInfo)
    seasons: list[Season] = Field(default_factory=list)
    episodes: list[Episode] = Field(default_factory=list)
    num_seasons: int = 0
    latest_episode_aired_at: int | None = None

    def count_seasons(self) -> int:
        """Number of distinct season numbers among the episodes."""

        return len({episode.season for episode in self.episodes})


EpisodeBuckets = dict[int, dict[int, dict[str, TorrentEntry]]]


class TitleRef(BaseModel):
    """A title handed to the engine together with freshly scraped torrents."""

    slug: str
    content_type: ContentType
    torrents: list[TorrentEntry] = Field(default_factory=list)
    episodes: EpisodeBuckets = Field(default_factory=dict)

    @field_validator("slug")
    @classmethod
    def _normalise_slug(cls, value: str) -> str:
        slug = slugify(value)
        if not slug:
            raise ValueError("slug must contain at least one letter or digit")
        return slug


def record_from_payload(payload: dict[str, Any]) -> MovieRecord | ShowRecord:
    """Rebuild the typed record stored as a JSON document."""

    if payload.get("content_type") == "show":
        return ShowRecord.model_validate(payload)
    return MovieRecord.model_validate(payload)
