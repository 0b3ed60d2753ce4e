"""Artwork resolution through an ordered list of image providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, Sequence, TypeVar

from ..errors import MissingIdentifier, ProviderNotFound, ProviderRateLimited
from ..models import ContentRecord, ContentType, ImageSet, MovieRecord, ShowRecord

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", MovieRecord, ShowRecord)


class ImageProvider(Protocol):
    name: str

    async def images(
        self, content_type: ContentType, identifier: Any
    ) -> dict[str, ImageSet]:
        ...


class LookupStatus(str, Enum):
    FOUND = "found"
    MISSING_ID = "missing_id"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass(slots=True)
class ImageLookup:
    """Outcome of asking one provider for artwork."""

    provider: str
    status: LookupStatus
    images: dict[str, ImageSet] = field(default_factory=dict)
    error: str | None = None


@dataclass(slots=True)
class ImageStep:
    """A provider paired with the record identifier it is queried by."""

    provider: ImageProvider
    identifier: Callable[[ContentRecord], Any]


def _artwork_id(record: ContentRecord) -> Any:
    if isinstance(record, ShowRecord):
        return record.tvdb_id
    return record.tmdb_id


def build_steps(
    *,
    tmdb: ImageProvider | None = None,
    omdb: ImageProvider | None = None,
    fanart: ImageProvider | None = None,
) -> list[ImageStep]:
    """Return the provider order: TMDB, then OMDb, then fanart.tv.

    Providers that are not configured are left out.
    """

    steps: list[ImageStep] = []
    if tmdb is not None:
        steps.append(ImageStep(tmdb, lambda record: record.tmdb_id))
    if omdb is not None:
        steps.append(ImageStep(omdb, lambda record: record.id))
    if fanart is not None:
        steps.append(ImageStep(fanart, _artwork_id))
    return steps


class ImageResolutionCascade:
    """Fill placeholder image slots from the first provider that has them.

    A slot that one provider resolved is never touched by a later one, and no
    provider failure escapes ``resolve``: the worst outcome is a record whose
    images stay at the placeholder.
    """

    def __init__(self, steps: Sequence[ImageStep], *, log: logging.Logger | None = None):
        self._steps = list(steps)
        self._logger = log or logger

    async def resolve(self, record: RecordT) -> RecordT:
        images = record.images.model_copy()
        for step in self._steps:
            if images.is_complete():
                break
            lookup = await self._lookup(step, record)
            self._report(lookup, record)
            for name in images.missing():
                value = lookup.images.get(name)
                if value is not None:
                    setattr(images, name, value)
        return record.model_copy(update={"images": images})

    async def _lookup(self, step: ImageStep, record: ContentRecord) -> ImageLookup:
        name = step.provider.name
        try:
            found = await step.provider.images(record.content_type, step.identifier(record))
        except MissingIdentifier as exc:
            return ImageLookup(name, LookupStatus.MISSING_ID, error=str(exc))
        except ProviderNotFound as exc:
            return ImageLookup(name, LookupStatus.NOT_FOUND, error=str(exc))
        except ProviderRateLimited as exc:
            return ImageLookup(name, LookupStatus.RATE_LIMITED, error=str(exc))
        except Exception as exc:
            return ImageLookup(
                name, LookupStatus.FAILED, error=f"{exc.__class__.__name__}: {exc}"
            )
        return ImageLookup(name, LookupStatus.FOUND, images=dict(found or {}))

    def _report(self, lookup: ImageLookup, record: ContentRecord) -> None:
        if lookup.status is LookupStatus.MISSING_ID:
            self._logger.debug("Skipping %s images for '%s': %s", lookup.provider, record.slug, lookup.error)
        elif lookup.status is LookupStatus.NOT_FOUND:
            self._logger.warning("%s: can't find images for slug '%s'", lookup.provider, record.slug)
        elif lookup.status is LookupStatus.RATE_LIMITED:
            self._logger.warning("%s: rate limit hit while fetching images for '%s'", lookup.provider, record.slug)
        elif lookup.status is LookupStatus.FAILED:
            self._logger.error("%s: image lookup for '%s' failed: %s", lookup.provider, record.slug, lookup.error)
