"""Persistence of reconciled content records."""

from __future__ import annotations

import logging
from typing import TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import ContentDocument
from ..errors import PersistenceError
from ..models import (
    PRESERVED_FIELDS,
    MovieRecord,
    ShowRecord,
    record_from_payload,
)
from ..utils import now_epoch

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", MovieRecord, ShowRecord)


class ContentStore:
    """Document store keyed by the stable content id.

    ``upsert`` is the only write path used by the engine. It always looks the
    record up first so user-owned fields and the creation time of an existing
    document survive the overwrite.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        log: logging.Logger | None = None,
    ):
        self._session_factory = session_factory
        self._logger = log or logger

    async def get(self, content_id: str) -> MovieRecord | ShowRecord | None:
        """Return the stored record for ``content_id`` if there is one."""

        try:
            async with self._session_factory() as session:
                document = await session.get(ContentDocument, content_id)
                if document is None:
                    return None
                return record_from_payload(document.payload)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load '{content_id}': {exc}") from exc
        except ValidationError as exc:
            raise PersistenceError(
                f"Stored document '{content_id}' is not a valid record: {exc}"
            ) from exc

    async def upsert(self, record: RecordT) -> RecordT:
        """Insert ``record`` or overwrite the stored one, keeping user state."""

        now = now_epoch()
        try:
            async with self._session_factory() as session:
                document = await session.get(ContentDocument, record.id)
                if document is None:
                    persisted = record.model_copy(
                        update={
                            "created_at": record.created_at or now,
                            "updated_at": now,
                        }
                    )
                    session.add(
                        ContentDocument(
                            id=persisted.id,
                            content_type=persisted.content_type,
                            slug=persisted.slug,
                            title=persisted.title,
                            payload=persisted.model_dump(mode="json"),
                            created_at=persisted.created_at,
                            updated_at=now,
                        )
                    )
                    self._logger.debug("Inserted %s '%s'", record.content_type, record.id)
                else:
                    if document.content_type != record.content_type:
                        raise PersistenceError(
                            f"'{record.id}' is already stored as a {document.content_type}"
                        )
                    found = record_from_payload(document.payload)
                    update = {name: getattr(found, name) for name in PRESERVED_FIELDS}
                    update["created_at"] = found.created_at or document.created_at
                    update["updated_at"] = now
                    persisted = record.model_copy(update=update)

                    document.slug = persisted.slug
                    document.title = persisted.title
                    document.payload = persisted.model_dump(mode="json")
                    document.updated_at = now
                    self._logger.debug("Updated %s '%s'", record.content_type, record.id)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save '{record.id}': {exc}") from exc
        except ValidationError as exc:
            raise PersistenceError(
                f"Stored document '{record.id}' is not a valid record: {exc}"
            ) from exc
        return persisted

    async def distinct_seasons(self, content_id: str) -> list[int]:
        """Distinct ``episodes.season`` values of one stored show."""

        record = await self.get(content_id)
        if not isinstance(record, ShowRecord):
            return []
        return sorted({episode.season for episode in record.episodes})
