from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from loguru import logger

from ..common.events import EventDispatcher
from ..db_service.schemas import (
    Criteria,
    DeletionEvent,
    EntitySearchResult,
    EntityWrittenEvent,
    IdSearchResult,
    MediaSchema,
    WriteContext,
)
from .file_removal import FileRemovalStrategy
from .protocols import EntityRepository

IdInput = str | Mapping[str, Any]


def get_raw_ids(ids: Iterable[IdInput]) -> list[str]:
    """Normalize bare ids and {"id": ...} records into a list of unique raw ids.

    Raises:
        ValueError: If an item is neither a non-empty string nor a mapping with one
    """
    raw: list[str] = []
    for item in ids:
        value = item.get("id") if isinstance(item, Mapping) else item
        if not isinstance(value, str) or not value:
            raise ValueError(f"Invalid media id: {item!r}")
        raw.append(value)
    return list(dict.fromkeys(raw))


class MediaRepositoryDecorator:
    """Media repository that also cleans up stored files and thumbnails on delete.

    Wraps the media EntityRepository and exposes the same interface. Every
    operation except delete is passed straight to the inner repository.
    """

    entity_name: str = "media"

    def __init__(
        self,
        inner: EntityRepository[MediaSchema],
        thumbnail_repository: EntityRepository[Any],
        file_removal: FileRemovalStrategy,
        event_dispatcher: EventDispatcher,
    ):
        self.inner: EntityRepository[MediaSchema] = inner
        self.thumbnail_repository: EntityRepository[Any] = thumbnail_repository
        self.file_removal: FileRemovalStrategy = file_removal
        self.event_dispatcher: EventDispatcher = event_dispatcher

    def delete(self, ids: Sequence[IdInput], context: WriteContext) -> DeletionEvent:
        """Delete media, their stored files and their thumbnail rows.

        Steps:
        1. Resolve the requested ids to media records (with thumbnails)
        2. Nothing found: dispatch and return an empty DeletionEvent
        3. Collect file paths and thumbnail ids of media that have a file
        4. Remove the files through the configured FileRemovalStrategy
        5. Delete the collected thumbnail rows
        6. Delete the media rows through the inner repository

        Under AsyncFileRemoval the returned event does not imply the files
        are gone yet; the file worker removes them later.

        Raises:
            ValueError: If an id is malformed
            FileRemovalError: Sync mode, a file could not be removed. Thumbnails
                and media rows are left untouched.
            MessageDispatchError: Async mode, the job could not be queued.
        """
        raw_ids = get_raw_ids(ids)
        affected = self.search(Criteria(ids=raw_ids), context)

        if affected.count() == 0:
            logger.info(f"No media found for deletion among {len(raw_ids)} id(s)")
            event = DeletionEvent.empty(self.entity_name, context)
            self.event_dispatcher.dispatch(event)
            return event

        files_to_delete: list[str] = []
        thumbnails_to_delete: list[str] = []

        for media in affected:
            if not media.has_file():
                continue
            files_to_delete.append(str(media.file_path))
            thumbnails_to_delete.extend(media.thumbnail_ids())

        logger.info(
            f"Deleting {affected.count()} media with {len(files_to_delete)} file(s) "
            f"and {len(thumbnails_to_delete)} thumbnail(s) via {type(self.file_removal).__name__}"
        )

        self.file_removal.remove(files_to_delete)

        if thumbnails_to_delete:
            _ = self.thumbnail_repository.delete(thumbnails_to_delete, context)

        return self.inner.delete(raw_ids, context)

    def get(self, id: str, context: WriteContext) -> MediaSchema | None:
        return self.search(Criteria(ids=[id]), context).get(id)

    # Unchanged operations

    def search(self, criteria: Criteria, context: WriteContext) -> EntitySearchResult[MediaSchema]:
        return self.inner.search(criteria, context)

    def search_ids(self, criteria: Criteria, context: WriteContext) -> IdSearchResult:
        return self.inner.search_ids(criteria, context)

    def create(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        return self.inner.create(data, context)

    def update(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        return self.inner.update(data, context)

    def upsert(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        return self.inner.upsert(data, context)
