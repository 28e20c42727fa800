"""Interfaces the media repository decorator is written against."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from ..common.storage import FileRemovalOutcome
from ..db_service.schemas import (
    Criteria,
    DeletionEvent,
    EntitySearchResult,
    EntityWrittenEvent,
    IdSearchResult,
    WriteContext,
)
from ..messaging.schemas import DeleteFileMessage

SchemaT = TypeVar("SchemaT", bound=BaseModel)


@runtime_checkable
class EntityRepository(Protocol[SchemaT]):
    """Persistence interface shared by the SQL repository and its decorators."""

    entity_name: str

    def search(self, criteria: Criteria, context: WriteContext) -> EntitySearchResult[SchemaT]: ...

    def search_ids(self, criteria: Criteria, context: WriteContext) -> IdSearchResult: ...

    def create(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent: ...

    def update(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent: ...

    def upsert(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent: ...

    def delete(self, ids: Sequence[str], context: WriteContext) -> DeletionEvent: ...


class FileStore(Protocol):
    """Removes stored files; raises FileRemovalError for real failures."""

    def remove(self, relative_path: str) -> FileRemovalOutcome: ...


class MessageBus(Protocol):
    """Hands jobs to an asynchronous worker."""

    def dispatch(self, message: DeleteFileMessage) -> None: ...
