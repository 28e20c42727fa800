from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field


def now_timestamp() -> int:
    """Return current UTC timestamp in milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


class ThumbnailSchema(BaseModel):
    """Pydantic model for MediaThumbnail."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    media_id: str
    width: int
    height: int
    created_at: int | None = None


class MediaSchema(BaseModel):
    """Pydantic model for Media."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str | None = None
    file_name: str | None = None

    added_date: int | None = None
    updated_date: int | None = None

    added_by: str | None = None
    updated_by: str | None = None

    file_size: int | None = None
    mime_type: str | None = None
    extension: str | None = None
    md5: str | None = None
    file_path: str | None = None

    thumbnails: list[ThumbnailSchema] = Field(default_factory=list)

    def has_file(self) -> bool:
        """True when the media references a stored file."""
        return bool(self.file_path)

    def thumbnail_ids(self) -> list[str]:
        return [t.id for t in self.thumbnails]


class WriteContext(BaseModel):
    """Acting context of a write operation."""

    user_id: str | None = Field(None, description="User performing the write")
    scope: Literal["user", "system"] = Field("user", description="Origin of the write")

    @classmethod
    def system(cls) -> WriteContext:
        return cls(user_id=None, scope="system")


class Criteria(BaseModel):
    """Search criteria: an optional id filter plus equality filters."""

    ids: list[str] | None = None
    filters: dict[str, Any] = Field(default_factory=dict)
    limit: int | None = None
    offset: int | None = None


class WriteEvent(BaseModel):
    """Common fields of the events emitted by repository writes."""

    entity: str = Field(..., description="Entity name, e.g. 'media'")
    context: WriteContext
    errors: list[str] = Field(default_factory=list)
    timestamp: int = Field(default_factory=now_timestamp)


class EntityWrittenEvent(WriteEvent):
    """Emitted after create, update or upsert."""

    written_ids: list[str] = Field(default_factory=list)


class DeletionEvent(WriteEvent):
    """Emitted after a delete; lists the ids that were actually removed."""

    deleted_ids: list[str] = Field(default_factory=list)

    @classmethod
    def empty(cls, entity: str, context: WriteContext) -> DeletionEvent:
        return cls(entity=entity, context=context, deleted_ids=[], errors=[])

    @property
    def is_empty(self) -> bool:
        return not self.deleted_ids and not self.errors


SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass
class EntitySearchResult(Generic[SchemaT]):
    """Entities matched by a search, in storage order."""

    entity: str
    entities: list[SchemaT] = field(default_factory=list)
    total: int = 0

    def __iter__(self):
        return iter(self.entities)

    def __len__(self) -> int:
        return len(self.entities)

    def count(self) -> int:
        return len(self.entities)

    def ids(self) -> list[str]:
        return [getattr(e, "id") for e in self.entities]

    def get(self, id: str) -> SchemaT | None:
        for e in self.entities:
            if getattr(e, "id") == id:
                return e
        return None


@dataclass
class IdSearchResult:
    """Ids matched by a search."""

    entity: str
    ids: list[str] = field(default_factory=list)
    total: int = 0
