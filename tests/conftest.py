"""
Pytest configuration and fixtures for testing the media store.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from media_store.common.events import ALL_ENTITIES, EventDispatcher
from media_store.common.storage import StorageService
from media_store.db_service import (
    Criteria,
    DBService,
    DeletionEvent,
    EntitySearchResult,
    EntityWrittenEvent,
    IdSearchResult,
    MediaSchema,
    ThumbnailSchema,
    WriteContext,
)
from media_store.db_service import database
from media_store.db_service.models import Base
from media_store.media import (
    AsyncFileRemoval,
    MediaRepositoryDecorator,
    SyncFileRemoval,
    build_media_repository,
)
from media_store.store.config import StoreConfig


class MediaBuilder:
    """Fluent builder for media payloads used as test fixtures.

    When a storage service is given, files declared with `file()` are
    written to disk on `build()`.
    """

    def __init__(self, storage: StorageService | None = None, id: str | None = None):
        self.id: str = id or uuid4().hex
        self.storage: StorageService | None = storage
        self._data: dict[str, Any] = {"id": self.id}
        self._thumbnails: list[dict[str, Any]] = []
        self._content: bytes | None = None

    def title(self, title: str) -> MediaBuilder:
        self._data["title"] = title
        return self

    def file(
        self,
        path: str | None = None,
        content: bytes | None = b"media-bytes",
        mime_type: str = "image/jpeg",
    ) -> MediaBuilder:
        extension = "jpg" if mime_type == "image/jpeg" else mime_type.rsplit("/", 1)[-1]
        self._data.update(
            {
                "file_path": path or f"store/2026/10/18/{self.id}.{extension}",
                "file_name": f"{self.id}.{extension}",
                "mime_type": mime_type,
                "extension": extension,
            }
        )
        self._content = content
        return self

    def thumbnail(self, width: int, height: int | None = None, id: str | None = None) -> MediaBuilder:
        self._thumbnails.append(
            {"id": id or uuid4().hex, "width": width, "height": height or width}
        )
        return self

    def build(self) -> dict[str, Any]:
        if self.storage is not None and self._content is not None and "file_path" in self._data:
            target = self.storage.get_absolute_path(self._data["file_path"])
            target.parent.mkdir(parents=True, exist_ok=True)
            _ = target.write_bytes(self._content)
        payload = dict(self._data)
        if self._thumbnails:
            payload["thumbnails"] = [dict(t) for t in self._thumbnails]
        return payload


class InMemoryRepository:
    """Dict-backed EntityRepository test double that records every call."""

    def __init__(self, entity_name: str, schema_class: type[BaseModel]):
        self.entity_name: str = entity_name
        self.schema_class: type[BaseModel] = schema_class
        self.rows: dict[str, BaseModel] = {}
        self.search_calls: list[Criteria] = []
        self.delete_calls: list[list[str]] = []

    def search(self, criteria: Criteria, context: WriteContext) -> EntitySearchResult[Any]:
        self.search_calls.append(criteria)
        ids = criteria.ids if criteria.ids is not None else list(self.rows)
        entities = [self.rows[i] for i in ids if i in self.rows]
        return EntitySearchResult(entity=self.entity_name, entities=entities, total=len(entities))

    def search_ids(self, criteria: Criteria, context: WriteContext) -> IdSearchResult:
        result = self.search(criteria, context)
        return IdSearchResult(entity=self.entity_name, ids=result.ids(), total=result.total)

    def create(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        written = []
        for payload in data:
            row = self.schema_class.model_validate({"id": uuid4().hex, **payload})
            self.rows[row.id] = row  # pyright: ignore[reportAttributeAccessIssue]
            written.append(row.id)  # pyright: ignore[reportAttributeAccessIssue]
        return EntityWrittenEvent(entity=self.entity_name, context=context, written_ids=written)

    def update(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        for payload in data:
            current = self.rows[payload["id"]]
            self.rows[payload["id"]] = current.model_copy(update=payload)
        return EntityWrittenEvent(
            entity=self.entity_name, context=context, written_ids=[p["id"] for p in data]
        )

    def upsert(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        for payload in data:
            if payload.get("id") in self.rows:
                _ = self.update([payload], context)
            else:
                _ = self.create([payload], context)
        return EntityWrittenEvent(
            entity=self.entity_name, context=context, written_ids=[p["id"] for p in data]
        )

    def delete(self, ids: Sequence[str], context: WriteContext) -> DeletionEvent:
        self.delete_calls.append(list(ids))
        deleted = [i for i in ids if self.rows.pop(i, None) is not None]
        return DeletionEvent(entity=self.entity_name, context=context, deleted_ids=deleted)

    def add(self, payload: dict[str, Any]) -> BaseModel:
        if self.schema_class is MediaSchema:
            thumbnails = [
                ThumbnailSchema(media_id=payload["id"], **t) for t in payload.get("thumbnails", [])
            ]
            payload = {**payload, "thumbnails": thumbnails}
        row = self.schema_class.model_validate(payload)
        self.rows[payload["id"]] = row
        return row


@pytest.fixture
def context() -> WriteContext:
    return WriteContext(user_id="testuser")


@pytest.fixture
def dispatcher() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def events(dispatcher: EventDispatcher) -> list[Any]:
    """Every event dispatched through the shared dispatcher, in order."""
    recorded: list[Any] = []
    dispatcher.add_listener(ALL_ENTITIES, recorded.append)
    return recorded


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite shared by all threads, installed as the global engine."""
    database.reset_db()
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", database.enable_wal_mode)
    database.engine = engine
    database.SessionLocal = database.create_session_factory(engine)

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    database.reset_db()


@pytest.fixture
def db_service(db_engine, dispatcher: EventDispatcher) -> DBService:
    return DBService(event_dispatcher=dispatcher)


@pytest.fixture
def storage(tmp_path: Path) -> StorageService:
    return StorageService(base_dir=str(tmp_path / "media"))


@pytest.fixture
def message_bus() -> MagicMock:
    return MagicMock(name="message_bus")


@pytest.fixture
def media_builder(storage: StorageService):
    """Factory for MediaBuilder instances writing into the test storage."""

    def _make(id: str | None = None) -> MediaBuilder:
        return MediaBuilder(storage=storage, id=id)

    return _make


@pytest.fixture
def sync_media_repository(db_service: DBService, storage: StorageService) -> MediaRepositoryDecorator:
    return build_media_repository(db_service, SyncFileRemoval(storage))


@pytest.fixture
def async_media_repository(db_service: DBService, message_bus: MagicMock) -> MediaRepositoryDecorator:
    return build_media_repository(db_service, AsyncFileRemoval(message_bus))


@pytest.fixture
def media_double() -> InMemoryRepository:
    return InMemoryRepository("media", MediaSchema)


@pytest.fixture
def thumbnail_double() -> InMemoryRepository:
    return InMemoryRepository("media_thumbnail", ThumbnailSchema)


@pytest.fixture
def store_config(tmp_path: Path) -> StoreConfig:
    return StoreConfig(
        media_store_dir=tmp_path,
        media_storage_dir=tmp_path / "media",
        port=8001,
    )


@pytest.fixture(scope="function")
def client(db_engine, store_config: StoreConfig, dispatcher: EventDispatcher):
    """Create a test client with a fresh database and test media directory."""
    from media_store.store import app

    app.state.config = store_config
    app.state.event_dispatcher = dispatcher

    with TestClient(app) as test_client:
        yield test_client

    app.state.config = None
    app.state.event_dispatcher = None
    app.state.message_bus = None
