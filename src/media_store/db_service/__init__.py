from .base import SqlEntityRepository
from .database import init_db
from .db_service import DBService
from .media import MediaDBService, ThumbnailDBService
from .schemas import (
    Criteria,
    DeletionEvent,
    EntitySearchResult,
    EntityWrittenEvent,
    IdSearchResult,
    MediaSchema,
    ThumbnailSchema,
    WriteContext,
    WriteEvent,
)

__all__ = [
    "init_db",
    "DBService",
    "SqlEntityRepository",
    "MediaDBService",
    "ThumbnailDBService",
    "Criteria",
    "DeletionEvent",
    "EntitySearchResult",
    "EntityWrittenEvent",
    "IdSearchResult",
    "MediaSchema",
    "ThumbnailSchema",
    "WriteContext",
    "WriteEvent",
]
