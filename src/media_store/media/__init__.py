"""Media repository with cascading deletion of stored files and thumbnails."""

from .factory import build_file_removal, build_media_repository
from .file_removal import AsyncFileRemoval, FileRemovalStrategy, SyncFileRemoval
from .protocols import EntityRepository, FileStore, MessageBus
from .repository import MediaRepositoryDecorator, get_raw_ids

__all__ = [
    "AsyncFileRemoval",
    "EntityRepository",
    "FileRemovalStrategy",
    "FileStore",
    "MediaRepositoryDecorator",
    "MessageBus",
    "SyncFileRemoval",
    "build_file_removal",
    "build_media_repository",
    "get_raw_ids",
]
