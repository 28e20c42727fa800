from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from ..common.config import BaseConfig
from ..db_service.db_service import DBService
from .file_removal import AsyncFileRemoval, FileRemovalStrategy, SyncFileRemoval
from .protocols import FileStore, MessageBus
from .repository import MediaRepositoryDecorator


def build_file_removal(
    config: BaseConfig,
    file_store: FileStore,
    message_bus_factory: Callable[[], MessageBus],
) -> FileRemovalStrategy:
    """Pick the file removal mode once, from configuration.

    The message bus is only created when async removal is enabled.
    """
    if config.async_file_removal:
        logger.debug("Media file removal mode: async")
        return AsyncFileRemoval(message_bus_factory())
    logger.debug("Media file removal mode: sync")
    return SyncFileRemoval(file_store)


def build_media_repository(
    db_service: DBService,
    file_removal: FileRemovalStrategy,
) -> MediaRepositoryDecorator:
    """Wrap the SQL media repository with cascading file and thumbnail deletion."""
    return MediaRepositoryDecorator(
        inner=db_service.media,
        thumbnail_repository=db_service.thumbnail,
        file_removal=file_removal,
        event_dispatcher=db_service.event_dispatcher,
    )
