from fastapi import Depends, Header, Request

from ..common.events import EventDispatcher
from ..common.storage import StorageService
from ..db_service import DBService, WriteContext
from ..media import MediaRepositoryDecorator, build_file_removal, build_media_repository
from ..media.file_removal import FileRemovalStrategy
from ..messaging.bus import get_message_bus
from .config import StoreConfig


def get_config(request: Request) -> StoreConfig:
    """Dependency to get StoreConfig from app state."""
    return request.app.state.config  # pyright: ignore[reportAny]


def get_event_dispatcher(request: Request) -> EventDispatcher:
    """Dependency to get the app-wide event dispatcher."""
    return request.app.state.event_dispatcher  # pyright: ignore[reportAny]


def get_db_service(event_dispatcher: EventDispatcher = Depends(get_event_dispatcher)) -> DBService:
    """Dependency to get DBService instance (services open their own sessions)."""
    return DBService(event_dispatcher=event_dispatcher)


def get_storage_service(config: StoreConfig = Depends(get_config)) -> StorageService:
    return StorageService(base_dir=str(config.media_storage_dir))


def get_file_removal(
    request: Request,
    config: StoreConfig = Depends(get_config),
    storage: StorageService = Depends(get_storage_service),
) -> FileRemovalStrategy:
    """Dependency selecting sync or async file removal from config.

    The message bus is shared through app state once created.
    """

    def message_bus_factory():
        if getattr(request.app.state, "message_bus", None) is None:
            request.app.state.message_bus = get_message_bus(
                broker=config.mqtt_server,
                port=config.mqtt_port or 1883,
                topic=config.delete_files_topic,
            )
        return request.app.state.message_bus

    return build_file_removal(config, storage, message_bus_factory)


def get_media_repository(
    db_service: DBService = Depends(get_db_service),
    file_removal: FileRemovalStrategy = Depends(get_file_removal),
) -> MediaRepositoryDecorator:
    """Dependency to get the media repository with cascading deletion."""
    return build_media_repository(db_service, file_removal)


def get_write_context(x_user_id: str | None = Header(None)) -> WriteContext:
    """Build the acting context from the optional X-User-Id header."""
    return WriteContext(user_id=x_user_id, scope="user")
