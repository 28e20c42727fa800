"""Common module for shared configuration, storage and errors."""

from .config import BaseConfig
from .exceptions import (
    DuplicateFileError,
    FileRemovalError,
    MediaStoreError,
    MessageDispatchError,
    ResourceNotFoundError,
)
from .storage import FileRemovalOutcome, StorageService

__all__: list[str] = [
    "BaseConfig",
    "DuplicateFileError",
    "FileRemovalError",
    "FileRemovalOutcome",
    "MediaStoreError",
    "MessageDispatchError",
    "ResourceNotFoundError",
    "StorageService",
]
