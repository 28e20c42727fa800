from __future__ import annotations


class MediaStoreError(Exception):
    """Base class for media store errors."""

    pass


class ResourceNotFoundError(MediaStoreError):
    """Raised when a requested resource is not found in the database."""

    pass


class FileRemovalError(MediaStoreError):
    """Raised when a stored file exists but could not be removed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to remove file {path}: {reason}")
        self.path: str = path
        self.reason: str = reason


class MessageDispatchError(MediaStoreError):
    """Raised when a message could not be handed to the message bus."""

    pass


class DuplicateFileError(MediaStoreError):
    """Raised when an upload has the same MD5 as an already stored file."""

    pass
