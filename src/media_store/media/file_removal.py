from __future__ import annotations

from abc import ABC, abstractmethod

from loguru import logger

from ..common.storage import FileRemovalOutcome
from ..messaging.schemas import DeleteFileMessage
from .protocols import FileStore, MessageBus


class FileRemovalStrategy(ABC):
    """How the backing files of deleted media are removed."""

    @abstractmethod
    def remove(self, files: list[str]) -> None:
        """Remove (or arrange removal of) the given relative paths."""


class SyncFileRemoval(FileRemovalStrategy):
    """Removes each file inline.

    Files that are already absent count as removed. Any other failure
    propagates and aborts the remaining files; nothing is rolled back.
    """

    def __init__(self, file_store: FileStore):
        self.file_store: FileStore = file_store

    def remove(self, files: list[str]) -> None:
        for path in files:
            outcome = self.file_store.remove(path)
            if outcome is FileRemovalOutcome.ALREADY_ABSENT:
                logger.warning(f"Media file already absent: {path}")


class AsyncFileRemoval(FileRemovalStrategy):
    """Queues a single DeleteFileMessage for the file worker and returns."""

    def __init__(self, message_bus: MessageBus):
        self.message_bus: MessageBus = message_bus

    def remove(self, files: list[str]) -> None:
        self.message_bus.dispatch(DeleteFileMessage(files=list(files)))
