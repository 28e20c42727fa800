from __future__ import annotations

from loguru import logger

from ..common.exceptions import FileRemovalError
from ..common.storage import FileRemovalOutcome, StorageService
from .schemas import DeleteFileMessage, DeleteFileReport


class DeleteFileHandler:
    """Consumer side of the file removal queue.

    Removes every file in a message. Files that are already gone count as
    removed; a file that cannot be removed is logged and the rest of the
    message is still processed.
    """

    def __init__(self, storage: StorageService):
        self.storage: StorageService = storage

    def __call__(self, message: DeleteFileMessage) -> DeleteFileReport:
        report = DeleteFileReport(message_id=message.message_id)

        for path in message.files:
            try:
                outcome = self.storage.remove(path)
            except FileRemovalError as e:
                logger.error(f"Job {message.message_id}: {e}")
                report.failed[path] = e.reason
                continue

            if outcome is FileRemovalOutcome.REMOVED:
                report.removed.append(path)
            else:
                report.already_absent.append(path)

        logger.info(
            f"Job {message.message_id}: removed={len(report.removed)} "
            f"absent={len(report.already_absent)} failed={len(report.failed)}"
        )
        return report
