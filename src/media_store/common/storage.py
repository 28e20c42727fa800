"""Storage service for media file management."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from loguru import logger

from .exceptions import FileRemovalError


class FileRemovalOutcome(str, Enum):
    """Result of removing a single stored file."""

    REMOVED = "removed"
    ALREADY_ABSENT = "already_absent"


class StorageService:
    """Service for managing media file storage with organized directory structure.

    Organizes files by date: store/YYYY/MM/DD/{md5}.{ext}
    """

    def __init__(self, base_dir: str):
        """
        Initialize storage service.

        Args:
            base_dir: Base directory for file storage.
        """
        self.base_dir: Path = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_storage_path(self, md5: str | None, extension: str | None, original_filename: str) -> Path:
        """
        Generate organized file path based on the content hash and current date.

        Structure: store/YYYY/MM/DD/{md5}.{ext}

        Args:
            md5: Content hash used as the file stem
            extension: File extension, with or without the leading dot
            original_filename: Original filename, used when extension is missing

        Returns:
            Path object for the file storage location
        """
        now = datetime.now(UTC)
        dir_path = self.base_dir / "store" / now.strftime("%Y") / now.strftime("%m") / now.strftime("%d")
        dir_path.mkdir(parents=True, exist_ok=True)

        stem = md5 or "unknown"
        if extension:
            ext = extension if extension.startswith(".") else f".{extension}"
        else:
            ext = Path(original_filename).suffix

        return dir_path / f"{stem}{ext}"

    def save_file(
        self,
        file_bytes: bytes,
        md5: str | None,
        extension: str | None = None,
        original_filename: str = "file",
    ) -> str:
        """
        Save file to storage with organized directory structure.

        Returns:
            Relative path to the saved file
        """
        file_path = self.get_storage_path(md5, extension, original_filename)
        _ = file_path.write_bytes(file_bytes)
        return str(file_path.relative_to(self.base_dir))

    def remove(self, relative_path: str) -> FileRemovalOutcome:
        """
        Remove a stored file.

        Args:
            relative_path: Path relative to base_dir; must stay inside it

        Returns:
            REMOVED if the file was deleted, ALREADY_ABSENT if it did not exist

        Raises:
            FileRemovalError: If the path is invalid or escapes base_dir, or
                the file exists but could not be removed
        """
        file_path = self._resolve_inside_root(relative_path)

        try:
            file_path.unlink()
        except FileNotFoundError:
            logger.debug(f"File already absent: {relative_path}")
            return FileRemovalOutcome.ALREADY_ABSENT
        except (OSError, ValueError) as e:
            logger.error(f"Error deleting file {relative_path}: {e}")
            raise FileRemovalError(relative_path, str(e)) from e

        self._cleanup_empty_dirs(file_path.parent)
        logger.debug(f"Removed file: {relative_path}")
        return FileRemovalOutcome.REMOVED

    def _resolve_inside_root(self, relative_path: str) -> Path:
        """Resolve a relative path, rejecting anything outside base_dir."""
        if not relative_path:
            raise FileRemovalError(str(relative_path), "empty path")
        try:
            resolved = (self.base_dir / relative_path).resolve()
        except (OSError, ValueError) as e:
            raise FileRemovalError(relative_path, str(e)) from e

        root = self.base_dir.resolve()
        if resolved == root or not resolved.is_relative_to(root):
            logger.error(f"Refusing to remove path outside storage root: {relative_path}")
            raise FileRemovalError(relative_path, "outside storage root")
        return resolved

    def exists(self, relative_path: str) -> bool:
        return self.get_absolute_path(relative_path).is_file()

    def _cleanup_empty_dirs(self, dir_path: Path) -> None:
        """
        Remove empty parent directories up to base_dir.

        Args:
            dir_path: Resolved directory to start cleanup from
        """
        root = self.base_dir.resolve()
        try:
            # Don't remove base_dir itself
            while dir_path != root and dir_path.is_relative_to(root) and dir_path.exists():
                if not any(dir_path.iterdir()):
                    dir_path.rmdir()
                    dir_path = dir_path.parent
                else:
                    break
        except OSError as e:
            # A concurrent upload may have repopulated the directory
            logger.debug(f"Stopped empty directory cleanup at {dir_path}: {e}")

    def get_absolute_path(self, relative_path: str) -> Path:
        """
        Get absolute path from relative path.

        Args:
            relative_path: Relative path to the file

        Returns:
            Absolute Path object
        """
        return self.base_dir / relative_path
