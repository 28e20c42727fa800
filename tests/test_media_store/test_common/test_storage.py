"""
Tests for file storage organization and removal.
"""

import os
from pathlib import Path

import pytest

from media_store.common.exceptions import FileRemovalError
from media_store.common.storage import FileRemovalOutcome, StorageService


class TestStorageService:
    """Test file storage organization."""

    def test_md5_naming_convention(self, storage: StorageService):
        """Files are named {md5}.{ext} under store/YYYY/MM/DD."""
        relative_path = storage.save_file(b"test content", "abc1234567890def", "jpg", "test_image.jpg")

        parts = Path(relative_path).parts
        assert parts[0] == "store"
        assert len(parts) == 5
        assert parts[-1] == "abc1234567890def.jpg"
        assert "test_image" not in relative_path

    def test_extension_falls_back_to_original_filename(self, storage: StorageService):
        relative_path = storage.save_file(b"x", "ffff", None, "clip.mp4")
        assert relative_path.endswith("ffff.mp4")

    def test_remove_existing_file(self, storage: StorageService):
        relative_path = storage.save_file(b"bytes", "1234", "png")

        assert storage.remove(relative_path) is FileRemovalOutcome.REMOVED
        assert not storage.exists(relative_path)

    def test_remove_missing_file_is_already_absent(self, storage: StorageService):
        assert storage.remove("store/2020/01/01/nonexistent.jpg") is FileRemovalOutcome.ALREADY_ABSENT

    def test_remove_twice(self, storage: StorageService):
        relative_path = storage.save_file(b"bytes", "5678", "png")

        assert storage.remove(relative_path) is FileRemovalOutcome.REMOVED
        assert storage.remove(relative_path) is FileRemovalOutcome.ALREADY_ABSENT

    def test_remove_cleans_up_empty_directories(self, storage: StorageService):
        relative_path = storage.save_file(b"bytes", "9999", "png")

        _ = storage.remove(relative_path)

        assert not (storage.base_dir / "store").exists()
        assert storage.base_dir.exists()

    def test_remove_keeps_non_empty_directories(self, storage: StorageService):
        keep = storage.save_file(b"a", "aaaa", "png")
        drop = storage.save_file(b"b", "bbbb", "png")

        _ = storage.remove(drop)

        assert storage.exists(keep)

    def test_remove_empty_path_fails(self, storage: StorageService):
        with pytest.raises(FileRemovalError):
            storage.remove("")

    def test_remove_directory_fails(self, storage: StorageService):
        (storage.base_dir / "store" / "folder").mkdir(parents=True)

        with pytest.raises(FileRemovalError) as exc_info:
            storage.remove("store/folder")

        assert exc_info.value.path == "store/folder"

    @pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="requires non-root POSIX permissions")
    def test_remove_permission_denied_fails(self, storage: StorageService):
        relative_path = storage.save_file(b"bytes", "locked", "png")
        parent = storage.get_absolute_path(relative_path).parent
        parent.chmod(0o500)
        try:
            with pytest.raises(FileRemovalError):
                storage.remove(relative_path)
        finally:
            parent.chmod(0o700)

    @pytest.mark.parametrize("escape", ["../outside/victim.txt", "store/../../outside/victim.txt"])
    def test_remove_rejects_parent_traversal(self, storage: StorageService, escape: str):
        victim = storage.base_dir.parent / "outside" / "victim.txt"
        victim.parent.mkdir(parents=True, exist_ok=True)
        _ = victim.write_bytes(b"keep me")

        with pytest.raises(FileRemovalError) as exc_info:
            storage.remove(escape)

        assert exc_info.value.reason == "outside storage root"
        assert victim.exists()

    def test_remove_rejects_absolute_path(self, storage: StorageService, tmp_path: Path):
        victim = tmp_path / "victim.txt"
        _ = victim.write_bytes(b"keep me")

        with pytest.raises(FileRemovalError):
            storage.remove(str(victim))

        assert victim.exists()

    def test_remove_rejects_storage_root(self, storage: StorageService):
        with pytest.raises(FileRemovalError):
            storage.remove(".")

        assert storage.base_dir.is_dir()

    def test_remove_nul_byte_path_fails(self, storage: StorageService):
        with pytest.raises(FileRemovalError):
            storage.remove("store/bad\x00name.jpg")

    def test_cleanup_stops_at_storage_root(self, storage: StorageService):
        relative_path = storage.save_file(b"bytes", "cafe", "png")

        _ = storage.remove(relative_path)

        assert storage.base_dir.is_dir()
        assert storage.base_dir.parent.is_dir()
