from unittest.mock import MagicMock

from media_store.common.exceptions import FileRemovalError
from media_store.common.storage import FileRemovalOutcome
from media_store.messaging import DeleteFileHandler, DeleteFileMessage


def write_file(storage, relative_path: str) -> None:
    target = storage.get_absolute_path(relative_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    _ = target.write_bytes(b"x")


def test_handler_removes_every_file(storage):
    write_file(storage, "store/2026/10/18/a.jpg")
    write_file(storage, "store/2026/10/18/b.jpg")
    message = DeleteFileMessage(files=["store/2026/10/18/a.jpg", "store/2026/10/18/b.jpg"])

    report = DeleteFileHandler(storage)(message)

    assert report.message_id == message.message_id
    assert report.removed == message.files
    assert report.already_absent == []
    assert report.failed == {}
    assert not storage.exists("store/2026/10/18/a.jpg")


def test_handler_counts_missing_files_as_absent(storage):
    write_file(storage, "store/2026/10/18/a.jpg")

    report = DeleteFileHandler(storage)(
        DeleteFileMessage(files=["store/2026/10/18/gone.jpg", "store/2026/10/18/a.jpg"])
    )

    assert report.already_absent == ["store/2026/10/18/gone.jpg"]
    assert report.removed == ["store/2026/10/18/a.jpg"]


def test_handler_continues_after_failure():
    storage = MagicMock()
    storage.remove.side_effect = [
        FileRemovalError("a.jpg", "permission denied"),
        FileRemovalOutcome.REMOVED,
    ]

    report = DeleteFileHandler(storage)(DeleteFileMessage(files=["a.jpg", "b.jpg"]))

    assert report.failed == {"a.jpg": "permission denied"}
    assert report.removed == ["b.jpg"]


def test_handler_accepts_empty_job(storage):
    report = DeleteFileHandler(storage)(DeleteFileMessage(files=[]))

    assert report.removed == []
    assert report.failed == {}


def test_handler_refuses_paths_outside_storage(storage, tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    victim = outside / "victim.txt"
    _ = victim.write_bytes(b"keep me")
    write_file(storage, "store/2026/10/18/a.jpg")

    report = DeleteFileHandler(storage)(
        DeleteFileMessage(files=["../outside/victim.txt", str(victim), "store/2026/10/18/a.jpg"])
    )

    assert report.failed == {
        "../outside/victim.txt": "outside storage root",
        str(victim): "outside storage root",
    }
    assert report.removed == ["store/2026/10/18/a.jpg"]
    assert victim.exists()
    assert outside.is_dir()


def test_handler_reports_invalid_path_and_continues(storage):
    write_file(storage, "store/2026/10/18/a.jpg")

    report = DeleteFileHandler(storage)(
        DeleteFileMessage(files=["store/bad\x00name.jpg", "store/2026/10/18/a.jpg"])
    )

    assert list(report.failed) == ["store/bad\x00name.jpg"]
    assert report.removed == ["store/2026/10/18/a.jpg"]
