"""Tests for StoreConfig CLI and environment handling."""

import pytest

from media_store.store.config import StoreConfig


@pytest.fixture(autouse=True)
def media_store_env(tmp_path, monkeypatch):
    monkeypatch.setenv("MEDIA_STORE_DIR", str(tmp_path / "store_home"))
    monkeypatch.delenv("MEDIA_STORE_ASYNC_FILE_REMOVAL", raising=False)
    StoreConfig.reset()
    yield tmp_path / "store_home"
    StoreConfig.reset()


def test_defaults(media_store_env):
    config = StoreConfig.from_cli_args([])

    assert config.port == 8001
    assert config.async_file_removal is False
    assert config.media_store_dir == media_store_env
    assert config.media_storage_dir == media_store_env / "media"
    assert media_store_env.is_dir()


def test_cli_arguments():
    config = StoreConfig.from_cli_args(
        ["--port", "9000", "--mqtt-port", "1884", "--async-file-removal", "--log-level", "debug"]
    )

    assert config.port == 9000
    assert config.mqtt_port == 1884
    assert config.async_file_removal is True
    assert config.log_level == "debug"
    assert config.delete_files_topic == "media_store/9000/delete_files"


def test_async_mode_from_environment(monkeypatch):
    monkeypatch.setenv("MEDIA_STORE_ASYNC_FILE_REMOVAL", "true")

    config = StoreConfig.from_cli_args(["--mqtt-port", "1883"])

    assert config.async_file_removal is True


def test_async_mode_requires_mqtt_port():
    with pytest.raises(ValueError):
        StoreConfig.from_cli_args(["--async-file-removal"])


def test_missing_media_store_dir_exits(monkeypatch):
    monkeypatch.delenv("MEDIA_STORE_DIR")

    with pytest.raises(SystemExit):
        StoreConfig.from_cli_args([])
