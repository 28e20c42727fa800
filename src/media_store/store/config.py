from __future__ import annotations

from argparse import ArgumentParser
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar

from ..common import utils
from ..common.config import BaseConfig


class StoreConfig(BaseConfig):
    """Unified Store service configuration and CLI arguments."""

    _instance: ClassVar[StoreConfig | None] = None

    # CLI Fields (mapped from argparse)
    host: str = "0.0.0.0"
    debug: bool = False
    reload: bool = False
    log_level: str = "info"
    no_migrate: bool = False

    # Calculated Fields
    media_store_dir: Path
    media_storage_dir: Path

    @classmethod
    def get_config(cls) -> StoreConfig:
        """Get or create the unified StoreConfig singleton."""
        if cls._instance is None:
            cls._instance = cls.from_cli_args()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (for tests)."""
        cls._instance = None

    @classmethod
    def from_cli_args(cls, argv: Sequence[str] | None = None) -> StoreConfig:
        """Parse CLI arguments and return a StoreConfig instance."""
        parser = ArgumentParser(prog="media-store")
        _ = parser.add_argument("--no-migrate", action="store_true", help="Skip creating DB tables")
        _ = parser.add_argument("--port", "-p", type=int, default=8001)
        _ = parser.add_argument("--host", default="0.0.0.0")
        _ = parser.add_argument("--mqtt-server", default="localhost", help="MQTT broker host")
        _ = parser.add_argument(
            "--mqtt-port", type=int, default=None, help="MQTT broker port (required for async file removal)"
        )
        _ = parser.add_argument(
            "--async-file-removal",
            action="store_true",
            default=utils.env_flag("MEDIA_STORE_ASYNC_FILE_REMOVAL"),
            help="Queue file removal jobs for the file worker instead of deleting inline",
        )
        _ = parser.add_argument("--reload", action="store_true", help="Enable uvicorn reload (dev)")
        _ = parser.add_argument("--debug", action="store_true", help="Enable debug mode")
        _ = parser.add_argument(
            "--log-level",
            default="info",
            choices=["critical", "error", "warning", "info", "debug", "trace"],
        )

        # Ignore unknown args to be safe when running under reloaders/tests
        args, _ = parser.parse_known_args(argv)

        store_dir = utils.ensure_media_store_dir(create_if_missing=True)

        config_dict = vars(args).copy()
        config_dict["media_store_dir"] = store_dir
        config_dict["media_storage_dir"] = store_dir / "media"

        config = cls.model_validate(config_dict)
        if config.async_file_removal and not config.mqtt_port:
            raise ValueError("--async-file-removal requires --mqtt-port")
        return config


def get_config() -> StoreConfig:
    return StoreConfig.get_config()
