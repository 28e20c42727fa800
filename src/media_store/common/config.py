from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class BaseConfig(BaseModel, Namespace):
    """Base configuration shared between the Store API and the file worker, compliant with Namespace."""

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    def __init__(self, **kwargs):
        # Satisfy both BaseModel and Namespace
        BaseModel.__init__(self, **kwargs)
        Namespace.__init__(self)

    # Paths (populated after CLI parsing by finalize_base)
    media_store_dir: Path | None = None
    media_storage_dir: Path | None = None

    # Store port, used to namespace MQTT topics
    port: int = 8001

    # MQTT configuration
    mqtt_server: str = "localhost"
    mqtt_port: int | None = None

    # File removal mode: queue a DeleteFileMessage instead of removing inline
    async_file_removal: bool = False

    @property
    def delete_files_topic(self) -> str:
        """MQTT topic carrying DeleteFileMessage jobs for this store."""
        return f"media_store/{self.port}/delete_files"

    def finalize_base(self):
        """Finalize base configuration after CLI parsing."""
        from .utils import ensure_media_store_dir

        store_dir = ensure_media_store_dir(create_if_missing=True)
        self.media_store_dir = store_dir
        self.media_storage_dir = store_dir / "media"
