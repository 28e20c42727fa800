"""Utility functions for the media store."""

import os
from pathlib import Path

from loguru import logger


def ensure_media_store_dir(create_if_missing: bool = True) -> Path:
    """Return the MEDIA_STORE_DIR directory, creating it when allowed.

    The directory holds the SQLite database and the media storage root.

    Raises:
        SystemExit: If MEDIA_STORE_DIR is unset, or the directory is missing
            and may not be created, or it is not a writable directory.
    """
    value = os.getenv("MEDIA_STORE_DIR")
    if not value:
        raise SystemExit("ERROR: MEDIA_STORE_DIR environment variable is not set")

    store_dir = Path(value)
    if not store_dir.exists():
        if not create_if_missing:
            raise SystemExit(f"ERROR: MEDIA_STORE_DIR does not exist: {store_dir}")
        try:
            store_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SystemExit(f"ERROR: cannot create MEDIA_STORE_DIR {store_dir}: {e}") from e
        logger.info(f"Created MEDIA_STORE_DIR: {store_dir}")

    if not store_dir.is_dir() or not os.access(store_dir, os.R_OK | os.W_OK):
        raise SystemExit(f"ERROR: MEDIA_STORE_DIR is not a writable directory: {store_dir}")
    return store_dir


def get_db_url() -> str:
    """SQLite database inside MEDIA_STORE_DIR."""
    return f"sqlite:///{ensure_media_store_dir() / 'media_store.db'}"


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")
