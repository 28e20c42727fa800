"""HTTP surface of the media store."""

from .app import app
from .config import StoreConfig

__all__ = ["app", "StoreConfig"]
