"""Media store with cascading deletion of stored files and thumbnails."""

__version__ = "0.1.0"
