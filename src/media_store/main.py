# src/media_store/main.py
from __future__ import annotations

import sys

import uvicorn
from loguru import logger

from .store.config import StoreConfig


def main() -> int:
    config = StoreConfig.from_cli_args()
    StoreConfig._instance = config

    logger.remove()
    _ = logger.add(sys.stderr, level=config.log_level.upper())

    # Start server (blocks)
    try:
        # Pass app as import string for reload to work
        uvicorn.run(
            "media_store.store:app",
            host=config.host,
            port=config.port,
            reload=config.reload,
            log_level=config.log_level,
        )
    except Exception as exc:
        print(f"Error starting service: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
