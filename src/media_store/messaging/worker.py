#!/usr/bin/env python3
"""CLI entry point for the file worker process.

This module handles:
- CLI argument parsing
- Signal handling for graceful shutdown
- MQTT subscription to the file removal topic
- Running DeleteFileHandler for every received job
"""

from __future__ import annotations

import signal
import sys
import threading
from argparse import ArgumentParser, Namespace
from types import FrameType

import paho.mqtt.client as mqtt
from loguru import logger
from pydantic import ValidationError

from ..common.config import BaseConfig
from ..common.storage import StorageService
from .handlers import DeleteFileHandler
from .schemas import DeleteFileMessage

shutdown_event = threading.Event()
shutdown_signal_count = 0


def signal_handler(signum: int, _frame: FrameType | None) -> None:
    """Handle shutdown signals (SIGINT, SIGTERM).

    First signal: Initiates graceful shutdown
    Second signal: Forces immediate exit
    """
    global shutdown_signal_count
    shutdown_signal_count += 1

    if shutdown_signal_count == 1:
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        logger.info("Press Ctrl+C again to force immediate exit")
        shutdown_event.set()
    else:
        print(
            "\nWARNING: Force exit requested, terminating immediately!",
            file=sys.stderr,
            flush=True,
        )
        sys.exit(1)


class Args(Namespace):
    """CLI arguments for the file worker."""

    log_level: str
    mqtt_server: str
    mqtt_port: int
    store_port: int

    def __init__(
        self,
        log_level: str = "INFO",
        mqtt_server: str = "localhost",
        mqtt_port: int = 1883,
        store_port: int = 8001,
    ) -> None:
        super().__init__()
        self.log_level = log_level
        self.mqtt_server = mqtt_server
        self.mqtt_port = mqtt_port
        self.store_port = store_port


class FileWorker:
    """Subscribes to DeleteFileMessage jobs and runs them through a handler."""

    def __init__(
        self,
        config: BaseConfig,
        handler: DeleteFileHandler,
        client: mqtt.Client | None = None,
    ):
        self.config: BaseConfig = config
        self.handler: DeleteFileHandler = handler
        self.client: mqtt.Client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message

    def start(self) -> None:
        logger.info(f"Connecting file worker to MQTT broker at {self.config.mqtt_server}:{self.config.mqtt_port}")
        _ = self.client.connect(self.config.mqtt_server, self.config.mqtt_port or 1883, keepalive=60)
        _ = self.client.loop_start()

    def stop(self) -> None:
        _ = self.client.loop_stop()
        _ = self.client.disconnect()
        logger.info("File worker stopped")

    def _on_connect(self, client, userdata, connect_flags, reason_code, properties):
        if reason_code == 0:
            topic = self.config.delete_files_topic
            client.subscribe(topic, qos=1)
            logger.info(f"File worker subscribed to {topic}")
        else:
            logger.error(f"File worker failed to connect to MQTT broker: {reason_code}")

    def _on_message(self, client, userdata, msg):
        _ = client
        _ = userdata
        try:
            message = DeleteFileMessage.model_validate_json(msg.payload)
        except ValidationError as e:
            logger.error(f"Dropping malformed file removal job on {msg.topic}: {e}")
            return
        _ = self.handler(message)


def main() -> int:
    parser = ArgumentParser(prog="media-store-worker")
    _ = parser.add_argument("--mqtt-server", default="localhost", help="MQTT broker host")
    _ = parser.add_argument("--mqtt-port", type=int, default=1883, help="MQTT broker port")
    _ = parser.add_argument("--store-port", type=int, default=8001, help="Port of the store whose jobs to consume")
    _ = parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "TRACE"],
    )
    args = parser.parse_args(namespace=Args())

    logger.remove()
    _ = logger.add(sys.stderr, level=args.log_level)

    config = BaseConfig(
        port=args.store_port,
        mqtt_server=args.mqtt_server,
        mqtt_port=args.mqtt_port,
    )
    config.finalize_base()

    storage = StorageService(base_dir=str(config.media_storage_dir))
    worker = FileWorker(config, DeleteFileHandler(storage))

    _ = signal.signal(signal.SIGINT, signal_handler)
    _ = signal.signal(signal.SIGTERM, signal_handler)

    try:
        worker.start()
    except OSError as e:
        logger.error(f"Failed to start file worker: {e}")
        return 1

    try:
        while not shutdown_event.wait(timeout=1.0):
            pass
    finally:
        worker.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
