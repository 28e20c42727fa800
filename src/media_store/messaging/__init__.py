"""File removal queue: message schema, MQTT producer and consumer."""

from .bus import MQTTMessageBus, get_message_bus, reset_message_bus
from .handlers import DeleteFileHandler
from .schemas import DeleteFileMessage, DeleteFileReport

__all__ = [
    "DeleteFileHandler",
    "DeleteFileMessage",
    "DeleteFileReport",
    "MQTTMessageBus",
    "get_message_bus",
    "reset_message_bus",
]
