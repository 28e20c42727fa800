"""MQTT message bus carrying file removal jobs to the file worker."""

from __future__ import annotations

import threading

import paho.mqtt.client as mqtt
from loguru import logger

from ..common.exceptions import MessageDispatchError
from .schemas import DeleteFileMessage

_bus_instance: MQTTMessageBus | None = None
_bus_lock = threading.Lock()


class MQTTMessageBus:
    """Publishes DeleteFileMessage jobs to an MQTT topic with QoS 1.

    Dispatch is fire-and-forget: it returns once the message is handed to
    the client, without waiting for a consumer.
    """

    def __init__(
        self,
        broker: str,
        port: int,
        topic: str,
        client: mqtt.Client | None = None,
    ):
        """Initialize the bus.

        Args:
            broker: MQTT broker hostname
            port: MQTT broker port
            topic: Topic the file worker subscribes to
            client: Optional preconfigured paho client
        """
        self.broker: str = broker
        self.port: int = port
        self.topic: str = topic
        self.client: mqtt.Client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        self.connected: bool = False

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

    def connect(self) -> None:
        """Connect to the broker and start the network loop."""
        logger.info(f"Connecting message bus to MQTT broker at {self.broker}:{self.port}")
        _ = self.client.connect(self.broker, self.port, keepalive=60)
        _ = self.client.loop_start()

    def close(self) -> None:
        _ = self.client.loop_stop()
        _ = self.client.disconnect()
        self.connected = False

    def _on_connect(self, client, userdata, connect_flags, reason_code, properties):
        if reason_code == 0:
            logger.info("Message bus connected to MQTT broker")
            self.connected = True
        else:
            logger.error(f"Message bus failed to connect to MQTT broker: {reason_code}")
            self.connected = False

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        logger.warning(f"Message bus disconnected from MQTT broker: {reason_code}")
        self.connected = False

    def dispatch(self, message: DeleteFileMessage) -> None:
        """Enqueue a job.

        Raises:
            MessageDispatchError: If the client refuses the publish
        """
        info = self.client.publish(self.topic, message.model_dump_json(), qos=1)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise MessageDispatchError(
                f"Failed to publish {message.message_id} to {self.topic}: {mqtt.error_string(info.rc)}"
            )
        logger.info(f"Queued file removal job {message.message_id} with {len(message.files)} file(s)")


def get_message_bus(broker: str, port: int, topic: str) -> MQTTMessageBus:
    """Get or create the process-wide MQTT message bus."""
    global _bus_instance
    with _bus_lock:
        if _bus_instance is None:
            bus = MQTTMessageBus(broker=broker, port=port, topic=topic)
            bus.connect()
            _bus_instance = bus
        return _bus_instance


def reset_message_bus() -> None:
    """Close and forget the process-wide bus (for shutdown and tests)."""
    global _bus_instance
    with _bus_lock:
        if _bus_instance is not None:
            try:
                _bus_instance.close()
            except Exception as e:
                logger.warning(f"Error closing message bus: {e}")
        _bus_instance = None
