"""Small MQTT helper built on top of paho-mqtt.

The shop core is in-process and never needs a broker. This wrapper only
serves the presentation bridge: the event publisher pushes JSON messages out
and the `watch` command subscribes and prints them.

Design:
- `MqttClient` manages the connection and a background network loop.
- Messages are JSON objects; handlers get `(topic, message_dict)`.
- QoS is kept at 0: a lost presentation event is harmless.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, dict[str, Any]], None]


class MqttClient:
    """Thin wrapper around paho-mqtt with JSON convenience APIs."""

    def __init__(
        self,
        *,
        client_id: str,
        host: str,
        port: int,
        keepalive: int = 30,
    ) -> None:
        self.client_id = client_id
        self.host = host
        self.port = port
        self.keepalive = keepalive

        self._client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id, clean_session=True)
        self._client.on_message = self._on_message

        self._handlers: list[MessageHandler] = []
        self._started = False

    def start(self) -> None:
        """Connect and start the background network loop."""
        if self._started:
            return
        self._client.connect(self.host, self.port, keepalive=self.keepalive)
        self._client.loop_start()
        self._started = True
        logger.info("[mqtt] %s connected to %s:%d", self.client_id, self.host, self.port)

    def stop(self) -> None:
        if not self._started:
            return
        self._client.loop_stop()
        self._client.disconnect()
        self._started = False

    def add_handler(self, handler: MessageHandler) -> None:
        self._handlers.append(handler)

    def subscribe(self, topic: str) -> None:
        self._client.subscribe(topic, qos=0)

    def publish(self, topic: str, message: dict[str, Any]) -> None:
        payload = json.dumps(message, separators=(",", ":")).encode("utf-8")
        self._client.publish(topic, payload=payload, qos=0)

    # -------------------- internal callbacks --------------------

    def _on_message(self, client: mqtt.Client, userdata: Any, msg: mqtt.MQTTMessage) -> None:
        data = decode_payload(msg.payload)
        if data is None:
            logger.debug("[mqtt] ignoring malformed message on %s", msg.topic)
            return
        for h in list(self._handlers):
            try:
                h(msg.topic, data)
            except Exception:
                # Keep the network loop alive whatever a handler does.
                logger.exception("[mqtt] handler failed on %s", msg.topic)


def decode_payload(raw: bytes | str) -> dict[str, Any] | None:
    """Decode a JSON object payload; None for anything else."""
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
        data = json.loads(text)
    except (UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None
