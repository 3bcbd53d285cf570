from __future__ import annotations

# EventBus -> MQTT bridge.
#
# Subscribed to the simulation's EventBus, the publisher forwards every event
# to `<ns>/events/<kind>`. On events that change the shop as a whole (day
# closed, store opened/closed, sale) it also publishes ledger and station
# status if it was given a status provider.
#
# The bridge is presentation only: a failed publish is logged and dropped.

import logging
from typing import Any, Callable, Protocol

from . import mqtt_topics
from .events import DAY_ADVANCED, PURCHASE_SUCCESS, STORE_CLOSED, STORE_OPENED
from .ledger import LedgerSnapshot

logger = logging.getLogger(__name__)

STATUS_TRIGGERS = frozenset({DAY_ADVANCED, STORE_OPENED, STORE_CLOSED, PURCHASE_SUCCESS})

StatusProvider = Callable[[], "tuple[LedgerSnapshot, dict[str, dict]]"]


class Publisher(Protocol):
    def publish(self, topic: str, message: dict[str, Any]) -> None: ...


class MqttEventPublisher:
    def __init__(
        self,
        mqtt: Publisher,
        *,
        namespace: str = mqtt_topics.DEFAULT_NAMESPACE,
        status_provider: StatusProvider | None = None,
    ) -> None:
        self.mqtt = mqtt
        self.namespace = namespace
        self.status_provider = status_provider
        self.published = 0
        self.failed = 0

    def __call__(self, kind: str, msg: dict[str, Any]) -> None:
        self._publish(mqtt_topics.events_topic(kind, self.namespace), msg)
        if kind in STATUS_TRIGGERS and self.status_provider is not None:
            snapshot, stations = self.status_provider()
            self.publish_status(snapshot, stations)

    def publish_status(self, snapshot: LedgerSnapshot, stations: dict[str, dict]) -> None:
        self._publish(mqtt_topics.ledger_status(self.namespace), {"type": "ledger_status", **snapshot.to_message()})
        for station_id, status in stations.items():
            self._publish(
                mqtt_topics.station_status(station_id, self.namespace), {"type": "station_status", **status}
            )

    def _publish(self, topic: str, msg: dict[str, Any]) -> None:
        try:
            self.mqtt.publish(topic, msg)
        except Exception:
            self.failed += 1
            logger.exception("[publisher] could not publish to %s", topic)
            return
        self.published += 1
