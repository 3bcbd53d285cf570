"""In-process event bus for presentation collaborators.

Audio, UI and the MQTT bridge register handlers here; the core only emits.
Handlers use the same `(kind, message)` shape as MQTT message handlers, so
the bridge can forward events without translation.

Delivery is fire-and-forget: a failing handler is logged and skipped, and it
never affects the state of the component that emitted the event.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from .errors import Rejection

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], None]

SCAN = "scan"
PURCHASE_SUCCESS = "purchase_success"
STATE_CHANGED = "state_changed"
REJECTED = "rejected"
SALE_RECORDED = "sale_recorded"
DAY_ADVANCED = "day_advanced"
STORE_OPENED = "store_opened"
STORE_CLOSED = "store_closed"
CUSTOMER_SPAWNED = "customer_spawned"
CUSTOMER_LEFT = "customer_left"


class EventBus:
    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def emit(self, kind: str, **payload: Any) -> None:
        msg: dict[str, Any] = {"type": kind, **payload}
        with self._lock:
            handlers = list(self._handlers)
        for h in handlers:
            try:
                h(kind, msg)
            except Exception:
                logger.exception("[events] handler %r failed on %s", h, kind)

    # -------------------- named notifications --------------------

    def on_scan(self, *, station_id: str, product_id: int, price: float, running_total: float) -> None:
        self.emit(SCAN, station_id=station_id, product_id=product_id, price=price, running_total=running_total)

    def on_purchase_success(self, *, station_id: str, customer_id: str, total: float, items: int) -> None:
        self.emit(PURCHASE_SUCCESS, station_id=station_id, customer_id=customer_id, total=total, items=items)

    def on_state_changed(self, *, customer_id: str, old: str, new: str, reason: str) -> None:
        self.emit(STATE_CHANGED, customer_id=customer_id, old=old, new=new, reason=reason)

    def on_rejected(self, source: str, rejection: Rejection) -> None:
        msg = rejection.to_message(source=source)
        msg.pop("type")
        self.emit(REJECTED, **msg)
