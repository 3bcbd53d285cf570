from __future__ import annotations

# Checkout station: the shared resource that mediates scanning and payment.
#
# The station is IDLE without a customer and SERVING with one. Customers wait
# in a FIFO queue of ids; only the head of the queue may be accepted, so no
# shopper can jump another one. Every operation either applies fully or
# returns False with the station untouched.

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .errors import Rejection
from .events import EventBus
from .ledger import Ledger
from .products import Product

logger = logging.getLogger(__name__)

Point = tuple[float, float]


class CheckoutCustomer(Protocol):
    customer_id: str

    def compute_satisfaction(self) -> float: ...

    def on_checkout_complete(self, station_id: str, total: float) -> None: ...


@dataclass(frozen=True)
class StationLoad:
    # None when nobody is at the register.
    serving_unscanned: int | None
    queued_baskets: tuple[int, ...]


class StationState(str, Enum):
    IDLE = "idle"
    SERVING = "serving"


class CheckoutStation:
    def __init__(
        self,
        station_id: str,
        ledger: Ledger,
        *,
        position: Point = (0.0, 0.0),
        events: EventBus | None = None,
    ) -> None:
        self.station_id = station_id
        self.ledger = ledger
        self.position = position
        self.events = events or ledger.events

        self._lock = threading.Lock()
        self._queue: list[str] = []
        self._baskets: dict[str, int] = {}
        self._customer: CheckoutCustomer | None = None
        self._items: list[Product] = []
        self._scanned: set[int] = set()
        self._running_total = 0.0
        # Set while the ledger settles a sale; the station lock is not held then.
        self._paying = False
        self.served_count = 0

    def __repr__(self) -> str:
        return f"CheckoutStation({self.station_id!r}, state={self.state.value}, queue={len(self._queue)})"

    # -------------------- views --------------------

    @property
    def state(self) -> StationState:
        return StationState.IDLE if self._customer is None else StationState.SERVING

    @property
    def current_customer(self) -> CheckoutCustomer | None:
        return self._customer

    @property
    def has_customer(self) -> bool:
        return self._customer is not None

    @property
    def items(self) -> tuple[Product, ...]:
        return tuple(self._items)

    @property
    def running_total(self) -> float:
        return self._running_total

    @property
    def queue(self) -> tuple[str, ...]:
        return tuple(self._queue)

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def all_scanned(self) -> bool:
        return bool(self._items) and all(p.product_id in self._scanned for p in self._items)

    def is_scanned(self, product: Product) -> bool:
        return product.product_id in self._scanned

    def load(self) -> StationLoad:
        """What is left to do here: the served customer's progress and the queue."""
        with self._lock:
            serving = None
            if self._customer is not None:
                serving = len([p for p in self._items if p.product_id not in self._scanned])
            return StationLoad(
                serving_unscanned=serving,
                queued_baskets=tuple(self._baskets.get(cid, 0) for cid in self._queue),
            )

    def status(self) -> dict:
        with self._lock:
            return {
                "station_id": self.station_id,
                "state": self.state.value,
                "customer_id": self._customer.customer_id if self._customer else None,
                "queue_len": len(self._queue),
                "items": len(self._items),
                "scanned": len(self._scanned),
                "running_total": self._running_total,
                "paying": self._paying,
                "served_count": self.served_count,
            }

    # -------------------- queue --------------------

    def join_queue(self, customer_id: str, basket_size: int = 0) -> int:
        """Append a customer to the FIFO queue and return its 1-based position."""
        with self._lock:
            if customer_id in self._queue:
                return self._queue.index(customer_id) + 1
            self._queue.append(customer_id)
            self._baskets[customer_id] = max(0, int(basket_size))
            return len(self._queue)

    def leave_queue(self, customer_id: str) -> bool:
        with self._lock:
            if customer_id not in self._queue:
                return False
            self._queue.remove(customer_id)
            self._baskets.pop(customer_id, None)
            return True

    def position_of(self, customer_id: str) -> int | None:
        with self._lock:
            if customer_id not in self._queue:
                return None
            return self._queue.index(customer_id) + 1

    # -------------------- serving --------------------

    def accept(self, customer: CheckoutCustomer | None) -> bool:
        """Start serving `customer`. Only the head of a non-empty queue is accepted."""
        if customer is None:
            return self._reject(Rejection("null_customer", "cannot accept nobody"))
        with self._lock:
            if self._customer is not None:
                rejection = Rejection(
                    "station_busy", f"already serving {self._customer.customer_id}"
                )
            elif self._queue and self._queue[0] != customer.customer_id:
                rejection = Rejection(
                    "not_your_turn", f"{customer.customer_id} is behind {self._queue[0]}"
                )
            else:
                if self._queue:
                    self._queue.pop(0)
                    self._baskets.pop(customer.customer_id, None)
                self._customer = customer
                rejection = None
        if rejection is not None:
            # Waiting customers poll accept(); a busy station is expected, not noteworthy.
            logger.debug("[checkout %s] %s", self.station_id, rejection.message)
            return False
        logger.info("[checkout %s] serving %s", self.station_id, customer.customer_id)
        return True

    def place_item(self, product: Product | None) -> bool:
        if product is None:
            return self._reject(Rejection("null_product", "cannot place nothing"))
        with self._lock:
            if self._customer is None:
                rejection = Rejection("no_customer", "no customer is being served")
            elif self._paying:
                rejection = Rejection("payment_in_progress", f"{self._customer.customer_id} is paying")
            elif any(p.product_id == product.product_id for p in self._items):
                rejection = Rejection("duplicate_item", f"product {product.product_id} already placed")
            elif not product.is_reserved_by(self._customer.customer_id):
                rejection = Rejection(
                    "not_reserved",
                    f"product {product.product_id} is not reserved by {self._customer.customer_id}",
                )
            else:
                self._items.append(product)
                rejection = None
        if rejection is not None:
            return self._reject(rejection)
        logger.debug("[checkout %s] placed %s (%.2f)", self.station_id, product.name, product.price)
        return True

    def scan(self, product: Product | None) -> bool:
        if product is None:
            return self._reject(Rejection("null_product", "cannot scan nothing"))
        with self._lock:
            if not any(p.product_id == product.product_id for p in self._items):
                rejection = Rejection("not_placed", f"product {product.product_id} is not at the station")
            elif product.product_id in self._scanned:
                rejection = Rejection("already_scanned", f"product {product.product_id} already scanned")
            else:
                self._scanned.add(product.product_id)
                self._running_total += product.price
                running_total = self._running_total
                rejection = None
        if rejection is not None:
            return self._reject(rejection)
        logger.debug("[checkout %s] scanned %s, running total %.2f", self.station_id, product.name, running_total)
        self.events.on_scan(
            station_id=self.station_id, product_id=product.product_id, price=product.price, running_total=running_total
        )
        return True

    def process_payment(self) -> bool:
        """Settle the transaction through the ledger.

        Requires a customer, at least one item and every item scanned. On any
        failure nothing changes: items stay RESERVED and the total is kept.

        The ledger is called without the station lock held, since its event
        handlers may read this station. While the sale settles the station
        refuses new items and abandonment.
        """
        with self._lock:
            customer = self._customer
            if customer is None:
                rejection = Rejection("no_customer", "no customer at the station")
            elif self._paying:
                rejection = Rejection("payment_in_progress", f"{customer.customer_id} is already paying")
            elif not self._items:
                rejection = Rejection("no_items", "no items at the station")
            elif not all(p.product_id in self._scanned for p in self._items):
                rejection = Rejection(
                    "not_all_scanned", f"{len(self._scanned)}/{len(self._items)} items scanned"
                )
            else:
                total = self._running_total
                bought = list(self._items)
                self._paying = True
                rejection = None
        if rejection is not None:
            return self._reject(rejection)

        try:
            recorded = self.ledger.record_sale(total, customer.compute_satisfaction())
        except Exception:
            with self._lock:
                self._paying = False
            raise

        with self._lock:
            self._paying = False
            if recorded:
                for p in bought:
                    p.mark_purchased(customer.customer_id)
                self._clear()
                self.served_count += 1
        if not recorded:
            return self._reject(Rejection("ledger_refused", f"ledger refused a sale of {total:.2f}"))
        items = len(bought)

        logger.info("[checkout %s] %s paid %.2f for %d items", self.station_id, customer.customer_id, total, items)
        customer.on_checkout_complete(self.station_id, total)
        self.events.on_purchase_success(
            station_id=self.station_id, customer_id=customer.customer_id, total=total, items=items
        )
        return True

    def abandon(self, customer_id: str) -> bool:
        """Drop a customer who leaves without paying.

        Removes them from the queue and, if they were being served, forfeits
        every placed item and resets the station to IDLE.
        """
        changed = self.leave_queue(customer_id)
        with self._lock:
            if self._customer is None or self._customer.customer_id != customer_id:
                return changed
            if self._paying:
                rejection = Rejection("payment_in_progress", f"{customer_id} cannot leave while paying")
            else:
                rejection = None
                forfeited = len(self._items)
                for p in self._items:
                    p.forfeit()
                self._clear()
        if rejection is not None:
            return self._reject(rejection)
        logger.warning(
            "[checkout %s] %s abandoned the checkout, %d items forfeited", self.station_id, customer_id, forfeited
        )
        return True

    def _clear(self) -> None:
        # Caller holds the lock.
        self._customer = None
        self._items = []
        self._scanned = set()
        self._running_total = 0.0
        self._paying = False

    def _reject(self, rejection: Rejection) -> bool:
        rejection.log(logger, f"checkout {self.station_id}")
        self.events.on_rejected(f"checkout.{self.station_id}", rejection)
        return False
