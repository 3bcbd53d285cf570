from __future__ import annotations

# Shelf slot: a single-capacity display resource.
#
# All state changes happen under the slot's own lock, so two shoppers can
# never both walk away with the same product: whoever reaches the
# check-and-set first wins, the other sees an empty slot.

import logging
import threading
from typing import Callable

from .errors import Rejection
from .events import EventBus
from .products import Product, ProductState

logger = logging.getLogger(__name__)

Point = tuple[float, float]

# Decides, while the slot is locked, whether a customer takes the product.
AcceptPredicate = Callable[[Product], bool]


class ShelfSlot:
    def __init__(
        self,
        slot_id: str,
        *,
        accepts: str | None = None,
        position: Point = (0.0, 0.0),
        events: EventBus | None = None,
    ) -> None:
        self.slot_id = slot_id
        self.accepts = accepts
        self.position = position
        self.events = events or EventBus()
        self._occupant: Product | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ShelfSlot({self.slot_id!r}, occupant={self._occupant!r})"

    @property
    def occupant(self) -> Product | None:
        return self._occupant

    @property
    def is_empty(self) -> bool:
        return self._occupant is None

    def acquire(self, product: Product | None) -> bool:
        """Put an AVAILABLE product into this slot."""
        if product is None:
            return self._reject(Rejection("null_product", f"cannot place nothing on {self.slot_id}"))
        with self._lock:
            if self._occupant is not None:
                rejection = Rejection(
                    "slot_occupied", f"{self.slot_id} already holds product {self._occupant.product_id}"
                )
            elif self.accepts is not None and product.product_type != self.accepts:
                rejection = Rejection(
                    "type_mismatch", f"{self.slot_id} accepts {self.accepts}, got {product.product_type}"
                )
            elif product.state is not ProductState.AVAILABLE:
                rejection = Rejection(
                    "product_unavailable", f"product {product.product_id} is {product.state.value}"
                )
            else:
                product.place_on_shelf(self.slot_id)
                self._occupant = product
                rejection = None
        if rejection is not None:
            return self._reject(rejection)
        logger.debug("[shelf %s] stocked %s (%.2f)", self.slot_id, product.name, product.price)
        return True

    def release(self) -> Product | None:
        """Empty the slot, returning the product to AVAILABLE. No-op when empty."""
        with self._lock:
            product = self._occupant
            if product is None:
                return None
            self._occupant = None
            product.remove_from_shelf()
        logger.debug("[shelf %s] released product %d", self.slot_id, product.product_id)
        return product

    def transfer_to_customer(self, customer_id: str, accept: AcceptPredicate | None = None) -> Product | None:
        """Atomically hand the occupant to a customer.

        `accept` runs inside the lock so the afford/want decision and the
        ownership change cannot be split by another shopper. Returns the
        product now RESERVED by `customer_id`, or None if nothing changed.
        """
        with self._lock:
            product = self._occupant
            if product is None:
                logger.debug("[shelf %s] %s found the slot empty", self.slot_id, customer_id)
                return None
            if accept is not None and not accept(product):
                return None
            if not product.reserve(customer_id):
                rejection = Rejection(
                    "product_unavailable", f"product {product.product_id} is {product.state.value}"
                )
            else:
                self._occupant = None
                rejection = None
        if rejection is not None:
            self._reject(rejection)
            return None
        logger.info("[shelf %s] %s took %s (%.2f)", self.slot_id, customer_id, product.name, product.price)
        return product

    def _reject(self, rejection: Rejection) -> bool:
        rejection.log(logger, f"shelf {self.slot_id}")
        self.events.on_rejected(f"shelf.{self.slot_id}", rejection)
        return False
