from __future__ import annotations

# Restocking: refill empty shelf slots from the back room. When the back room
# is out of what a slot needs, a batch is bought first; a slot stays empty if
# the shop cannot pay for that batch.

import logging
from collections.abc import Iterable

from .inventory import Inventory
from .ledger import Ledger
from .products import Product, ProductSpec
from .shelf import ShelfSlot

logger = logging.getLogger(__name__)


class Restocker:
    def __init__(self, inventory: Inventory, *, batch_size: int = 1) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self.inventory = inventory
        self.batch_size = batch_size
        self._rotation = 0

    @property
    def ledger(self) -> Ledger:
        return self.inventory.ledger

    def restock_slot(self, slot: ShelfSlot, spec: ProductSpec | None = None) -> Product | None:
        if not slot.is_empty:
            return None
        if spec is None:
            spec = self.inventory.catalog.spec_for(slot.accepts, self._rotation)
            self._rotation += 1

        if not self.inventory.has_product(spec.name):
            if not self.inventory.purchase(spec, self.batch_size):
                return None

        product = self.inventory.take(spec.name)
        if product is None:
            return None
        if not slot.acquire(product):
            self.inventory.put_back(product)
            return None
        logger.debug("[restock] %s -> %s", spec.name, slot.slot_id)
        return product

    def restock_empty(self, shelves: Iterable[ShelfSlot]) -> int:
        """Fill every empty slot that stock or money allows. Returns how many were filled."""
        filled = 0
        for slot in shelves:
            if slot.is_empty and self.restock_slot(slot) is not None:
                filled += 1
        if filled:
            logger.info(
                "[restock] filled %d slots (money=%.2f, back room=%d)",
                filled,
                self.ledger.money,
                self.inventory.total_count,
            )
        return filled
