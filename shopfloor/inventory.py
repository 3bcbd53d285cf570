from __future__ import annotations

# Back-room inventory.
#
# Stock is kept as AVAILABLE product units, grouped by catalog name. The shop
# buys into it at wholesale cost (list price x restock multiplier) through the
# ledger, and the restocker draws units from it to fill shelf slots. Price
# changes go through here so the catalog and the units in the back room agree.
# Units already on a shelf keep their price tag.

import logging
import threading

from .errors import Rejection
from .ledger import Ledger
from .products import Catalog, Product, ProductSpec, ProductState, validate_price

logger = logging.getLogger(__name__)


class Inventory:
    def __init__(self, ledger: Ledger, catalog: Catalog | None = None, *, multiplier: float = 0.7) -> None:
        if multiplier <= 0:
            raise ValueError("multiplier must be > 0")
        self.ledger = ledger
        self.catalog = catalog or Catalog()
        self.multiplier = multiplier
        self._stock: dict[str, list[Product]] = {}
        self._lock = threading.Lock()

    # -------------------- views --------------------

    def get_product_count(self, name: str) -> int:
        with self._lock:
            return len(self._stock.get(name, ()))

    def has_product(self, name: str, amount: int = 1) -> bool:
        return amount > 0 and self.get_product_count(name) >= amount

    @property
    def total_count(self) -> int:
        with self._lock:
            return sum(len(units) for units in self._stock.values())

    @property
    def unique_count(self) -> int:
        with self._lock:
            return sum(1 for units in self._stock.values() if units)

    def is_empty(self) -> bool:
        return self.total_count == 0

    def status(self) -> dict[str, int]:
        with self._lock:
            return {name: len(units) for name, units in self._stock.items() if units}

    def restock_cost(self, spec: ProductSpec, amount: int = 1) -> float:
        return self.ledger.calculate_restock_cost(amount, spec.price, self.multiplier)

    def has_sufficient_funds_for_restock(self, spec: ProductSpec, amount: int = 1) -> bool:
        return amount > 0 and self.ledger.has_sufficient_funds(self.restock_cost(spec, amount))

    # -------------------- stock changes --------------------

    def add_product(self, spec: ProductSpec, amount: int = 1, *, cost_price: float = 0.0) -> bool:
        """Put `amount` new units of `spec` in the back room without paying for them."""
        if amount <= 0:
            return self._reject(Rejection("invalid_quantity", f"cannot add {amount} x {spec.name}"))
        units = [self.catalog.mint(spec, cost_price=cost_price) for _ in range(amount)]
        with self._lock:
            self._stock.setdefault(spec.name, []).extend(units)
            count = len(self._stock[spec.name])
        logger.debug("[inventory] +%d %s (now %d)", amount, spec.name, count)
        return True

    def purchase(self, spec: ProductSpec, amount: int = 1) -> bool:
        """Buy `amount` units of `spec` at wholesale cost."""
        if amount <= 0:
            return self._reject(Rejection("invalid_quantity", f"cannot buy {amount} x {spec.name}"))
        cost = self.restock_cost(spec, amount)
        if not self.ledger.has_sufficient_funds(cost):
            return self._reject(
                Rejection(
                    "insufficient_funds",
                    f"{amount} x {spec.name} costs {cost:.2f}, have {self.ledger.money:.2f}",
                )
            )
        if not self.ledger.subtract_money(cost, f"restock {amount} x {spec.name}"):
            return False
        self.add_product(spec, amount, cost_price=cost / amount)
        logger.info("[inventory] bought %d %s for %.2f", amount, spec.name, cost)
        return True

    def take(self, name: str) -> Product | None:
        """Hand out one back-room unit of `name` (oldest first)."""
        with self._lock:
            units = self._stock.get(name)
            if not units:
                return None
            return units.pop(0)

    def put_back(self, product: Product) -> bool:
        """Return a unit that was taken but not shelved."""
        if product.state is not ProductState.AVAILABLE:
            return self._reject(
                Rejection("product_unavailable", f"product {product.product_id} is {product.state.value}")
            )
        with self._lock:
            units = self._stock.setdefault(product.name, [])
            if any(u.product_id == product.product_id for u in units):
                return False
            units.insert(0, product)
        return True

    def remove_product(self, name: str, amount: int = 1) -> bool:
        """Write off `amount` units of `name`; nothing changes if there are fewer."""
        with self._lock:
            units = self._stock.get(name, [])
            if amount <= 0 or len(units) < amount:
                rejection = Rejection("insufficient_stock", f"have {len(units)} x {name}, asked to remove {amount}")
            else:
                removed, self._stock[name] = units[:amount], units[amount:]
                rejection = None
        if rejection is not None:
            return self._reject(rejection)
        for p in removed:
            p.forfeit()
        logger.info("[inventory] wrote off %d %s", amount, name)
        return True

    # -------------------- pricing --------------------

    def update_price(self, name: str, new_price: float) -> bool:
        if not validate_price(new_price):
            return self._reject(Rejection("invalid_price", f"{name}: {new_price!r} is not a valid price"))
        if self.catalog.update_price(name, new_price) is None:
            return False
        with self._lock:
            units = list(self._stock.get(name, ()))
        for p in units:
            p.update_price(new_price)
        return True

    def _reject(self, rejection: Rejection) -> bool:
        rejection.log(logger, "inventory")
        self.ledger.events.on_rejected("inventory", rejection)
        return False
