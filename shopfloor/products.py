from __future__ import annotations

# Products and the catalog they are minted from.
#
# A product has exactly one owner at a time:
#   AVAILABLE  -> nobody (back room stock)
#   ON_SHELF   -> a shelf slot (`shelf_id`)
#   RESERVED   -> a customer (`holder`), picked up but not paid
#   PURCHASED  -> the customer who paid for it
#   FORFEITED  -> nobody, taken out of circulation
#
# Transitions are only made by ShelfSlot / CheckoutStation / CustomerAgent.

import itertools
import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum

logger = logging.getLogger(__name__)

# Prices above this are typos, not price tags.
MAX_PRICE = 100_000.0


def validate_price(price: float) -> bool:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return False
    return math.isfinite(price) and 0 < price <= MAX_PRICE


def calculate_profit_margin(sell_price: float, cost_price: float) -> float:
    """Profit margin in percent of the selling price.

    Without a known cost (cost_price <= 0) the whole price is margin: 100.
    """
    if cost_price <= 0:
        return 100.0
    if sell_price <= 0:
        return 0.0
    return (sell_price - cost_price) / sell_price * 100.0


class ProductState(str, Enum):
    AVAILABLE = "available"
    ON_SHELF = "on_shelf"
    RESERVED = "reserved"
    PURCHASED = "purchased"
    FORFEITED = "forfeited"


@dataclass
class Product:
    product_id: int
    name: str
    price: float
    product_type: str = "general"
    state: ProductState = ProductState.AVAILABLE
    shelf_id: str | None = None
    holder: str | None = None
    # What the shop paid for this unit; 0 when unknown.
    cost_price: float = 0.0

    @property
    def is_on_shelf(self) -> bool:
        return self.state is ProductState.ON_SHELF

    @property
    def is_purchased(self) -> bool:
        return self.state is ProductState.PURCHASED

    def is_reserved_by(self, customer_id: str) -> bool:
        return self.state is ProductState.RESERVED and self.holder == customer_id

    def place_on_shelf(self, shelf_id: str) -> bool:
        if self.state is not ProductState.AVAILABLE:
            return False
        self.state = ProductState.ON_SHELF
        self.shelf_id = shelf_id
        return True

    def remove_from_shelf(self) -> bool:
        if self.state is not ProductState.ON_SHELF:
            return False
        self.state = ProductState.AVAILABLE
        self.shelf_id = None
        return True

    def reserve(self, customer_id: str) -> bool:
        """Move the product from its shelf to a customer in one step."""
        if self.state is not ProductState.ON_SHELF:
            return False
        self.state = ProductState.RESERVED
        self.shelf_id = None
        self.holder = customer_id
        return True

    def mark_purchased(self, customer_id: str) -> bool:
        if not self.is_reserved_by(customer_id):
            return False
        self.state = ProductState.PURCHASED
        return True

    def forfeit(self) -> bool:
        if self.state is ProductState.PURCHASED:
            return False
        self.state = ProductState.FORFEITED
        self.shelf_id = None
        self.holder = None
        return True

    def update_price(self, new_price: float) -> bool:
        """Re-tag the unit. Sold or forfeited units keep their price."""
        if not validate_price(new_price):
            logger.warning("[product %d] invalid price %r for %s", self.product_id, new_price, self.name)
            return False
        if self.state in (ProductState.PURCHASED, ProductState.FORFEITED):
            return False
        old, self.price = self.price, float(new_price)
        logger.info("[product %d] %s re-priced %.2f -> %.2f", self.product_id, self.name, old, self.price)
        return True

    def profit_margin(self) -> float:
        return calculate_profit_margin(self.price, self.cost_price)


@dataclass(frozen=True)
class ProductSpec:
    """Catalog entry: what a product is before a concrete unit exists."""

    name: str
    price: float
    product_type: str = "general"


DEFAULT_CATALOG: tuple[ProductSpec, ...] = (
    ProductSpec("Miniature Box", 35.0, "miniature_box"),
    ProductSpec("Paint Pot", 6.5, "paint_pot"),
    ProductSpec("Rulebook", 28.0, "rulebook"),
    ProductSpec("Dice Set", 12.0, "general"),
    ProductSpec("Terrain Kit", 45.0, "general"),
)


@dataclass
class Catalog:
    specs: tuple[ProductSpec, ...] = DEFAULT_CATALOG
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    def __post_init__(self) -> None:
        if not self.specs:
            raise ValueError("catalog must contain at least one product spec")

    def mint(self, spec: ProductSpec, *, cost_price: float = 0.0) -> Product:
        """Create a new AVAILABLE unit of `spec`."""
        return Product(
            product_id=next(self._ids),
            name=spec.name,
            price=float(spec.price),
            product_type=spec.product_type,
            cost_price=float(cost_price),
        )

    def get(self, name: str) -> ProductSpec:
        for s in self.specs:
            if s.name == name:
                return s
        raise KeyError(f"no catalog entry named {name!r}")

    def update_price(self, name: str, new_price: float) -> ProductSpec | None:
        """Change the list price of `name`; units minted afterwards carry it."""
        if not validate_price(new_price):
            logger.warning("[catalog] invalid price %r for %s", new_price, name)
            return None
        old = self.get(name)
        new = replace(old, price=float(new_price))
        self.specs = tuple(new if s is old else s for s in self.specs)
        logger.info("[catalog] %s list price %.2f -> %.2f", name, old.price, new.price)
        return new

    def spec_for(self, product_type: str | None, index: int = 0) -> ProductSpec:
        """Pick a spec matching a slot's type constraint (any spec if unconstrained)."""
        matching = [s for s in self.specs if product_type is None or s.product_type == product_type]
        if not matching:
            raise KeyError(f"no catalog entry for product type {product_type!r}")
        return matching[index % len(matching)]
