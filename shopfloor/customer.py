from __future__ import annotations

# Customer agent.
#
# Lifecycle, strictly forward:
#   ENTERING -> SHOPPING -> PURCHASING -> LEAVING -> (finished, removed)
#
# `run()` is a generator driven by the simulation scheduler. Each `yield`
# hands back a delay in simulated time-units (0.0 = "next tick"); the agent
# never blocks. Anyone may call `force_leave()` between two resumptions: it
# releases the checkout synchronously and switches the state to LEAVING, and
# the running phase notices the new state on its next resumption and returns.

import logging
import random
import threading
from collections.abc import Generator, Sequence
from dataclasses import dataclass
from enum import Enum

from .checkout import CheckoutStation
from .clock import SimulationClock
from .events import CUSTOMER_LEFT, EventBus
from .movement import MovementProvider, Point
from .products import Product
from .shelf import ShelfSlot
from .stations import StationRegistry

logger = logging.getLogger(__name__)

SATISFACTION_BASE = 0.7
SATISFACTION_PURCHASE_BONUS = 0.2
SATISFACTION_THRIFT_BONUS = 0.1
SATISFACTION_THRIFT_RATIO = 0.8
SATISFACTION_NOISE = 0.1


class CustomerState(str, Enum):
    ENTERING = "entering"
    SHOPPING = "shopping"
    PURCHASING = "purchasing"
    LEAVING = "leaving"


_ORDER = {s: i for i, s in enumerate(CustomerState)}


@dataclass(frozen=True)
class CustomerTiming:
    """Behaviour timings shared by every agent of a run (simulated time-units)."""

    product_check_interval: float = 3.0
    shelf_switch_probability: float = 0.3
    scan_seconds: float = 1.0
    payment_seconds: float = 2.0
    entering_timeout: float = 30.0
    queue_wait_timeout: float = 60.0
    purchasing_timeout: float = 120.0
    leaving_timeout: float = 45.0
    closing_hurry_factor: float = 0.7


class CustomerAgent:
    def __init__(
        self,
        customer_id: str,
        *,
        budget: float,
        purchase_probability: float,
        shopping_time: float,
        shelves: Sequence[ShelfSlot],
        stations: StationRegistry | None,
        movement: MovementProvider | None,
        clock: SimulationClock,
        exit_point: Point = (0.0, 0.0),
        spending_power: float | None = None,
        timing: CustomerTiming | None = None,
        events: EventBus | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if budget < 0:
            raise ValueError("budget must be >= 0")
        if not 0.0 <= purchase_probability <= 1.0:
            raise ValueError("purchase_probability must be in [0, 1]")
        if spending_power is not None and spending_power < 0:
            raise ValueError("spending_power must be >= 0")

        self.customer_id = customer_id
        self.budget = float(budget)
        self.spending_power = float(spending_power if spending_power is not None else budget)
        self.purchase_probability = purchase_probability
        self.shopping_time = shopping_time

        self.shelves = list(shelves)
        self.stations = stations
        self.movement = movement
        self.clock = clock
        self.exit_point = exit_point
        self.timing = timing or CustomerTiming()
        self.events = events or clock.ledger.events
        self.rng = rng or random.Random()

        self.state = CustomerState.ENTERING
        self.selected_items: list[Product] = []
        self.total_spend = 0.0
        self.target_shelf: ShelfSlot | None = None
        self.station: CheckoutStation | None = None
        self.satisfaction: float | None = None
        self.amount_paid = 0.0
        self.paid = False
        self.finished = False
        self.leave_reason: str | None = None
        self.forfeited_count = 0

        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"CustomerAgent({self.customer_id!r}, state={self.state.value}, items={len(self.selected_items)})"

    # -------------------- decisions --------------------

    @property
    def remaining_budget(self) -> float:
        """What is left to spend: the budget, capped by spending power."""
        return min(self.budget, self.spending_power) - self.total_spend

    def can_afford(self, product: Product | None) -> bool:
        if product is None:
            return False
        return product.price <= self.remaining_budget

    def wants_product(self, product: Product | None) -> bool:
        if product is None or product.is_purchased or not product.is_on_shelf:
            return False
        roll = self.rng.random()
        wants = roll <= self.purchase_probability
        logger.debug(
            "[customer %s] roll %.3f vs probability %.3f -> wants=%s",
            self.customer_id,
            roll,
            self.purchase_probability,
            wants,
        )
        return wants

    def try_select(self, shelf: ShelfSlot | None = None) -> Product | None:
        """Try to take the product of `shelf` (default: the current target).

        The budget check, the want roll and the shelf hand-over happen while
        both this agent and the slot are locked, so two selection attempts by
        the same agent can never overspend the budget together.
        """
        shelf = shelf or self.target_shelf
        if shelf is None:
            return None
        with self._lock:
            product = shelf.transfer_to_customer(
                self.customer_id, accept=lambda p: self.can_afford(p) and self.wants_product(p)
            )
            if product is None:
                return None
            self.selected_items.append(product)
            self.total_spend += product.price
        logger.info(
            "[customer %s] selected %s for %.2f (total %.2f of %.2f)",
            self.customer_id,
            product.name,
            product.price,
            self.total_spend,
            self.budget,
        )
        return product

    def compute_satisfaction(self) -> float:
        """Score the visit once; later calls return the recorded score."""
        if self.satisfaction is not None:
            return self.satisfaction
        bought = sum(1 for p in self.selected_items if p.is_purchased or p.is_reserved_by(self.customer_id))
        score = SATISFACTION_BASE
        if bought >= 1:
            score += SATISFACTION_PURCHASE_BONUS
        if self.total_spend <= SATISFACTION_THRIFT_RATIO * self.budget:
            score += SATISFACTION_THRIFT_BONUS
        score += self.rng.uniform(-SATISFACTION_NOISE, SATISFACTION_NOISE)
        self.satisfaction = min(1.0, max(0.0, score))
        return self.satisfaction

    def on_checkout_complete(self, station_id: str, total: float) -> None:
        self.paid = True
        self.amount_paid = total
        logger.info("[customer %s] paid %.2f at %s", self.customer_id, total, station_id)

    # -------------------- state machine --------------------

    def transition(self, new_state: CustomerState, reason: str) -> bool:
        old = self.state
        if _ORDER[new_state] <= _ORDER[old]:
            logger.warning(
                "[customer %s] refused transition %s -> %s (%s)", self.customer_id, old.value, new_state.value, reason
            )
            return False
        self.state = new_state
        if new_state is CustomerState.LEAVING:
            self.leave_reason = reason
        logger.info("[customer %s] %s -> %s (%s)", self.customer_id, old.value, new_state.value, reason)
        self.events.on_state_changed(customer_id=self.customer_id, old=old.value, new=new_state.value, reason=reason)
        return True

    def force_leave(self, reason: str) -> bool:
        """Abort the visit: free the checkout now, then switch to LEAVING."""
        if self.finished or self.state is CustomerState.LEAVING:
            return False
        self._release_checkout()
        return self.transition(CustomerState.LEAVING, reason)

    def _release_checkout(self) -> None:
        if self.station is not None and not self.paid:
            self.station.abandon(self.customer_id)

    def _forfeit_unpurchased(self) -> None:
        unpaid = [p for p in self.selected_items if not p.is_purchased]
        for p in unpaid:
            p.forfeit()
        self.forfeited_count += len(unpaid)
        if unpaid:
            logger.info("[customer %s] left %d unpurchased items behind", self.customer_id, len(unpaid))

    # -------------------- lifecycle --------------------

    def run(self) -> Generator[float, None, None]:
        if self.movement is None:
            logger.error("[customer %s] no movement provider, aborting visit", self.customer_id)
            self.force_leave("no movement provider")
        else:
            yield from self._entering()
            yield from self._shopping()
            yield from self._purchasing()
        yield from self._leaving()

    def _walk_to(self, point: Point, *, timeout: float, phase: CustomerState) -> Generator[float, None, bool]:
        assert self.movement is not None
        if not self.movement.request_destination(point):
            return False
        started = self.clock.now
        while not self.movement.has_arrived():
            if self.state is not phase:
                return False
            if self.clock.now - started > timeout:
                logger.warning("[customer %s] gave up walking to %s after %.1f", self.customer_id, point, timeout)
                return False
            yield 0.0
        return True

    def _pick_shelf(self, exclude: ShelfSlot | None = None) -> ShelfSlot | None:
        choices = [s for s in self.shelves if s is not exclude] or self.shelves
        if not choices:
            return None
        return self.rng.choice(choices)

    def _entering(self) -> Generator[float, None, None]:
        if self.state is not CustomerState.ENTERING:
            return
        shelf = self._pick_shelf()
        if shelf is None:
            self.transition(CustomerState.LEAVING, "no shelves")
            return
        self.target_shelf = shelf
        arrived = yield from self._walk_to(
            shelf.position, timeout=self.timing.entering_timeout, phase=CustomerState.ENTERING
        )
        if self.state is not CustomerState.ENTERING:
            return
        if not arrived:
            self.force_leave("could not reach a shelf")
            return
        self.transition(CustomerState.SHOPPING, f"arrived at {shelf.slot_id}")

    def _shopping(self) -> Generator[float, None, None]:
        if self.state is not CustomerState.SHOPPING:
            return
        assert self.movement is not None
        started = self.clock.now
        last_check = started
        at_shelf = True

        while self.state is CustomerState.SHOPPING:
            now = self.clock.now
            if not self.clock.is_store_open:
                self.force_leave("store closed")
                return

            target = self.shopping_time
            if self.clock.closing_soon:
                target *= self.timing.closing_hurry_factor
            if now - started >= target:
                self.transition(CustomerState.PURCHASING, f"shopped for {now - started:.1f}")
                return

            if not at_shelf and self.movement.has_arrived():
                at_shelf = True
                last_check = now

            if at_shelf and now - last_check >= self.timing.product_check_interval:
                last_check = now
                self.try_select()
                if len(self.shelves) > 1 and self.rng.random() < self.timing.shelf_switch_probability:
                    shelf = self._pick_shelf(exclude=self.target_shelf)
                    if shelf is not None and self.movement.request_destination(shelf.position):
                        self.target_shelf = shelf
                        at_shelf = False
                        logger.debug("[customer %s] heading to %s", self.customer_id, shelf.slot_id)

            yield 0.0

    def _purchasing(self) -> Generator[float, None, None]:
        if self.state is not CustomerState.PURCHASING:
            return
        started = self.clock.now

        if not self.selected_items:
            self.transition(CustomerState.LEAVING, "nothing to buy")
            return

        station = self.stations.choose() if self.stations is not None else None
        if station is None:
            logger.error("[customer %s] no checkout station available", self.customer_id)
            self.force_leave("no checkout station")
            return
        self.station = station

        arrived = yield from self._walk_to(
            station.position, timeout=self.timing.purchasing_timeout, phase=CustomerState.PURCHASING
        )
        if self.state is not CustomerState.PURCHASING:
            return
        if not arrived:
            self.force_leave("could not reach checkout")
            return

        position = station.join_queue(self.customer_id, len(self.selected_items))
        logger.info("[customer %s] queued at %s (position %d)", self.customer_id, station.station_id, position)
        waiting_since = self.clock.now
        while not station.accept(self):
            now = self.clock.now
            if now - waiting_since > self.timing.queue_wait_timeout or now - started > self.timing.purchasing_timeout:
                self.force_leave("checkout wait timeout")
                return
            yield 0.0
            if self.state is not CustomerState.PURCHASING:
                return

        for p in list(self.selected_items):
            if not station.place_item(p):
                self.force_leave("could not place items")
                return

        for p in list(self.selected_items):
            yield self.timing.scan_seconds
            if self.state is not CustomerState.PURCHASING:
                return
            station.scan(p)

        yield self.timing.payment_seconds
        if self.state is not CustomerState.PURCHASING:
            return
        if not station.process_payment():
            self.force_leave("payment failed")
            return
        self.transition(CustomerState.LEAVING, "transaction complete")

    def _leaving(self) -> Generator[float, None, None]:
        if self.finished:
            return
        started = self.clock.now
        if self.movement is not None and self.movement.request_destination(self.exit_point):
            while not self.movement.has_arrived():
                if self.clock.now - started > self.timing.leaving_timeout:
                    logger.warning("[customer %s] leaving timed out, removing", self.customer_id)
                    break
                yield 0.0
        else:
            logger.warning("[customer %s] no way to the exit, removing immediately", self.customer_id)

        self._forfeit_unpurchased()
        self.finished = True
        self.events.emit(
            CUSTOMER_LEFT,
            customer_id=self.customer_id,
            paid=self.paid,
            amount=self.amount_paid,
            items=len(self.selected_items),
            forfeited=self.forfeited_count,
            reason=self.leave_reason,
        )
