from __future__ import annotations

# Headless shop simulation.
#
# One `ShopSimulation` owns the ledger, the clock, the shelves, the stations
# and every active customer. `tick()` advances simulated time by one step:
#
#   1. the clock moves (may close a day, open or close the store)
#   2. the spawner lets newly arrived customers in
#   3. every agent whose wake-up time has come is resumed once
#
# Agents are generators (see CustomerAgent.run); a yielded float is how long
# the agent sleeps before its next resumption.

import logging
import random
from collections.abc import Generator
from dataclasses import asdict, dataclass, field
from typing import Any

from .arrival import sample_visit_profile
from .checkout import CheckoutStation
from .clock import SimulationClock
from .config import SimulationConfig
from .customer import CustomerAgent
from .events import CUSTOMER_SPAWNED, DAY_ADVANCED, EventBus
from .inventory import Inventory
from .ledger import DayReport, Ledger, LedgerSnapshot
from .movement import MovementFactory, Point, TimedMovement
from .products import Catalog
from .restock import Restocker
from .shelf import ShelfSlot
from .spawner import CustomerSpawner
from .stations import StationRegistry

logger = logging.getLogger(__name__)

ENTRANCE: Point = (0.0, 0.0)


class AgentTask:
    """A customer process plus the simulated time it next wants to run."""

    def __init__(self, agent: CustomerAgent, *, now: float) -> None:
        self.agent = agent
        self.process: Generator[float, None, None] = agent.run()
        self.wake_at = now
        self.done = False

    def resume(self, now: float) -> bool:
        """Run the agent up to its next yield. Returns True once it has finished."""
        if self.done:
            return True
        try:
            delay = next(self.process)
        except StopIteration:
            self.done = True
            return True
        self.wake_at = now + max(0.0, float(delay))
        return False


@dataclass
class SimulationSummary:
    days_completed: int = 0
    customers_spawned: int = 0
    customers_paid: int = 0
    customers_abandoned: int = 0
    customers_empty_handed: int = 0
    items_sold: int = 0
    items_forfeited: int = 0
    revenue: float = 0.0
    elapsed: float = 0.0
    ledger: LedgerSnapshot | None = None
    day_reports: list[DayReport] = field(default_factory=list)

    def to_message(self) -> dict[str, Any]:
        msg = asdict(self)
        msg["ledger"] = self.ledger.to_message() if self.ledger is not None else None
        return msg


def shelf_position(index: int) -> Point:
    """Shelves stand in rows of four, three units apart."""
    return (2.0 + (index % 4) * 3.0, 4.0 + (index // 4) * 3.0)


def station_position(index: int) -> Point:
    return (2.0 + index * 3.0, 1.0)


class ShopSimulation:
    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        events: EventBus | None = None,
        movement_factory: MovementFactory | None = None,
        catalog: Catalog | None = None,
    ) -> None:
        self.config = (config or SimulationConfig()).validate()
        cfg = self.config
        self.events = events or EventBus()
        self.rng = random.Random(cfg.seed)

        self.ledger = Ledger(
            starting_money=cfg.starting_money,
            starting_reputation=cfg.starting_reputation,
            rent=cfg.rent,
            utilities=cfg.utilities,
            max_daily_customers=cfg.max_daily_customers,
            events=self.events,
        )
        self.clock = SimulationClock(
            self.ledger,
            day_length=cfg.day_length,
            start_hour=cfg.start_hour,
            open_hour=cfg.open_hour,
            close_hour=cfg.close_hour,
        )

        self.shelves = [
            ShelfSlot(f"shelf-{i + 1}", position=shelf_position(i), events=self.events) for i in range(cfg.num_shelves)
        ]
        self.stations = StationRegistry(
            [
                CheckoutStation(f"checkout-{i + 1}", self.ledger, position=station_position(i), events=self.events)
                for i in range(cfg.num_stations)
            ],
            payment_seconds=cfg.payment_seconds,
            scan_seconds=cfg.scan_seconds,
        )
        self.inventory = Inventory(self.ledger, catalog, multiplier=cfg.restock_multiplier)
        if cfg.starting_stock:
            for spec in self.inventory.catalog.specs:
                self.inventory.add_product(spec, cfg.starting_stock)
        self.restocker = Restocker(self.inventory, batch_size=cfg.restock_batch_size)
        self.spawner = CustomerSpawner(
            rate=cfg.arrival_rate,
            clock=self.clock,
            ledger=self.ledger,
            max_customers=cfg.max_customers,
            rng=self.rng,
        )
        self.movement_factory = movement_factory or self._timed_movement
        self.timing = cfg.customer_timing()

        self.tasks: list[AgentTask] = []
        self._summary = SimulationSummary()

        self.events.subscribe(self._on_event)
        self.clock.add_store_listener(self._on_store_change)

        if cfg.auto_restock:
            self.restocker.restock_empty(self.shelves)

    # -------------------- wiring --------------------

    def _timed_movement(self, customer_id: str) -> TimedMovement:
        return TimedMovement(now=lambda: self.clock.now, speed=self.config.walking_speed, start=ENTRANCE)

    def _on_event(self, kind: str, msg: dict[str, Any]) -> None:
        if kind == DAY_ADVANCED:
            r = msg["report"]
            self._summary.day_reports.append(DayReport(**r))
            self._summary.days_completed += 1

    def _on_store_change(self, is_open: bool) -> None:
        if is_open:
            self.spawner.reset()
            if self.config.auto_restock:
                self.restocker.restock_empty(self.shelves)
            return
        for agent in self.active_customers:
            agent.force_leave("store closed")

    # -------------------- views --------------------

    @property
    def active_customers(self) -> list[CustomerAgent]:
        return [t.agent for t in self.tasks if not t.done]

    # -------------------- driving --------------------

    def spawn_customer(self, customer_id: str) -> CustomerAgent:
        cfg = self.config
        profile = sample_visit_profile(
            budget_range=cfg.budget_range,
            purchase_probability_range=cfg.purchase_probability_range,
            shopping_time_range=cfg.shopping_time_range,
            rng=self.rng,
        )
        agent = CustomerAgent(
            customer_id,
            budget=profile.budget,
            purchase_probability=profile.purchase_probability,
            shopping_time=profile.shopping_time,
            shelves=self.shelves,
            stations=self.stations,
            movement=self.movement_factory(customer_id),
            clock=self.clock,
            exit_point=ENTRANCE,
            timing=self.timing,
            events=self.events,
            rng=random.Random(self.rng.random()),
        )
        self.tasks.append(AgentTask(agent, now=self.clock.now))
        self._summary.customers_spawned += 1
        logger.info(
            "[sim] %s arrives at %s (budget=%.2f, p=%.2f)",
            customer_id,
            self.clock.formatted_time,
            profile.budget,
            profile.purchase_probability,
        )
        self.events.emit(
            CUSTOMER_SPAWNED,
            customer_id=customer_id,
            budget=profile.budget,
            purchase_probability=profile.purchase_probability,
            time=self.clock.formatted_time,
        )
        return agent

    def tick(self) -> None:
        self.clock.advance(self.config.tick)

        for customer_id in self.spawner.poll(len(self.active_customers)):
            self.spawn_customer(customer_id)

        now = self.clock.now
        for task in list(self.tasks):
            if task.done or task.wake_at > now:
                continue
            if task.resume(now):
                self._retire(task.agent)
        self.tasks = [t for t in self.tasks if not t.done]

    def _retire(self, agent: CustomerAgent) -> None:
        s = self._summary
        s.items_forfeited += agent.forfeited_count
        if agent.paid:
            s.customers_paid += 1
            s.items_sold += len(agent.selected_items)
            s.revenue += agent.amount_paid
        elif agent.selected_items:
            s.customers_abandoned += 1
        else:
            s.customers_empty_handed += 1

    def run(self, *, duration: float | None = None, days: int | None = None) -> SimulationSummary:
        """Tick until `duration` time-units have passed or `days` days have closed."""
        if duration is None and days is None:
            days = 1
        if duration is not None and duration < 0:
            raise ValueError("duration must be >= 0")
        if days is not None and days < 0:
            raise ValueError("days must be >= 0")

        start_time = self.clock.now
        start_days = self._summary.days_completed
        logger.info("[sim] run started at day %d %s", self.ledger.day, self.clock.formatted_time)
        while True:
            if duration is not None and self.clock.now - start_time >= duration:
                break
            if days is not None and self._summary.days_completed - start_days >= days:
                break
            self.tick()
        return self.summary()

    def summary(self) -> SimulationSummary:
        s = self._summary
        s.elapsed = self.clock.now
        s.ledger = self.ledger.snapshot()
        return SimulationSummary(
            days_completed=s.days_completed,
            customers_spawned=s.customers_spawned,
            customers_paid=s.customers_paid,
            customers_abandoned=s.customers_abandoned,
            customers_empty_handed=s.customers_empty_handed,
            items_sold=s.items_sold,
            items_forfeited=s.items_forfeited,
            revenue=s.revenue,
            elapsed=s.elapsed,
            ledger=s.ledger,
            day_reports=list(s.day_reports),
        )
