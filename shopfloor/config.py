from __future__ import annotations

# Run configuration. Every tunable of a simulation lives here with its
# default; the CLI builds one from flags and the simulation reads it.

from dataclasses import dataclass

from .customer import CustomerTiming


@dataclass(frozen=True)
class SimulationConfig:
    # Shop layout
    num_shelves: int = 8
    num_stations: int = 2

    # Scheduler
    seed: int | None = None
    tick: float = 0.5  # simulated time-units per scheduler step

    # Arrivals (Poisson process)
    arrival_rate: float = 0.1  # customers per time-unit
    max_customers: int = 8  # concurrently in the shop
    max_daily_customers: int = 50

    # Day cycle: one day lasts `day_length` time-units
    day_length: float = 300.0
    start_hour: float = 8.0
    open_hour: float = 8.0
    close_hour: float = 20.0

    # Economy
    starting_money: float = 1000.0
    starting_reputation: float = 50.0
    rent: float = 50.0
    utilities: float = 25.0
    restock_multiplier: float = 0.7
    auto_restock: bool = True
    starting_stock: int = 5  # free units per catalog entry in the back room
    restock_batch_size: int = 1  # units bought when the back room runs out

    # Customer traits, sampled uniformly per agent
    budget_range: tuple[float, float] = (50.0, 150.0)
    purchase_probability_range: tuple[float, float] = (0.5, 0.9)
    shopping_time_range: tuple[float, float] = (10.0, 30.0)
    walking_speed: float = 2.0

    # Customer behaviour
    product_check_interval: float = 3.0
    shelf_switch_probability: float = 0.3
    scan_seconds: float = 1.0
    payment_seconds: float = 2.0
    entering_timeout: float = 30.0
    queue_wait_timeout: float = 60.0
    purchasing_timeout: float = 120.0
    leaving_timeout: float = 45.0
    closing_hurry_factor: float = 0.7

    def validate(self) -> "SimulationConfig":
        if self.num_shelves < 0:
            raise ValueError("num_shelves must be >= 0")
        if self.num_stations < 0:
            raise ValueError("num_stations must be >= 0")
        if self.tick <= 0:
            raise ValueError("tick must be > 0")
        if self.arrival_rate <= 0:
            raise ValueError("arrival_rate must be > 0")
        if self.max_customers <= 0:
            raise ValueError("max_customers must be > 0")
        if self.max_daily_customers <= 0:
            raise ValueError("max_daily_customers must be > 0")
        if self.day_length <= 0:
            raise ValueError("day_length must be > 0")
        if self.walking_speed <= 0:
            raise ValueError("walking_speed must be > 0")
        if self.restock_multiplier <= 0:
            raise ValueError("restock_multiplier must be > 0")
        if self.starting_stock < 0:
            raise ValueError("starting_stock must be >= 0")
        if self.restock_batch_size <= 0:
            raise ValueError("restock_batch_size must be > 0")
        for name in ("budget_range", "purchase_probability_range", "shopping_time_range"):
            lo, hi = getattr(self, name)
            if lo < 0 or hi < lo:
                raise ValueError(f"{name} must satisfy 0 <= low <= high")
        if self.purchase_probability_range[1] > 1.0:
            raise ValueError("purchase_probability_range must lie within [0, 1]")
        if not 0.0 <= self.shelf_switch_probability <= 1.0:
            raise ValueError("shelf_switch_probability must be in [0, 1]")
        return self

    def customer_timing(self) -> CustomerTiming:
        return CustomerTiming(
            product_check_interval=self.product_check_interval,
            shelf_switch_probability=self.shelf_switch_probability,
            scan_seconds=self.scan_seconds,
            payment_seconds=self.payment_seconds,
            entering_timeout=self.entering_timeout,
            queue_wait_timeout=self.queue_wait_timeout,
            purchasing_timeout=self.purchasing_timeout,
            leaving_timeout=self.leaving_timeout,
            closing_hurry_factor=self.closing_hurry_factor,
        )
