from __future__ import annotations

# Customer spawner.
#
# Customers arrive according to a Poisson process with rate λ (customers per
# time-unit): inter-arrival times are exponential with mean 1/λ. The spawner
# only says *when* someone arrives and whether there is room for them; the
# simulation builds the agent.
#
# Arrivals are turned away when:
# - the store is closed
# - `max_customers` shoppers are already inside
# - the ledger has served `max_daily_customers` today

import logging
import random

from .arrival import sample_exponential_interarrival
from .clock import SimulationClock
from .ledger import Ledger

logger = logging.getLogger(__name__)


class CustomerSpawner:
    def __init__(
        self,
        *,
        rate: float,
        clock: SimulationClock,
        ledger: Ledger,
        max_customers: int,
        rng: random.Random | None = None,
        name_prefix: str = "Cust",
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be > 0")
        if max_customers <= 0:
            raise ValueError("max_customers must be > 0")
        self.rate = rate
        self.clock = clock
        self.ledger = ledger
        self.max_customers = max_customers
        self.rng = rng or random.Random()
        self.name_prefix = name_prefix

        self.spawned = 0
        self.turned_away = 0
        self._next_arrival = clock.now + sample_exponential_interarrival(rate=rate, rng=self.rng)

    @property
    def next_arrival(self) -> float:
        return self._next_arrival

    def reset(self) -> None:
        """Restart the arrival stream from the current time (e.g. at opening)."""
        self._next_arrival = self.clock.now + sample_exponential_interarrival(rate=self.rate, rng=self.rng)

    def can_spawn(self, active_customers: int) -> bool:
        if not self.clock.is_store_open:
            return False
        if active_customers >= self.max_customers:
            logger.debug("[spawner] at capacity (%d/%d)", active_customers, self.max_customers)
            return False
        if not self.ledger.can_serve_more_today():
            logger.debug("[spawner] daily customer limit reached (%d)", self.ledger.max_daily_customers)
            return False
        return True

    def poll(self, active_customers: int) -> list[str]:
        """Return the ids of customers arriving by now that may come in."""
        arrivals: list[str] = []
        now = self.clock.now
        while self._next_arrival <= now:
            self._next_arrival += sample_exponential_interarrival(rate=self.rate, rng=self.rng)
            if not self.can_spawn(active_customers + len(arrivals)):
                self.turned_away += 1
                continue
            self.spawned += 1
            arrivals.append(f"{self.name_prefix}{self.spawned}")
        return arrivals
