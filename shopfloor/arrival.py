from __future__ import annotations

"""Arrival models for customer spawning.

For a Poisson arrival process with rate λ (customers per time-unit):
- The number of arrivals in a time window follows a Poisson distribution.
- The *inter-arrival times* are i.i.d. Exponential(λ).

The spawner samples the next inter-arrival time whenever a customer walks
in; each newcomer also gets its own traits (budget, patience for shopping,
how easily it is tempted) from uniform ranges.
"""

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class VisitProfile:
    budget: float
    purchase_probability: float
    shopping_time: float


def sample_exponential_interarrival(*, rate: float, rng: random.Random | None = None) -> float:
    """Sample the time-units until the next arrival of a Poisson process.

    Args:
        rate: λ, arrivals per time-unit. Must be > 0.
        rng: optional RNG (useful for deterministic tests).
    """
    if rate <= 0:
        raise ValueError("rate must be > 0")

    r = rng or random
    return float(r.expovariate(rate))


def sample_visit_profile(
    *,
    budget_range: tuple[float, float],
    purchase_probability_range: tuple[float, float],
    shopping_time_range: tuple[float, float],
    rng: random.Random | None = None,
) -> VisitProfile:
    """Draw the traits of one arriving customer, each uniform over its range."""
    r = rng or random
    return VisitProfile(
        budget=round(r.uniform(*budget_range), 2),
        purchase_probability=min(1.0, max(0.0, r.uniform(*purchase_probability_range))),
        shopping_time=r.uniform(*shopping_time_range),
    )
