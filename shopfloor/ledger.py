from __future__ import annotations

# The Ledger is the authoritative economic state of one simulation run.
#
# Every mutating operation validates its input first and either applies the
# whole change or nothing at all. Refusals return False and are logged; they
# are never raised. One instance is built by the simulation and handed to the
# stations, the restocker and the clock.

import logging
import math
import threading
from dataclasses import asdict, dataclass
from typing import Any

from .errors import Rejection
from .events import DAY_ADVANCED, SALE_RECORDED, EventBus

logger = logging.getLogger(__name__)

REPUTATION_MIN = 0.0
REPUTATION_MAX = 100.0

# Amounts above this are treated as corrupt input, not as a transaction.
MAX_TRANSACTION_AMOUNT = 1_000_000_000.0

# Reputation points gained per unit of satisfaction above 0.5 (lost below it).
REPUTATION_PER_SATISFACTION = 10.0


@dataclass(frozen=True)
class LedgerSnapshot:
    """The state an external save/load subsystem may persist."""

    money: float
    day: int
    reputation: float
    customers_served_today: int
    daily_revenue: float
    daily_expenses: float
    is_day_time: bool

    def to_message(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_message(cls, msg: dict[str, Any]) -> "LedgerSnapshot":
        return cls(
            money=float(msg["money"]),
            day=int(msg["day"]),
            reputation=float(msg["reputation"]),
            customers_served_today=int(msg.get("customers_served_today", 0)),
            daily_revenue=float(msg.get("daily_revenue", 0.0)),
            daily_expenses=float(msg.get("daily_expenses", 0.0)),
            is_day_time=bool(msg.get("is_day_time", True)),
        )


@dataclass(frozen=True)
class DayReport:
    """Figures of a day that has just been closed by `advance_day()`."""

    day: int
    revenue: float
    expenses: float
    fixed_costs: float
    customers_served: int
    closing_money: float


def reputation_delta(satisfaction: float) -> float:
    """Map a satisfaction score in [0, 1] to a reputation change.

    Linear around the neutral point: 0.5 -> 0, 1.0 -> +5, 0.0 -> -5.
    """
    s = min(1.0, max(0.0, satisfaction))
    return (s - 0.5) * REPUTATION_PER_SATISFACTION


def _check_amount(amount: float) -> Rejection | None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return Rejection("invalid_amount", f"amount must be a number, got {amount!r}")
    if not math.isfinite(amount):
        return Rejection("invalid_amount", f"amount must be finite, got {amount}")
    if amount <= 0:
        return Rejection("invalid_amount", f"amount must be > 0, got {amount}")
    if amount > MAX_TRANSACTION_AMOUNT:
        return Rejection("invalid_amount", f"amount {amount} exceeds {MAX_TRANSACTION_AMOUNT}")
    return None


class Ledger:
    """Money, reputation and daily metrics of the shop."""

    def __init__(
        self,
        *,
        starting_money: float = 1000.0,
        starting_reputation: float = 50.0,
        rent: float = 50.0,
        utilities: float = 25.0,
        max_daily_customers: int = 50,
        events: EventBus | None = None,
    ) -> None:
        if rent < 0 or utilities < 0:
            raise ValueError("rent and utilities must be >= 0")
        if max_daily_customers <= 0:
            raise ValueError("max_daily_customers must be > 0")

        self._lock = threading.Lock()
        self.events = events or EventBus()

        self.rent = float(rent)
        self.utilities = float(utilities)
        self.max_daily_customers = int(max_daily_customers)

        self._money = float(starting_money)
        self._reputation = min(REPUTATION_MAX, max(REPUTATION_MIN, float(starting_reputation)))
        self._day = 1
        self._daily_revenue = 0.0
        self._daily_expenses = 0.0
        self._customers_served_today = 0
        self._is_day_time = True

    # -------------------- read-only views --------------------

    @property
    def money(self) -> float:
        return self._money

    @property
    def reputation(self) -> float:
        return self._reputation

    @property
    def day(self) -> int:
        return self._day

    @property
    def daily_revenue(self) -> float:
        return self._daily_revenue

    @property
    def daily_expenses(self) -> float:
        return self._daily_expenses

    @property
    def customers_served_today(self) -> int:
        return self._customers_served_today

    @property
    def is_day_time(self) -> bool:
        return self._is_day_time

    @property
    def daily_fixed_costs(self) -> float:
        return self.rent + self.utilities

    def has_sufficient_funds(self, amount: float) -> bool:
        return amount <= self._money

    def can_serve_more_today(self) -> bool:
        return self._customers_served_today < self.max_daily_customers

    @staticmethod
    def calculate_restock_cost(quantity: int, base_price: float, multiplier: float) -> float:
        """Wholesale cost of `quantity` units priced at `base_price` retail."""
        if quantity <= 0 or base_price <= 0 or multiplier <= 0:
            return 0.0
        return float(quantity * base_price * multiplier)

    # -------------------- transactions --------------------

    def add_money(self, amount: float, source: str) -> bool:
        rejection = _check_amount(amount)
        if rejection is not None:
            return self._reject(rejection, f"add_money from {source}")
        with self._lock:
            self._money += amount
            money = self._money
        logger.info("[ledger] +%.2f from %s (money=%.2f)", amount, source, money)
        return True

    def subtract_money(self, amount: float, reason: str) -> bool:
        rejection = _check_amount(amount)
        if rejection is not None:
            return self._reject(rejection, f"subtract_money for {reason}")
        with self._lock:
            if amount > self._money:
                rejection = Rejection(
                    "insufficient_funds", f"{reason}: need {amount:.2f}, have {self._money:.2f}"
                )
            else:
                self._money -= amount
                self._daily_expenses += amount
                money = self._money
        if rejection is not None:
            return self._reject(rejection, "subtract_money")
        logger.info("[ledger] -%.2f for %s (money=%.2f)", amount, reason, money)
        return True

    def record_sale(self, amount: float, satisfaction: float) -> bool:
        rejection = _check_amount(amount)
        if rejection is None and (
            isinstance(satisfaction, bool)
            or not isinstance(satisfaction, (int, float))
            or not math.isfinite(satisfaction)
        ):
            rejection = Rejection("invalid_satisfaction", f"satisfaction must be finite, got {satisfaction!r}")
        if rejection is not None:
            return self._reject(rejection, "record_sale")

        delta = reputation_delta(satisfaction)
        with self._lock:
            self._money += amount
            self._daily_revenue += amount
            self._customers_served_today += 1
            self._apply_reputation(delta)
            served = self._customers_served_today
            reputation = self._reputation
        logger.info(
            "[ledger] sale %.2f (satisfaction=%.2f, reputation=%.1f, served today=%d)",
            amount,
            satisfaction,
            reputation,
            served,
        )
        self.events.emit(
            SALE_RECORDED, amount=amount, satisfaction=satisfaction, reputation=reputation, served_today=served
        )
        return True

    def modify_reputation(self, delta: float) -> float:
        """Shift reputation by `delta`, clamped to [0, 100]. Returns the new value."""
        if isinstance(delta, bool) or not isinstance(delta, (int, float)) or not math.isfinite(delta):
            self._reject(Rejection("invalid_delta", f"reputation delta must be finite, got {delta!r}"), "modify_reputation")
            return self._reputation
        with self._lock:
            self._apply_reputation(delta)
            return self._reputation

    def _apply_reputation(self, delta: float) -> None:
        # Caller holds the lock.
        self._reputation = min(REPUTATION_MAX, max(REPUTATION_MIN, self._reputation + delta))

    # -------------------- daily cycle --------------------

    def set_day_time(self, is_day_time: bool) -> None:
        with self._lock:
            self._is_day_time = bool(is_day_time)

    def advance_day(self) -> DayReport:
        """Close the current day: charge fixed costs and reset daily metrics.

        Fixed costs are charged even when they drive money negative; unlike
        discretionary spending they cannot be refused.
        """
        with self._lock:
            fixed = self.daily_fixed_costs
            self._money -= fixed
            report = DayReport(
                day=self._day,
                revenue=self._daily_revenue,
                expenses=self._daily_expenses + fixed,
                fixed_costs=fixed,
                customers_served=self._customers_served_today,
                closing_money=self._money,
            )
            self._day += 1
            self._daily_revenue = 0.0
            self._daily_expenses = 0.0
            self._customers_served_today = 0
            new_day = self._day
        logger.info(
            "[ledger] day %d closed: revenue=%.2f expenses=%.2f served=%d money=%.2f",
            report.day,
            report.revenue,
            report.expenses,
            report.customers_served,
            report.closing_money,
        )
        self.events.emit(DAY_ADVANCED, day=new_day, report=asdict(report))
        return report

    # -------------------- persistence boundary --------------------

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                money=self._money,
                day=self._day,
                reputation=self._reputation,
                customers_served_today=self._customers_served_today,
                daily_revenue=self._daily_revenue,
                daily_expenses=self._daily_expenses,
                is_day_time=self._is_day_time,
            )

    def restore(self, snapshot: LedgerSnapshot) -> bool:
        numbers = (snapshot.money, snapshot.reputation, snapshot.daily_revenue, snapshot.daily_expenses)
        if not all(math.isfinite(n) for n in numbers):
            return self._reject(Rejection("invalid_snapshot", "snapshot contains non-finite values"), "restore")
        if snapshot.day < 1 or snapshot.customers_served_today < 0:
            return self._reject(Rejection("invalid_snapshot", "day must be >= 1 and counters >= 0"), "restore")
        with self._lock:
            self._money = float(snapshot.money)
            self._day = int(snapshot.day)
            self._reputation = min(REPUTATION_MAX, max(REPUTATION_MIN, float(snapshot.reputation)))
            self._customers_served_today = int(snapshot.customers_served_today)
            self._daily_revenue = float(snapshot.daily_revenue)
            self._daily_expenses = float(snapshot.daily_expenses)
            self._is_day_time = bool(snapshot.is_day_time)
        return True

    def _reject(self, rejection: Rejection, what: str) -> bool:
        rejection.log(logger, "ledger")
        self.events.on_rejected(f"ledger.{what}", rejection)
        return False
