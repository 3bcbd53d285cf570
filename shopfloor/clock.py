from __future__ import annotations

# Simulation clock: elapsed simulated time plus a 24h time of day.
#
# One simulated day lasts `day_length` time-units. Crossing midnight closes
# the day on the ledger. The clock also derives day/night and the store's
# opening hours and tells listeners when the store opens or closes.

import logging
from typing import Callable

from .events import STORE_CLOSED, STORE_OPENED
from .ledger import Ledger

logger = logging.getLogger(__name__)

StoreListener = Callable[[bool], None]


class SimulationClock:
    def __init__(
        self,
        ledger: Ledger,
        *,
        day_length: float = 300.0,
        start_hour: float = 8.0,
        day_start_hour: float = 6.0,
        night_start_hour: float = 20.0,
        open_hour: float = 8.0,
        close_hour: float = 20.0,
        closing_soon_hours: float = 1.0,
    ) -> None:
        if day_length <= 0:
            raise ValueError("day_length must be > 0")
        if not 0 <= start_hour < 24:
            raise ValueError("start_hour must be in [0, 24)")
        if not 0 <= open_hour < close_hour <= 24:
            raise ValueError("store hours must satisfy 0 <= open_hour < close_hour <= 24")

        self.ledger = ledger
        self.day_length = float(day_length)
        self.day_start_hour = day_start_hour
        self.night_start_hour = night_start_hour
        self.open_hour = open_hour
        self.close_hour = close_hour
        self.closing_soon_hours = closing_soon_hours

        self._now = 0.0
        self._hour = float(start_hour)
        self._listeners: list[StoreListener] = []

        self._was_open = self.is_store_open
        self.ledger.set_day_time(self.is_day_time)

    # -------------------- views --------------------

    @property
    def now(self) -> float:
        """Simulated time-units elapsed since the run started."""
        return self._now

    @property
    def hour(self) -> float:
        return self._hour

    @property
    def formatted_time(self) -> str:
        h = int(self._hour)
        m = int((self._hour % 1) * 60)
        return f"{h:02d}:{m:02d}"

    @property
    def is_day_time(self) -> bool:
        return self.day_start_hour <= self._hour < self.night_start_hour

    @property
    def is_store_open(self) -> bool:
        return self.open_hour <= self._hour < self.close_hour

    @property
    def hours_until_close(self) -> float:
        if not self.is_store_open:
            return 0.0
        return self.close_hour - self._hour

    @property
    def closing_soon(self) -> bool:
        return self.is_store_open and self.hours_until_close <= self.closing_soon_hours

    def hours_to_time_units(self, hours: float) -> float:
        return hours * self.day_length / 24.0

    # -------------------- driving --------------------

    def add_store_listener(self, listener: StoreListener) -> None:
        """`listener(is_open)` is called whenever the store opens or closes."""
        self._listeners.append(listener)

    def advance(self, dt: float) -> None:
        if dt < 0:
            raise ValueError("dt must be >= 0")
        self._now += dt
        self._hour += 24.0 * dt / self.day_length
        while self._hour >= 24.0:
            self._hour -= 24.0
            self.ledger.advance_day()

        self.ledger.set_day_time(self.is_day_time)

        is_open = self.is_store_open
        if is_open != self._was_open:
            self._was_open = is_open
            logger.info("[clock] store %s at %s", "OPENED" if is_open else "CLOSED", self.formatted_time)
            self.ledger.events.emit(
                STORE_OPENED if is_open else STORE_CLOSED, day=self.ledger.day, time=self.formatted_time
            )
            for listener in list(self._listeners):
                listener(is_open)

    def set_time(self, hour: float) -> None:
        """Jump the time of day without advancing elapsed time or closing a day."""
        self._hour = min(max(hour, 0.0), 24.0) % 24.0
        self.ledger.set_day_time(self.is_day_time)
        self._was_open = self.is_store_open
