from __future__ import annotations

import pytest

from shopfloor.clock import SimulationClock
from shopfloor.events import EventBus
from shopfloor.ledger import Ledger
from shopfloor.products import Product


class InstantMovement:
    """Arrives wherever it is sent, immediately."""

    def __init__(self) -> None:
        self.destinations = []

    def request_destination(self, point) -> bool:
        self.destinations.append(point)
        return True

    def has_arrived(self) -> bool:
        return bool(self.destinations)


class StuckMovement:
    """Accepts every destination and never gets there."""

    def request_destination(self, point) -> bool:
        return True

    def has_arrived(self) -> bool:
        return False


class Recorder:
    """EventBus handler that keeps every message."""

    def __init__(self) -> None:
        self.messages = []

    def __call__(self, kind, msg) -> None:
        self.messages.append(msg)

    def of(self, kind):
        return [m for m in self.messages if m["type"] == kind]


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def recorder(events):
    rec = Recorder()
    events.subscribe(rec)
    return rec


@pytest.fixture
def ledger(events):
    return Ledger(starting_money=1000.0, starting_reputation=50.0, events=events)


@pytest.fixture
def clock(ledger):
    return SimulationClock(ledger, day_length=240.0, start_hour=10.0)


def make_product(product_id=1, price=30.0, name="Miniature Box", product_type="miniature_box"):
    return Product(product_id=product_id, name=name, price=price, product_type=product_type)


def drive(process, clock, *, max_steps=10_000):
    """Run an agent generator to completion, advancing `clock` by each yielded delay."""
    for _ in range(max_steps):
        try:
            delay = next(process)
        except StopIteration:
            return
        clock.advance(max(delay, 0.1))
    raise AssertionError("process did not finish")
