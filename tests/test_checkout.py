import threading

import pytest
from conftest import make_product

from shopfloor.checkout import CheckoutStation, StationLoad, StationState
from shopfloor.events import SALE_RECORDED
from shopfloor.ledger import Ledger
from shopfloor.products import ProductState
from shopfloor.stations import StationRegistry


class FakeCustomer:
    def __init__(self, customer_id, satisfaction=0.5):
        self.customer_id = customer_id
        self.satisfaction = satisfaction
        self.completed = []

    def compute_satisfaction(self):
        return self.satisfaction

    def on_checkout_complete(self, station_id, total):
        self.completed.append((station_id, total))


def reserved_items(customer_id, prices):
    items = []
    for i, price in enumerate(prices, start=1):
        p = make_product(i, price=price)
        p.place_on_shelf(f"s{i}")
        p.reserve(customer_id)
        items.append(p)
    return items


def serving(station, customer, items):
    assert station.accept(customer)
    for p in items:
        assert station.place_item(p)


def test_payment_requires_every_item_scanned(recorder, events):
    ledger = Ledger(starting_money=100.0, events=events)
    station = CheckoutStation("C1", ledger)
    alice = FakeCustomer("alice")
    items = reserved_items("alice", [10.0, 20.0, 5.5])
    serving(station, alice, items)

    station.scan(items[0])
    station.scan(items[1])
    assert not station.all_scanned
    assert station.process_payment() is False
    assert station.running_total == pytest.approx(30.0)
    assert ledger.money == 100.0

    station.scan(items[2])
    assert station.all_scanned
    assert station.process_payment() is True

    assert ledger.money == pytest.approx(135.5)
    assert station.state is StationState.IDLE
    assert station.running_total == 0.0
    assert station.items == ()
    assert all(p.state is ProductState.PURCHASED for p in items)
    assert alice.completed == [("C1", pytest.approx(35.5))]
    assert [m["running_total"] for m in recorder.of("scan")] == [10.0, 30.0, 35.5]
    assert recorder.of("purchase_success")[0]["items"] == 3


def test_scan_is_idempotent():
    station = CheckoutStation("C1", Ledger())
    items = reserved_items("bob", [12.0])
    serving(station, FakeCustomer("bob"), items)

    assert station.scan(items[0]) is True
    assert station.scan(items[0]) is False
    assert station.running_total == pytest.approx(12.0)


def test_scan_of_unplaced_item_is_rejected():
    station = CheckoutStation("C1", Ledger())
    items = reserved_items("bob", [12.0, 3.0])
    serving(station, FakeCustomer("bob"), items[:1])

    assert station.scan(items[1]) is False
    assert station.running_total == 0.0


def test_place_item_preconditions():
    station = CheckoutStation("C1", Ledger())
    items = reserved_items("bob", [12.0])

    assert station.place_item(items[0]) is False  # nobody being served

    station.accept(FakeCustomer("eve"))
    assert station.place_item(items[0]) is False  # reserved by someone else
    assert station.place_item(None) is False


def test_payment_without_items_or_customer_fails():
    station = CheckoutStation("C1", Ledger())
    assert station.process_payment() is False
    station.accept(FakeCustomer("bob"))
    assert station.process_payment() is False
    assert station.has_customer


def test_ledger_refusal_leaves_station_unchanged():
    ledger = Ledger(starting_money=0.0)
    station = CheckoutStation("C1", ledger)
    items = reserved_items("bob", [12.0])
    serving(station, FakeCustomer("bob", satisfaction=float("nan")), items)
    station.scan(items[0])

    assert station.process_payment() is False
    assert station.has_customer
    assert station.running_total == pytest.approx(12.0)
    assert items[0].state is ProductState.RESERVED
    assert ledger.money == 0.0


def test_accept_is_fifo_and_exclusive():
    station = CheckoutStation("C1", Ledger())
    a, b = FakeCustomer("a"), FakeCustomer("b")

    assert station.join_queue("a", 2) == 1
    assert station.join_queue("b", 1) == 2
    assert station.join_queue("a", 2) == 1

    assert station.accept(b) is False
    assert station.accept(a) is True
    assert station.accept(b) is False  # busy
    assert station.current_customer is a
    assert station.queue == ("b",)
    assert station.accept(None) is False


def test_abandon_forfeits_placed_items_and_frees_station():
    station = CheckoutStation("C1", Ledger())
    items = reserved_items("bob", [12.0, 4.0])
    serving(station, FakeCustomer("bob"), items)
    station.scan(items[0])

    assert station.abandon("bob") is True
    assert station.state is StationState.IDLE
    assert station.running_total == 0.0
    assert all(p.state is ProductState.FORFEITED for p in items)
    assert station.abandon("bob") is False


def test_abandon_removes_waiting_customer_from_queue():
    station = CheckoutStation("C1", Ledger())
    station.join_queue("a")
    station.join_queue("b")
    assert station.abandon("a") is True
    assert station.position_of("b") == 1


def test_load_reports_unscanned_items_and_queued_baskets():
    station = CheckoutStation("C1", Ledger())
    items = reserved_items("bob", [1.0, 2.0, 3.0])
    serving(station, FakeCustomer("bob"), items)
    station.scan(items[0])
    station.join_queue("next", 4)

    assert station.load() == StationLoad(serving_unscanned=2, queued_baskets=(4,))


def test_load_of_idle_station():
    station = CheckoutStation("C1", Ledger())
    station.join_queue("a", 3)
    assert station.load() == StationLoad(serving_unscanned=None, queued_baskets=(3,))


def test_sale_handlers_can_read_station_status_during_payment(events):
    ledger = Ledger(starting_money=100.0, events=events)
    station = CheckoutStation("C1", ledger)
    registry = StationRegistry([station])
    seen = []

    def on_sale(kind, msg):
        if kind == SALE_RECORDED:
            seen.append(registry.status()["C1"])

    events.subscribe(on_sale)
    items = reserved_items("alice", [10.0, 5.0])
    serving(station, FakeCustomer("alice"), items)
    for p in items:
        station.scan(p)

    result = []
    worker = threading.Thread(target=lambda: result.append(station.process_payment()), daemon=True)
    worker.start()
    worker.join(timeout=3.0)

    assert not worker.is_alive()
    assert result == [True]
    assert seen[0]["paying"] is True
    assert seen[0]["customer_id"] == "alice"
    assert station.status()["paying"] is False
    assert ledger.money == pytest.approx(115.0)


def test_station_refuses_changes_while_sale_settles(events, recorder):
    ledger = Ledger(starting_money=100.0, events=events)
    station = CheckoutStation("C1", ledger)
    items = reserved_items("alice", [10.0])
    extra = make_product(9, price=4.0)
    extra.place_on_shelf("s9")
    extra.reserve("alice")
    attempts = {}

    def on_sale(kind, msg):
        if kind == SALE_RECORDED:
            attempts["place"] = station.place_item(extra)
            attempts["pay"] = station.process_payment()
            attempts["abandon"] = station.abandon("alice")

    events.subscribe(on_sale)
    serving(station, FakeCustomer("alice"), items)
    station.scan(items[0])

    assert station.process_payment() is True
    assert attempts == {"place": False, "pay": False, "abandon": False}
    assert [m["code"] for m in recorder.of("rejected")] == ["payment_in_progress"] * 3
    assert items[0].state is ProductState.PURCHASED
    assert extra.state is ProductState.RESERVED
    assert ledger.money == pytest.approx(110.0)
    assert station.served_count == 1
