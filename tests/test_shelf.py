import threading

from conftest import make_product

from shopfloor.products import ProductState
from shopfloor.shelf import ShelfSlot


def test_acquire_places_product_and_blocks_second():
    slot = ShelfSlot("s1")
    a = make_product(1)
    b = make_product(2)

    assert slot.acquire(a) is True
    assert a.state is ProductState.ON_SHELF
    assert a.shelf_id == "s1"

    assert slot.acquire(b) is False
    assert slot.occupant is a
    assert b.state is ProductState.AVAILABLE


def test_acquire_rejects_null_and_unavailable(recorder, events):
    slot = ShelfSlot("s1", events=events)
    assert slot.acquire(None) is False

    p = make_product(1)
    p.state = ProductState.PURCHASED
    assert slot.acquire(p) is False
    assert slot.is_empty
    assert [m["code"] for m in recorder.of("rejected")] == ["null_product", "product_unavailable"]


def test_type_constraint():
    slot = ShelfSlot("paints", accepts="paint_pot")
    assert slot.acquire(make_product(1, product_type="rulebook")) is False
    assert slot.acquire(make_product(2, product_type="paint_pot")) is True


def test_release_is_idempotent():
    slot = ShelfSlot("s1")
    p = make_product(1)
    slot.acquire(p)

    assert slot.release() is p
    assert p.state is ProductState.AVAILABLE
    assert slot.release() is None
    assert slot.is_empty


def test_transfer_reserves_for_customer():
    slot = ShelfSlot("s1")
    p = make_product(1)
    slot.acquire(p)

    taken = slot.transfer_to_customer("alice")
    assert taken is p
    assert p.is_reserved_by("alice")
    assert p.shelf_id is None
    assert slot.is_empty
    assert slot.transfer_to_customer("bob") is None


def test_transfer_refused_by_predicate_changes_nothing():
    slot = ShelfSlot("s1")
    p = make_product(1)
    slot.acquire(p)

    assert slot.transfer_to_customer("alice", accept=lambda _p: False) is None
    assert slot.occupant is p
    assert p.state is ProductState.ON_SHELF


def test_only_one_of_many_concurrent_takers_wins():
    slot = ShelfSlot("s1")
    slot.acquire(make_product(1))
    winners = []
    start = threading.Barrier(8)

    def take(cid):
        start.wait()
        if slot.transfer_to_customer(cid) is not None:
            winners.append(cid)

    threads = [threading.Thread(target=take, args=(f"c{i}",)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(winners) == 1
