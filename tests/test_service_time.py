import pytest

from shopfloor.checkout import StationLoad
from shopfloor.service_time import basket_time, estimate_wait


def test_basket_time():
    assert basket_time(items=10, payment_seconds=2.0, scan_seconds=0.5) == 7.0
    assert basket_time(items=0, payment_seconds=2.0, scan_seconds=0.5) == 2.0


def test_basket_time_rejects_negative():
    with pytest.raises(ValueError):
        basket_time(items=-1, payment_seconds=0.0, scan_seconds=0.0)
    with pytest.raises(ValueError):
        basket_time(items=1, payment_seconds=-1.0, scan_seconds=0.0)


def test_idle_empty_station_has_no_wait():
    assert estimate_wait(StationLoad(None, ()), payment_seconds=2.0, scan_seconds=1.0) == 0.0


def test_wait_counts_only_unscanned_items_of_served_customer():
    load = StationLoad(serving_unscanned=1, queued_baskets=(3, 0))
    # serving: 1 scan + payment, queue: (3 scans + payment) + payment
    assert estimate_wait(load, payment_seconds=2.0, scan_seconds=1.0) == pytest.approx(3.0 + 5.0 + 2.0)


def test_served_customer_still_pays_after_last_scan():
    load = StationLoad(serving_unscanned=0, queued_baskets=())
    assert estimate_wait(load, payment_seconds=2.0, scan_seconds=1.0) == 2.0
