from __future__ import annotations

# Register timing.
#
# A customer at the register goes through the same steps the agent waits on:
#   place the basket, then one scan delay per item, then one payment delay.
#
# What a newcomer has to wait for at a station is therefore:
# - the customer being served: only the items not scanned yet, plus payment
# - each customer in the queue: their whole basket, plus payment

from .checkout import StationLoad


def basket_time(*, items: int, payment_seconds: float, scan_seconds: float) -> float:
    """Simulated time a customer with `items` unscanned items still occupies the register."""
    if items < 0:
        raise ValueError("items must be >= 0")
    if payment_seconds < 0 or scan_seconds < 0:
        raise ValueError("payment_seconds and scan_seconds must be >= 0")
    return float(items * scan_seconds + payment_seconds)


def estimate_wait(load: StationLoad, *, payment_seconds: float, scan_seconds: float) -> float:
    """Predicted time until a customer joining the queue now reaches the register."""
    pending = list(load.queued_baskets)
    if load.serving_unscanned is not None:
        pending.insert(0, load.serving_unscanned)
    return sum(basket_time(items=n, payment_seconds=payment_seconds, scan_seconds=scan_seconds) for n in pending)
