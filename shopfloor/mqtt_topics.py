"""MQTT topic helpers.

Topic construction lives in one place so the publisher and the watcher agree
on naming.

Topic layout (v0) under a configurable namespace (default: `shopfloor/v0`):

- `<ns>/events/<kind>`
    One message per core event (scan, purchase_success, state_changed, ...).
- `<ns>/status/ledger`
    Ledger snapshots, published when the day or the store state changes.
- `<ns>/stations/status/<station_id>`
    Per-station summary (state, queue, running total).

Several simulations can share a broker by changing `namespace`
(e.g. `--namespace demo/alice`).
"""

from __future__ import annotations

DEFAULT_NAMESPACE = "shopfloor/v0"


def events_topic(kind: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/events/{kind}"


def all_events(namespace: str = DEFAULT_NAMESPACE) -> str:
    """Wildcard subscription for every event kind."""
    return f"{namespace}/events/+"


def ledger_status(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/status/ledger"


def station_status(station_id: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/stations/status/{station_id}"


def all_station_status(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/stations/status/+"
