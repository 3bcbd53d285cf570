from __future__ import annotations

# Station registry: the set of checkout stations and the policy that sends a
# shopper to one of them. Built once at shop setup and passed to every agent.

import threading

from .checkout import CheckoutStation
from .service_time import estimate_wait


class StationRegistry:
    def __init__(
        self,
        stations: list[CheckoutStation] | None = None,
        *,
        payment_seconds: float = 2.0,
        scan_seconds: float = 1.0,
    ) -> None:
        self._lock = threading.Lock()
        self._stations: dict[str, CheckoutStation] = {}
        self.payment_seconds = payment_seconds
        self.scan_seconds = scan_seconds

        # Round-robin pointer to break ties fairly when multiple stations have
        # the same predicted workload.
        self._rr_index = 0

        for st in stations or []:
            self.register(st)

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self):
        return iter(list(self._stations.values()))

    def register(self, station: CheckoutStation) -> None:
        with self._lock:
            self._stations[station.station_id] = station

    def get(self, station_id: str) -> CheckoutStation | None:
        return self._stations.get(station_id)

    def workload(self, station: CheckoutStation) -> float:
        """Predicted time until a newcomer would be served at `station`."""
        return estimate_wait(station.load(), payment_seconds=self.payment_seconds, scan_seconds=self.scan_seconds)

    def choose(self) -> CheckoutStation | None:
        """Pick the station with the smallest predicted workload.

        Tie-breaking: round-robin over the tied stations, ordered by id, so
        low ids are not systematically favoured.
        """
        with self._lock:
            if not self._stations:
                return None

            scored = [(self.workload(st), st.station_id, st) for st in self._stations.values()]
            min_w = min(s[0] for s in scored)
            candidates = sorted((s for s in scored if s[0] == min_w), key=lambda t: t[1])

            chosen = candidates[self._rr_index % len(candidates)][2]
            self._rr_index += 1
            return chosen

    def status(self) -> dict[str, dict]:
        return {st.station_id: st.status() for st in self}
