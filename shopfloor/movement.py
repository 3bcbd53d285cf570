"""Movement boundary.

The core never computes paths. It asks a movement provider to head for a
point and polls whether the agent has arrived. Real providers live in the
rendering/navigation layer; `TimedMovement` is the stand-in used by the
headless simulation: travel takes straight-line distance / speed of
simulated time.
"""

from __future__ import annotations

import math
from typing import Callable, Protocol

Point = tuple[float, float]


class MovementProvider(Protocol):
    def request_destination(self, point: Point) -> bool: ...

    def has_arrived(self) -> bool: ...


# Builds the movement provider of one agent; None means no provider exists.
MovementFactory = Callable[[str], "MovementProvider | None"]


class TimedMovement:
    def __init__(self, *, now: Callable[[], float], speed: float = 2.0, start: Point = (0.0, 0.0)) -> None:
        if speed <= 0:
            raise ValueError("speed must be > 0")
        self._now = now
        self.speed = speed
        # Start of the current leg; the agent's position once it has arrived.
        self.position: Point = start
        self.destination: Point | None = None
        self._depart_at = 0.0
        self._arrive_at = 0.0

    def current_position(self) -> Point:
        """Where the agent is now, interpolated along the current leg."""
        if self.destination is None:
            return self.position
        now = self._now()
        if now >= self._arrive_at:
            return self.destination
        travel = self._arrive_at - self._depart_at
        f = (now - self._depart_at) / travel if travel > 0 else 1.0
        (x0, y0), (x1, y1) = self.position, self.destination
        return (x0 + (x1 - x0) * f, y0 + (y1 - y0) * f)

    def request_destination(self, point: Point) -> bool:
        # Re-targeting mid-walk starts the new leg where the agent stands.
        self.position = self.current_position()
        now = self._now()
        self.destination = point
        self._depart_at = now
        self._arrive_at = now + math.dist(self.position, point) / self.speed
        return True

    def has_arrived(self) -> bool:
        if self.destination is None:
            return False
        if self._now() >= self._arrive_at:
            self.position = self.destination
            return True
        return False
