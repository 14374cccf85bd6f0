from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Tuple

from .vector import ZERO, Vec2

WHITE = (255, 255, 255)


@dataclass(slots=True)
class Bird:
    id: int
    position: Vec2
    velocity: Vec2
    max_velocity: float
    max_acceleration: float
    closeness: float
    influence: float
    field_of_vision: float
    acceleration: Vec2 = ZERO
    color: Tuple[int, int, int] = WHITE
    # Strongest membership seen this tick for each peer rule, in rule order
    peak_memberships: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    predator_membership: float = 0.0

    def reset_brain(self) -> None:
        self.acceleration = ZERO
        self.predator_membership = 0.0
        peaks = self.peak_memberships
        for index in range(len(peaks)):
            peaks[index] = 0.0

    def heading(self) -> float:
        return self.velocity.bearing()


@dataclass(frozen=True, slots=True)
class Predator:
    position: Vec2 = ZERO
    active: bool = False


class PredatorInput:
    """Pointer state written by an input source and latched once per tick.

    Writers may run on another thread; ``latch`` always returns a position and
    active flag taken under the same lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = Predator()

    def set_position(self, x: float, y: float) -> None:
        with self._lock:
            self._state = Predator(Vec2(float(x), float(y)), self._state.active)

    def set_active(self, active: bool) -> None:
        with self._lock:
            self._state = Predator(self._state.position, bool(active))

    def set(self, x: float, y: float, active: bool) -> None:
        with self._lock:
            self._state = Predator(Vec2(float(x), float(y)), bool(active))

    def latch(self) -> Predator:
        with self._lock:
            return self._state
