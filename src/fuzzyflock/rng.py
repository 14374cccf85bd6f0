from __future__ import annotations

import random

from .vector import Vec2


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_signed(self) -> float:
        return self._random.uniform(-1.0, 1.0)

    def next_point(self, width: float, height: float) -> Vec2:
        return Vec2(self._random.random() * width, self._random.random() * height)

    def next_box(self, half_extent: float) -> Vec2:
        return Vec2(self.next_signed() * half_extent, self.next_signed() * half_extent)
