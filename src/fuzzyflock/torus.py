from __future__ import annotations

import math
from dataclasses import dataclass

from .vector import Vec2


def wrap_coordinate(value: float, period: float) -> float:
    wrapped = ((value % period) + period) % period
    # -1e-17 % 800.0 rounds to 800.0
    return 0.0 if wrapped >= period else wrapped


def _wrapped_axis_delta(origin: float, destination: float, period: float) -> float:
    delta = math.fmod(destination - origin, period)
    half = period / 2.0
    if delta > half:
        return delta - period
    if delta < -half:
        return delta + period
    return delta


def shortest_wrapped_delta(origin: Vec2, destination: Vec2, width: float, height: float) -> Vec2:
    """Displacement from ``origin`` to the nearest periodic image of ``destination``.

    Each axis is resolved independently. The raw separation is first reduced
    modulo the period, so either point may lie outside the domain; an exact
    half-period separation keeps its direct sign.
    """
    return Vec2(
        _wrapped_axis_delta(origin.x, destination.x, width),
        _wrapped_axis_delta(origin.y, destination.y, height),
    )


def axis_separation(a: float, b: float, period: float) -> float:
    sep = abs(a - b) % period
    return min(sep, period - sep)


@dataclass(frozen=True, slots=True)
class Torus:
    width: float
    height: float

    def wrap_position(self, position: Vec2) -> Vec2:
        return Vec2(wrap_coordinate(position.x, self.width), wrap_coordinate(position.y, self.height))

    def wrap_delta(self, origin: Vec2, destination: Vec2) -> Vec2:
        return shortest_wrapped_delta(origin, destination, self.width, self.height)

    def distance(self, origin: Vec2, destination: Vec2) -> float:
        dx = axis_separation(origin.x, destination.x, self.width)
        dy = axis_separation(origin.y, destination.y, self.height)
        return math.hypot(dx, dy)
