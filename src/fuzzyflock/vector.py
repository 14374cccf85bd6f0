from __future__ import annotations

import math
from dataclasses import dataclass

TWO_PI = 2.0 * math.pi


def normalize_angle(angle: float) -> float:
    """Map ``angle`` into (-pi, pi]."""
    wrapped = math.fmod(angle + math.pi, TWO_PI)
    if wrapped <= 0.0:
        wrapped += TWO_PI
    return wrapped - math.pi


@dataclass(frozen=True, slots=True)
class Vec2:
    x: float
    y: float

    @staticmethod
    def from_polar(magnitude: float, bearing: float) -> "Vec2":
        return Vec2(math.cos(bearing) * magnitude, math.sin(bearing) * magnitude)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def bearing(self) -> float:
        if self.x == 0.0 and self.y == 0.0:
            return 0.0
        angle = math.atan2(self.y, self.x)
        # atan2(-0.0, x < 0) gives -pi
        return math.pi if angle == -math.pi else angle

    def scale(self, factor: float) -> "Vec2":
        return Vec2(self.x * factor, self.y * factor)

    def rotate(self, angle: float) -> "Vec2":
        return Vec2.from_polar(self.length(), normalize_angle(self.bearing() + angle))

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)

    def __mul__(self, scalar: float) -> "Vec2":
        return Vec2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def clamp_length(self, max_length: float) -> "Vec2":
        """Scale down to ``max_length`` if longer; never scales up."""
        if max_length <= 0:
            return ZERO
        mag_sq = self.length_squared()
        if mag_sq <= max_length * max_length:
            return self
        return self.scale(max_length / math.sqrt(mag_sq))


ZERO = Vec2(0.0, 0.0)
