from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

from .bird import Bird, Predator
from .config import RuleConfig
from .fuzzy import Evaluation, FuzzyEngine
from .rules import (
    PEER_RULES,
    PREDATOR_RULES,
    Geometry,
    PairConditions,
    PredatorConditions,
    pair_geometry,
    predator_geometry,
)
from .torus import Torus
from .vector import normalize_angle


def in_field_of_vision(bird: Bird, other: Bird) -> bool:
    # Raw subtraction: the vision cone ignores wrap-around
    to_other = other.position - bird.position
    difference = normalize_angle(to_other.bearing() - bird.velocity.bearing())
    return abs(difference) < bird.field_of_vision


def color_from_memberships(memberships: Sequence[float]) -> Tuple[int, int, int]:
    channels = [math.floor(255 * (1.0 - min(1.0, max(0.0, m)))) for m in list(memberships)[:3]]
    while len(channels) < 3:
        channels.append(255)
    return channels[0], channels[1], channels[2]


def css_color(color: Tuple[int, int, int]) -> str:
    return "rgb({},{},{})".format(*color)


class SteeringModel:
    def __init__(self, torus: Torus, tuning: RuleConfig):
        self.torus = torus
        self.tuning = tuning
        self.peer_engine: FuzzyEngine[Geometry] = FuzzyEngine(PEER_RULES, preprocessor=pair_geometry)
        self.predator_engine: FuzzyEngine[Geometry] = FuzzyEngine(PREDATOR_RULES, preprocessor=predator_geometry)

    def consider_neighbor(self, bird: Bird, other: Bird) -> Optional[Evaluation]:
        """Accumulate the influence of ``other`` on ``bird``; None if ``other`` is not visible."""
        if not in_field_of_vision(bird, other):
            return None
        evaluation = self.peer_engine.evaluate(PairConditions(bird, other, self.torus, self.tuning))
        if evaluation.contributions:
            bird.acceleration = bird.acceleration + evaluation.total
        peaks = bird.peak_memberships
        for index, membership in enumerate(evaluation.memberships[: len(peaks)]):
            if membership > peaks[index]:
                peaks[index] = membership
        return evaluation

    def consider_pair(self, first: Bird, second: Bird) -> None:
        # Each bird judges the other with its own thresholds
        self.consider_neighbor(first, second)
        self.consider_neighbor(second, first)

    def consider_predator(self, bird: Bird, predator: Predator) -> Optional[Evaluation]:
        if not predator.active:
            return None
        evaluation = self.predator_engine.evaluate(PredatorConditions(bird, predator, self.torus, self.tuning))
        if evaluation.contributions:
            bird.acceleration = bird.acceleration + evaluation.total
        bird.predator_membership = evaluation.memberships[0]
        return evaluation

    def integrate(self, bird: Bird, dt: float) -> None:
        velocity = bird.velocity + bird.acceleration.scale(dt)
        bird.velocity = velocity.clamp_length(bird.max_velocity)
        moved = bird.position + bird.velocity.scale(dt)
        bird.position = self.torus.wrap_position(moved)
        bird.color = color_from_memberships(bird.peak_memberships)

