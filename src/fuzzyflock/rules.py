"""
Steering rules for birds.

Every rule is a pair of pure functions over an explicit conditions object; no
rule reads global state. Geometry (wrapped delta and distance) is computed once
per condition set by the preprocessors below and shared by all rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import RuleConfig
from .fuzzy import Rule, triangle
from .torus import Torus
from .vector import Vec2

if TYPE_CHECKING:
    from .bird import Bird, Predator


@dataclass(frozen=True, slots=True)
class PairConditions:
    bird: "Bird"
    other: "Bird"
    torus: Torus
    tuning: RuleConfig


@dataclass(frozen=True, slots=True)
class PredatorConditions:
    bird: "Bird"
    predator: "Predator"
    torus: Torus
    tuning: RuleConfig


@dataclass(frozen=True, slots=True)
class Geometry:
    """Conditions plus the wrapped displacement from the bird to its target."""

    bird: "Bird"
    target_velocity: Vec2
    delta: Vec2
    distance: float
    tuning: RuleConfig


def pair_geometry(conditions: PairConditions) -> Geometry:
    delta = conditions.torus.wrap_delta(conditions.bird.position, conditions.other.position)
    return Geometry(conditions.bird, conditions.other.velocity, delta, delta.length(), conditions.tuning)


def predator_geometry(conditions: PredatorConditions) -> Geometry:
    delta = conditions.torus.wrap_delta(conditions.bird.position, conditions.predator.position)
    return Geometry(conditions.bird, Vec2(0.0, 0.0), delta, delta.length(), conditions.tuning)


def _away(geometry: Geometry) -> float:
    return Vec2(-geometry.delta.x, -geometry.delta.y).bearing()


# Too close: push apart, harder the closer they are
def separation_membership(g: Geometry) -> float:
    return triangle(g.distance, 0.0, 0.0, g.bird.closeness)


def separation_result(g: Geometry) -> Vec2:
    distance = max(g.distance, g.tuning.separation_min_distance)
    return Vec2.from_polar(g.tuning.separation_strength / distance, _away(g))


# Close enough to be influenced: pull together
def cohesion_membership(g: Geometry) -> float:
    c = g.bird.closeness
    return triangle(g.distance, c, 2.0 * c, 3.0 * c)


def cohesion_result(g: Geometry) -> Vec2:
    return Vec2.from_polar(g.tuning.cohesion_scale * g.bird.max_acceleration, g.delta.bearing())


# Close enough to be influenced: turn towards parallel headings
def alignment_membership(g: Geometry) -> float:
    c = g.bird.closeness
    i = g.bird.influence
    return triangle(g.distance, c, (c + i) / 2.0, i)


def alignment_result(g: Geometry) -> Vec2:
    return Vec2.from_polar(g.tuning.alignment_scale * g.bird.max_acceleration, g.target_velocity.bearing())


def flee_membership(g: Geometry) -> float:
    return triangle(g.distance, 0.0, 0.0, g.tuning.predator_range_factor * g.bird.influence)


def flee_result(g: Geometry) -> Vec2:
    return Vec2.from_polar(g.tuning.predator_scale * g.bird.max_acceleration, _away(g))


SEPARATION = Rule("separation", separation_membership, separation_result)
COHESION = Rule("cohesion", cohesion_membership, cohesion_result)
ALIGNMENT = Rule("alignment", alignment_membership, alignment_result)
FLEE = Rule("flee", flee_membership, flee_result)

PEER_RULES = (SEPARATION, COHESION, ALIGNMENT)
PREDATOR_RULES = (FLEE,)
