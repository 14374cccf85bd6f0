"""
Small fuzzy-logic evaluator.

A rule pairs a membership function, mapping a condition set to a degree in
[0, 1], with a result function producing a steering vector. The engine scales
each applicable result by its membership and sums them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, Sequence, Tuple, TypeVar

from .vector import ZERO, Vec2

C = TypeVar("C")


def _rising(x: float, a: float, b: float) -> float:
    if b == a:
        return 1.0 if x >= b else 0.0
    return (x - a) / (b - a)


def _falling(x: float, c: float, d: float) -> float:
    if d == c:
        return 1.0 if x <= c else 0.0
    return (d - x) / (d - c)


def triangle(x: float, a: float, b: float, c: float) -> float:
    return max(0.0, min(_rising(x, a, b), _falling(x, b, c)))


def trapezoid(x: float, a: float, b: float, c: float, d: float) -> float:
    return max(0.0, min(_rising(x, a, b), 1.0, _falling(x, c, d)))


def square(x: float, a: float, b: float) -> float:
    return 1.0 if a < x < b else 0.0


@dataclass(frozen=True)
class Rule(Generic[C]):
    name: str
    membership: Callable[[C], float]
    result: Callable[[C], Vec2]


@dataclass(frozen=True)
class Evaluation:
    total: Vec2
    memberships: Tuple[float, ...]
    contributions: Dict[str, Vec2] = field(default_factory=dict)
    names: Tuple[str, ...] = ()

    def membership(self, name: str) -> float:
        try:
            return self.memberships[self.names.index(name)]
        except ValueError:
            raise KeyError(name) from None


Combiner = Callable[[Sequence[Vec2]], Vec2]


class FuzzyEngine(Generic[C]):
    """Evaluates every rule against one condition set.

    ``combine`` folds the scaled contributions of the applicable rules into a
    single vector and defaults to their sum. It is not called when no rule
    applies.
    """

    def __init__(
        self,
        rules: Sequence[Rule[C]],
        preprocessor: Optional[Callable[[Any], C]] = None,
        combine: Optional[Combiner] = None,
    ):
        self.rules = tuple(rules)
        self.names = tuple(rule.name for rule in self.rules)
        self._preprocessor = preprocessor
        self._combine = combine

    def evaluate(self, conditions: Any) -> Evaluation:
        prepared = self._preprocessor(conditions) if self._preprocessor is not None else conditions
        total_x = 0.0
        total_y = 0.0
        memberships = []
        contributions: Dict[str, Vec2] = {}
        for rule in self.rules:
            membership = rule.membership(prepared)
            memberships.append(membership)
            if membership <= 0.0:
                continue
            contribution = rule.result(prepared).scale(membership)
            contributions[rule.name] = contribution
            total_x += contribution.x
            total_y += contribution.y
        if not contributions:
            total = ZERO
        elif self._combine is not None:
            total = self._combine(list(contributions.values()))
        else:
            total = Vec2(total_x, total_y)
        return Evaluation(
            total=total,
            memberships=tuple(memberships),
            contributions=contributions,
            names=self.names,
        )
