from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Sequence, Set, Tuple

from .torus import Torus, axis_separation

if TYPE_CHECKING:
    from .bird import Bird

PairKey = Tuple[int, int]


def pair_key(a: int, b: int) -> PairKey:
    return (a, b) if a < b else (b, a)


@dataclass(slots=True)
class SweepStats:
    candidate_pairs: int = 0
    interactions: int = 0


def _x_of(bird: "Bird") -> float:
    return bird.position.x


def _y_of(bird: "Bird") -> float:
    return bird.position.y


class SweepPruner:
    """
    Finds every pair of birds within ``max_distance`` on the torus without the
    full pairwise sweep.

    Birds are sorted along one axis and each bird scans forward (wrapping past
    the end of the order) until the next bird is further than ``max_distance``
    away on that axis. The pass is then repeated on the other axis, sharing the
    set of pairs already examined.
    """

    def __init__(self, torus: Torus, max_distance: float) -> None:
        self._torus = torus
        self._max_distance = max_distance
        self._ordered: List["Bird"] = []
        self._visited: Set[PairKey] = set()

    @property
    def max_distance(self) -> float:
        return self._max_distance

    def sweep(self, birds: Sequence["Bird"], visit: Callable[["Bird", "Bird"], None]) -> SweepStats:
        stats = SweepStats()
        visited = self._visited
        visited.clear()
        ordered = self._ordered
        ordered[:] = birds
        if len(ordered) < 2:
            return stats

        ordered.sort(key=_x_of)
        self._sweep_axis(ordered, _x_of, self._torus.width, visited, visit, stats)
        ordered.sort(key=_y_of)
        self._sweep_axis(ordered, _y_of, self._torus.height, visited, visit, stats)
        return stats

    def find_pairs(self, birds: Sequence["Bird"]) -> Set[PairKey]:
        pairs: Set[PairKey] = set()
        self.sweep(birds, lambda a, b: pairs.add(pair_key(a.id, b.id)))
        return pairs

    def _sweep_axis(
        self,
        ordered: List["Bird"],
        coordinate: Callable[["Bird"], float],
        period: float,
        visited: Set[PairKey],
        visit: Callable[["Bird", "Bird"], None],
        stats: SweepStats,
    ) -> None:
        count = len(ordered)
        max_distance = self._max_distance
        distance = self._torus.distance
        for i in range(count):
            bird = ordered[i]
            origin = coordinate(bird)
            j = (i + 1) % count
            while j != i:
                other = ordered[j]
                j = (j + 1) % count
                key = pair_key(bird.id, other.id)
                if key in visited:
                    continue
                if axis_separation(origin, coordinate(other), period) > max_distance:
                    break
                visited.add(key)
                stats.candidate_pairs += 1
                if distance(bird.position, other.position) <= max_distance:
                    stats.interactions += 1
                    visit(bird, other)


def brute_force_pairs(birds: Sequence["Bird"], torus: Torus, max_distance: float) -> Set[PairKey]:
    pairs: Set[PairKey] = set()
    for index, bird in enumerate(birds):
        for other in birds[index + 1 :]:
            if torus.distance(bird.position, other.position) <= max_distance:
                pairs.add(pair_key(bird.id, other.id))
    return pairs
