from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Optional

from .bird import Bird, Predator, PredatorInput
from .config import SimulationConfig
from .errors import ConfigurationError, UnknownAgentError
from .neighbors import SweepPruner
from .rng import DeterministicRng
from .steering import SteeringModel, css_color
from .torus import Torus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    candidate_pairs: int
    interactions: int
    predator_active: bool
    fleeing: int
    average_speed: float
    tick_duration_ms: float = 0.0


@dataclass(slots=True)
class SnapshotWorld:
    width: float
    height: float
    time_step: float
    seed: int
    config_version: str


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    world: SnapshotWorld
    predator: Dict[str, Any]


class World:
    """Owns the birds, the predator input and the toroidal domain they live in."""

    def __init__(self, config: SimulationConfig):
        config.validate()
        self._config = config
        self._torus = Torus(config.width, config.height)
        self._rng = DeterministicRng(config.seed)
        self._steering = SteeringModel(self._torus, config.rules)
        self._pruner = SweepPruner(self._torus, config.neighbor_distance)
        self._predator_input = PredatorInput()
        self._predator = Predator()
        self._birds: List[Bird] = []
        self._tick = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def torus(self) -> Torus:
        return self._torus

    @property
    def birds(self) -> List[Bird]:
        return self._birds

    @property
    def predator(self) -> Predator:
        """Predator state as latched by the most recent tick."""
        return self._predator

    @property
    def predator_input(self) -> PredatorInput:
        return self._predator_input

    @property
    def tick_count(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def bird(self, agent_id: int) -> Bird:
        if isinstance(agent_id, bool) or not isinstance(agent_id, int) or not 0 <= agent_id < len(self._birds):
            raise UnknownAgentError(agent_id, len(self._birds))
        return self._birds[agent_id]

    def reset(self) -> None:
        self._birds.clear()
        self._rng.reset()
        self._predator_input = PredatorInput()
        self._predator = Predator()
        self._tick = 0
        self._metrics = None
        self._bootstrap_population()

    def spawn(self) -> int:
        bird_config = self._config.bird
        rng = self._rng
        max_velocity = bird_config.max_velocity * (1.0 + rng.next_signed() * bird_config.max_velocity_jitter)
        bird = Bird(
            id=len(self._birds),
            position=rng.next_point(self._config.width, self._config.height),
            velocity=rng.next_box(bird_config.initial_speed),
            max_velocity=max_velocity,
            max_acceleration=bird_config.max_acceleration,
            closeness=bird_config.closeness,
            influence=bird_config.influence,
            field_of_vision=bird_config.field_of_vision,
        )
        self._birds.append(bird)
        return bird.id

    def add_bird(self, bird: Bird) -> int:
        """Insert a bird built by the caller; its id is reassigned to the next free index."""
        bird.id = len(self._birds)
        bird.position = self._torus.wrap_position(bird.position)
        self._birds.append(bird)
        return bird.id

    def step(self, dt: Optional[float] = None) -> TickMetrics:
        start = perf_counter()
        if dt is None:
            dt = self._config.time_step
        if not math.isfinite(dt) or dt <= 0:
            raise ConfigurationError(f"dt={dt!r} must be a positive finite number")

        latched = self._predator_input.latch()
        predator = Predator(self._torus.wrap_position(latched.position), latched.active)
        self._predator = predator
        birds = self._birds
        steering = self._steering

        for bird in birds:
            bird.reset_brain()

        # Positions stay fixed until every acceleration is known
        stats = self._pruner.sweep(birds, steering.consider_pair)

        fleeing = 0
        for bird in birds:
            steering.consider_predator(bird, predator)
            if bird.predator_membership > 0.0:
                fleeing += 1

        speed_sum = 0.0
        for bird in birds:
            steering.integrate(bird, dt)
            speed_sum += bird.velocity.length()

        self._tick += 1
        population = len(birds)
        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = TickMetrics(
            tick=self._tick,
            population=population,
            candidate_pairs=stats.candidate_pairs,
            interactions=stats.interactions,
            predator_active=predator.active,
            fleeing=fleeing,
            average_speed=0.0 if population == 0 else speed_sum / population,
            tick_duration_ms=elapsed_ms,
        )
        self._metrics = metrics
        logger.debug(
            "tick %d: %d candidate pairs, %d interactions, %d fleeing",
            metrics.tick,
            metrics.candidate_pairs,
            metrics.interactions,
            fleeing,
        )
        return metrics

    def snapshot(self) -> Snapshot:
        metrics = self._metrics if self._metrics is not None else self._idle_metrics()
        config = self._config
        return Snapshot(
            tick=self._tick,
            metrics=metrics,
            agents=[self._agent_snapshot(bird) for bird in self._birds],
            world=SnapshotWorld(
                width=config.width,
                height=config.height,
                time_step=config.time_step,
                seed=config.seed,
                config_version=config.config_version,
            ),
            predator={
                "x": self._predator.position.x,
                "y": self._predator.position.y,
                "active": self._predator.active,
            },
        )

    def agent_snapshot(self) -> List[Dict[str, Any]]:
        return [
            {"id": bird.id, "x": bird.position.x, "y": bird.position.y, "color_hint": css_color(bird.color)}
            for bird in self._birds
        ]

    def _agent_snapshot(self, bird: Bird) -> Dict[str, Any]:
        return {
            "id": bird.id,
            "x": bird.position.x,
            "y": bird.position.y,
            "vx": bird.velocity.x,
            "vy": bird.velocity.y,
            "heading": bird.heading(),
            "speed": bird.velocity.length(),
            "max_velocity": bird.max_velocity,
            "color": list(bird.color),
            "color_hint": css_color(bird.color),
            "fleeing": bird.predator_membership > 0.0,
        }

    def _idle_metrics(self) -> TickMetrics:
        population = len(self._birds)
        speed_sum = sum(bird.velocity.length() for bird in self._birds)
        return TickMetrics(
            tick=self._tick,
            population=population,
            candidate_pairs=0,
            interactions=0,
            predator_active=self._predator.active,
            fleeing=0,
            average_speed=0.0 if population == 0 else speed_sum / population,
        )

    def _bootstrap_population(self) -> None:
        for _ in range(self._config.initial_population):
            self.spawn()
        logger.info(
            "seeded %d birds in %gx%g world (seed=%d)",
            len(self._birds),
            self._config.width,
            self._config.height,
            self._config.seed,
        )


def create_world(width: float, height: float, config: Optional[SimulationConfig] = None) -> World:
    """Empty world of the given size; birds are added with ``spawn_agent``."""
    base = config if config is not None else SimulationConfig()
    sized = SimulationConfig(
        width=width,
        height=height,
        time_step=base.time_step,
        initial_population=0,
        neighbor_distance=base.neighbor_distance,
        seed=base.seed,
        config_version=base.config_version,
        bird=base.bird,
        rules=base.rules,
    )
    return World(sized)


def spawn_agent(world: World) -> int:
    return world.spawn()


def set_predator_position(world: World, x: float, y: float) -> None:
    world.predator_input.set_position(x, y)


def set_predator_active(world: World, active: bool) -> None:
    world.predator_input.set_active(active)


def tick(world: World, dt: Optional[float] = None) -> TickMetrics:
    return world.step(dt)


def get_agent_snapshot(world: World) -> List[Dict[str, Any]]:
    return world.agent_snapshot()
