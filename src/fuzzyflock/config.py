from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ConfigurationError


@dataclass
class BirdConfig:
    closeness: float = 75.0
    influence: float = 150.0
    max_velocity: float = 100.0
    max_acceleration: float = 100.0
    max_velocity_jitter: float = 0.3
    field_of_vision: float = math.pi
    initial_speed: float = 200.0


@dataclass
class RuleConfig:
    separation_strength: float = 5000.0
    # Distances below this are treated as this value by the separation rule
    separation_min_distance: float = 1.0
    cohesion_scale: float = 0.5
    alignment_scale: float = 1.0
    predator_scale: float = 50.0
    predator_range_factor: float = 2.0


@dataclass
class SimulationConfig:
    width: float = 800.0
    height: float = 600.0
    time_step: float = 1.0 / 24.0
    initial_population: int = 100
    neighbor_distance: float = 300.0
    seed: int = 42
    config_version: str = "v1"
    bird: BirdConfig = field(default_factory=BirdConfig)
    rules: RuleConfig = field(default_factory=RuleConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> None:
        _require(_positive(self.width), "width", self.width, "must be positive and finite")
        _require(_positive(self.height), "height", self.height, "must be positive and finite")
        _require(_positive(self.time_step), "time_step", self.time_step, "must be positive and finite")
        _require(self.initial_population >= 0, "initial_population", self.initial_population, "must not be negative")
        _require(
            _positive(self.neighbor_distance),
            "neighbor_distance",
            self.neighbor_distance,
            "must be positive and finite",
        )
        bird = self.bird
        for name in ("closeness", "influence", "max_velocity", "max_acceleration", "initial_speed"):
            value = getattr(bird, name)
            _require(math.isfinite(value), f"bird.{name}", value, "must be finite")
        _require(bird.closeness >= 0, "bird.closeness", bird.closeness, "must not be negative")
        _require(bird.influence >= 0, "bird.influence", bird.influence, "must not be negative")
        _require(
            bird.closeness <= bird.influence,
            "bird.closeness",
            bird.closeness,
            f"must not exceed bird.influence ({bird.influence})",
        )
        _require(bird.max_velocity > 0, "bird.max_velocity", bird.max_velocity, "must be positive")
        _require(bird.max_acceleration >= 0, "bird.max_acceleration", bird.max_acceleration, "must not be negative")
        _require(
            0 <= bird.max_velocity_jitter < 1,
            "bird.max_velocity_jitter",
            bird.max_velocity_jitter,
            "must be in [0, 1)",
        )
        _require(
            0 <= bird.field_of_vision <= math.pi,
            "bird.field_of_vision",
            bird.field_of_vision,
            "must be in [0, pi]",
        )
        _require(bird.initial_speed >= 0, "bird.initial_speed", bird.initial_speed, "must not be negative")
        rules = self.rules
        _require(
            _positive(rules.separation_min_distance),
            "rules.separation_min_distance",
            rules.separation_min_distance,
            "must be positive and finite",
        )
        for name in ("separation_strength", "cohesion_scale", "alignment_scale", "predator_scale", "predator_range_factor"):
            value = getattr(rules, name)
            _require(math.isfinite(value) and value >= 0, f"rules.{name}", value, "must be finite and not negative")


def _positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _require(condition: bool, name: str, value: object, message: str) -> None:
    if not condition:
        raise ConfigurationError(f"{name}={value!r} {message}")


def load_config(raw: dict) -> SimulationConfig:
    sim_values = {k: v for k, v in raw.items() if k not in {"bird", "rules"}}
    try:
        bird = BirdConfig(**(raw.get("bird") or {}))
        rules = RuleConfig(**(raw.get("rules") or {}))
        return SimulationConfig(bird=bird, rules=rules, **sim_values)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc
