from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from .config import SimulationConfig
from .world import TickMetrics, World

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "population",
    "candidate_pairs",
    "interactions",
    "predator_active",
    "fleeing",
    "avg_speed",
    "candidate_pairs_per_agent",
    "tick_ms",
]


def _format_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    per_agent = 0.0 if population <= 0 else metrics.candidate_pairs / population
    return [
        metrics.tick,
        population,
        metrics.candidate_pairs,
        metrics.interactions,
        int(metrics.predator_active),
        metrics.fleeing,
        f"{metrics.average_speed:.4f}",
        f"{per_agent:.4f}",
        f"{tick_ms:.3f}",
    ]


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"count": 0, "min": 0.0, "max": 0.0, "mean": 0.0}
    return {
        "count": len(values),
        "min": float(min(values)),
        "max": float(max(values)),
        "mean": float(sum(values) / len(values)),
    }


def _parse_predator(value: Optional[str]) -> Optional[tuple[float, float]]:
    if value is None:
        return None
    parts = value.split(",")
    if len(parts) != 2:
        raise ValueError(f"Predator position must be 'x,y', got {value!r}")
    return float(parts[0]), float(parts[1])


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    config_path: Optional[Path] = None,
    summary_path: Optional[Path] = None,
    predator: Optional[tuple[float, float]] = None,
) -> World:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    world = World(config)
    if predator is not None:
        world.predator_input.set(predator[0], predator[1], True)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    tick_ms_series: list[float] = []
    candidate_series: list[float] = []
    speed_series: list[float] = []

    try:
        for _ in range(steps):
            metrics = world.step()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            candidate_series.append(float(metrics.candidate_pairs))
            speed_series.append(metrics.average_speed)
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    logger.info("ran %d ticks with %d birds", steps, len(world.birds))

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "population": len(world.birds),
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "candidate_pairs": _summary_stats(candidate_series),
            "average_speed": _summary_stats(speed_series),
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless fuzzy flocking simulation")
    parser.add_argument("--steps", type=int, default=240)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-tick metrics")
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file to write run summary.")
    parser.add_argument("--predator", default=None, help="Hold an active predator at 'x,y' for the whole run.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        predator = _parse_predator(args.predator)
    except ValueError as exc:
        parser.error(str(exc))
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        config_path=args.config,
        summary_path=args.summary,
        predator=predator,
    )


if __name__ == "__main__":
    main()
