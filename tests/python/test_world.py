from __future__ import annotations

import math
import threading

import pytest
from pytest import approx

from fuzzyflock.bird import Bird
from fuzzyflock.config import BirdConfig, SimulationConfig
from fuzzyflock.errors import ConfigurationError, UnknownAgentError
from fuzzyflock.world import (
    World,
    create_world,
    get_agent_snapshot,
    set_predator_active,
    set_predator_position,
    spawn_agent,
    tick,
)
from fuzzyflock.vector import ZERO, Vec2


def _place(world: World, x: float, y: float, vx: float, vy: float) -> Bird:
    bird_config = world.config.bird
    bird = Bird(
        id=-1,
        position=Vec2(x, y),
        velocity=Vec2(vx, vy),
        max_velocity=bird_config.max_velocity,
        max_acceleration=bird_config.max_acceleration,
        closeness=bird_config.closeness,
        influence=bird_config.influence,
        field_of_vision=bird_config.field_of_vision,
    )
    world.add_bird(bird)
    return bird


def run_steps(config: SimulationConfig, steps: int):
    world = World(config)
    trace = []
    for _ in range(steps):
        metrics = world.step()
        trace.append((metrics.candidate_pairs, metrics.interactions, round(metrics.average_speed, 6)))
    return trace, [(round(b.position.x, 6), round(b.position.y, 6)) for b in world.birds]


def test_deterministic_steps():
    result_a = run_steps(SimulationConfig(seed=1234, initial_population=40), 30)
    result_b = run_steps(SimulationConfig(seed=1234, initial_population=40), 30)
    assert result_a == result_b


def test_seeding_assigns_sequential_ids_and_jittered_speeds():
    config = SimulationConfig(seed=5, initial_population=30)
    world = World(config)
    assert [b.id for b in world.birds] == list(range(30))
    base = config.bird.max_velocity
    jitter = config.bird.max_velocity_jitter
    for bird in world.birds:
        assert base * (1 - jitter) <= bird.max_velocity <= base * (1 + jitter)
        assert 0.0 <= bird.position.x < config.width
        assert 0.0 <= bird.position.y < config.height
    assert len({round(b.max_velocity, 9) for b in world.birds}) > 1


def test_velocity_clamped_after_every_tick():
    world = World(SimulationConfig(seed=3, initial_population=60))
    set_predator_position(world, 400.0, 300.0)
    set_predator_active(world, True)
    for _ in range(24):
        world.step()
        for bird in world.birds:
            assert bird.velocity.length() <= bird.max_velocity + 1e-9
            assert 0.0 <= bird.position.x < world.config.width
            assert 0.0 <= bird.position.y < world.config.height


def test_wrapped_pair_scenario():
    world = create_world(800.0, 600.0)
    first = _place(world, 10.0, 300.0, 50.0, 0.0)
    second = _place(world, 790.0, 300.0, -50.0, 0.0)
    assert world.torus.distance(first.position, second.position) == approx(20.0)

    metrics = tick(world, 1.0 / 24.0)

    assert metrics.interactions == 1
    assert first.peak_memberships[0] > 0.0
    assert second.peak_memberships[0] > 0.0
    # pushed apart through the edge: first speeds up to the right, second to the left
    assert first.velocity.x > 0.0
    assert second.velocity.x < 0.0


def test_predator_dormant_when_inactive():
    world = create_world(800.0, 600.0)
    bird = _place(world, 200.0, 200.0, 10.0, 0.0)
    set_predator_position(world, 200.0, 200.0)
    world.step()
    assert bird.predator_membership == 0.0
    assert bird.acceleration == ZERO
    assert world.predator.active is False
    assert world.predator.position == Vec2(200.0, 200.0)


def test_predator_at_exact_position_is_maximal():
    world = create_world(800.0, 600.0)
    bird = _place(world, 200.0, 200.0, 10.0, 0.0)
    set_predator_position(world, 200.0, 200.0)
    set_predator_active(world, True)
    metrics = world.step()
    assert bird.predator_membership == 1.0
    assert metrics.fleeing == 1
    assert metrics.predator_active
    assert math.isfinite(bird.position.x) and math.isfinite(bird.position.y)


def test_predator_outside_domain_acts_at_its_wrapped_position():
    world = create_world(800.0, 600.0)
    bird = _place(world, 10.0, 300.0, 10.0, 0.0)
    set_predator_position(world, 1610.0, 300.0)
    set_predator_active(world, True)
    tick(world)
    assert world.predator.position == Vec2(10.0, 300.0)
    assert bird.predator_membership == 1.0


def test_predator_updates_apply_at_next_tick():
    world = create_world(800.0, 600.0)
    _place(world, 100.0, 100.0, 10.0, 0.0)
    world.predator_input.set(50.0, 60.0, True)
    assert world.predator.active is False
    world.step()
    assert world.predator.active is True
    assert world.predator.position == Vec2(50.0, 60.0)


def test_predator_input_is_consistent_under_concurrent_writes():
    world = create_world(800.0, 600.0)
    stop = threading.Event()

    def writer():
        flag = False
        while not stop.is_set():
            flag = not flag
            value = 1.0 if flag else 2.0
            world.predator_input.set(value, value, flag)

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(2000):
            state = world.predator_input.latch()
            if state.active:
                assert state.position == Vec2(1.0, 1.0)
            elif state.position != ZERO:
                assert state.position == Vec2(2.0, 2.0)
    finally:
        stop.set()
        thread.join()


def test_step_result_does_not_depend_on_bird_order():
    forward = World(SimulationConfig(seed=17, initial_population=25))
    backward = World(SimulationConfig(seed=17, initial_population=25))
    backward.birds.reverse()
    for world in (forward, backward):
        world.predator_input.set(400.0, 300.0, True)
        world.step()

    by_id = {bird.id: bird for bird in backward.birds}
    for bird in forward.birds:
        other = by_id[bird.id]
        assert bird.position.x == approx(other.position.x, abs=1e-9)
        assert bird.position.y == approx(other.position.y, abs=1e-9)
        assert bird.velocity.x == approx(other.velocity.x, abs=1e-9)
        assert bird.velocity.y == approx(other.velocity.y, abs=1e-9)
        assert bird.color == other.color


def test_spawn_agent_and_snapshot():
    world = create_world(320.0, 240.0)
    ids = [spawn_agent(world) for _ in range(5)]
    assert ids == [0, 1, 2, 3, 4]
    world.step()
    snapshot = get_agent_snapshot(world)
    assert [entry["id"] for entry in snapshot] == ids
    for entry in snapshot:
        assert set(entry) == {"id", "x", "y", "color_hint"}
        assert 0.0 <= entry["x"] < 320.0
        assert entry["color_hint"].startswith("rgb(")


def test_full_snapshot_contains_world_and_metrics():
    config = SimulationConfig(seed=7, initial_population=3, time_step=0.5)
    world = World(config)
    idle = world.snapshot()
    assert idle.tick == 0
    assert idle.metrics.population == 3

    world.step()
    snapshot = world.snapshot()
    assert snapshot.tick == 1
    assert snapshot.world.width == approx(800.0)
    assert snapshot.world.time_step == approx(0.5)
    assert snapshot.world.seed == 7
    payload = snapshot.agents[0]
    for key in ["id", "x", "y", "vx", "vy", "heading", "speed", "color", "color_hint"]:
        assert key in payload
    assert payload["speed"] == approx(Vec2(payload["vx"], payload["vy"]).length())
    assert snapshot.predator == {"x": 0.0, "y": 0.0, "active": False}


def test_unknown_agent_lookup_fails():
    world = create_world(100.0, 100.0)
    spawn_agent(world)
    assert world.bird(0).id == 0
    with pytest.raises(UnknownAgentError):
        world.bird(1)
    with pytest.raises(LookupError):
        world.bird(-1)


@pytest.mark.parametrize(
    "config",
    [
        SimulationConfig(width=0.0),
        SimulationConfig(height=-5.0),
        SimulationConfig(bird=BirdConfig(closeness=-1.0)),
        SimulationConfig(bird=BirdConfig(closeness=200.0, influence=150.0)),
        SimulationConfig(neighbor_distance=0.0),
        SimulationConfig(width=float("inf")),
        SimulationConfig(height=float("nan")),
        SimulationConfig(time_step=float("inf")),
        SimulationConfig(neighbor_distance=float("inf")),
        SimulationConfig(bird=BirdConfig(influence=float("inf"))),
        SimulationConfig(bird=BirdConfig(max_velocity=float("inf"))),
    ],
)
def test_invalid_configuration_rejected(config):
    with pytest.raises(ConfigurationError):
        World(config)


def test_create_world_rejects_bad_dimensions():
    with pytest.raises(ValueError):
        create_world(0.0, 100.0)
    with pytest.raises(ConfigurationError):
        create_world(float("inf"), 600.0)


@pytest.mark.parametrize("dt", [0.0, -1.0, float("nan")])
def test_invalid_dt_rejected(dt):
    world = create_world(100.0, 100.0)
    with pytest.raises(ConfigurationError):
        world.step(dt)


def test_reset_restores_initial_population():
    world = World(SimulationConfig(seed=21, initial_population=10))
    initial = [(b.position, b.velocity) for b in world.birds]
    world.predator_input.set(1.0, 1.0, True)
    for _ in range(5):
        world.step()
    world.reset()
    assert world.tick_count == 0
    assert [(b.position, b.velocity) for b in world.birds] == initial
    assert world.predator_input.latch().active is False


@pytest.mark.slow
def test_long_run_keeps_invariants():
    world = World(SimulationConfig(seed=99, initial_population=200))
    for step in range(2400):
        world.predator_input.set(400.0, 300.0, step % 240 < 48)
        metrics = world.step()
        assert metrics.population == 200
    for bird in world.birds:
        assert bird.velocity.length() <= bird.max_velocity + 1e-9
        assert math.isfinite(bird.position.x) and math.isfinite(bird.position.y)
