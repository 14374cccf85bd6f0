from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from .config import SimulationConfig
from .world import World

logger = logging.getLogger(__name__)


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True
        logger.info("simulation started")

    async def stop(self) -> None:
        self.running = False
        logger.info("simulation stopped at tick %d", self.world.tick_count)

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
        await self._broadcast_snapshot()

    async def advance(self) -> None:
        async with self._lock:
            self.world.step()
        if self.world.tick_count % self.broadcast_interval == 0:
            await self._broadcast_snapshot()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            await self.advance()

    def apply_pointer(self, payload: Dict[str, Any]) -> None:
        """Update the predator from a pointer message; missing fields keep their value."""
        current = self.world.predator_input.latch()
        x = float(payload.get("x", current.position.x))
        y = float(payload.get("y", current.position.y))
        active = bool(payload.get("active", current.active))
        self.world.predator_input.set(x, y, active)

    def serialize_snapshot(self) -> str:
        snapshot = self.world.snapshot()
        return json.dumps(
            {
                "type": "snapshot",
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "world": asdict(snapshot.world),
                "predator": snapshot.predator,
                "agents": self.world.agent_snapshot(),
            }
        )

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        payload = self.serialize_snapshot()
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await client.send_text(payload)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            logger.info("dropped disconnected client")


app = FastAPI(title="Fuzzy Flocking Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.world.snapshot()
    return JSONResponse(
        {
            "running": controller.running,
            "tick": snapshot.tick,
            "population": len(controller.world.birds),
            "metrics": asdict(snapshot.metrics),
            "predator": snapshot.predator,
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.world.tick_count})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/predator")
async def set_predator(payload: dict) -> JSONResponse:
    try:
        controller.apply_pointer(payload)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    state = controller.world.predator_input.latch()
    return JSONResponse({"x": state.position.x, "y": state.position.y, "active": state.active})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    logger.info("client connected (%d total)", len(controller.clients))
    await websocket.send_text(controller.serialize_snapshot())
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict) and payload.get("type") == "pointer":
                try:
                    controller.apply_pointer(payload)
                except (TypeError, ValueError):
                    logger.warning("ignored malformed pointer message: %s", message)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        logger.info("client disconnected (%d remaining)", len(controller.clients))


__all__ = ["app", "controller", "SimulationController"]
