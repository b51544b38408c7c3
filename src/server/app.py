from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from dataclasses import replace
from typing import Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from simulation import Request, Simulation, SimulationConfig

logger = logging.getLogger(__name__)


class ResetRequest(BaseModel):
    total_floors: int = Field(20, ge=2)
    total_elevators: int = Field(4, ge=1)
    arrival_rate: float = Field(1.0, ge=0)


class SpeedUpdate(BaseModel):
    multiplier: float = Field(..., gt=0)


class ArrivalRateUpdate(BaseModel):
    rate: float = Field(..., ge=0)


class ManualRequest(BaseModel):
    origin: int = Field(..., ge=1)
    destination: int = Field(..., ge=1)
    elevator_id: Optional[int] = None


class RushHourRequest(BaseModel):
    kind: Literal["morning", "evening"]


class ClientChannel:
    """Per-viewer outbox holding only the newest unsent snapshot."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        self._task = asyncio.create_task(self._pump())

    def publish(self, message: str) -> None:
        if self.queue.full():
            self.queue.get_nowait()
        self.queue.put_nowait(message)

    async def close(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _pump(self) -> None:
        while True:
            message = await self.queue.get()
            try:
                await self.websocket.send_text(message)
            except (WebSocketDisconnect, RuntimeError):
                return


class SimulationManager:
    def __init__(self, config: Optional[SimulationConfig] = None, tick_interval: float = 1.0) -> None:
        self.simulation = Simulation(config)
        self.tick_interval = tick_interval
        self.clients: Dict[WebSocket, ClientChannel] = {}
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._tick_events = {"generated": 0, "completed": 0}
        self.simulation.on_event("requests_generated", self._count_generated)
        self.simulation.on_event("requests_completed", self._count_completed)

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> dict:
        async with self._lock:
            self.simulation.start()
            if self._task is None:
                self._task = asyncio.create_task(self._run())
            return self.current_state()

    async def stop(self) -> dict:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        async with self._lock:
            if self.simulation.is_running:
                self.simulation.stop()
            return self.current_state()

    async def _run(self) -> None:
        while True:
            async with self._lock:
                payload = self._advance()
            self.publish(payload)
            await asyncio.sleep(self.tick_interval)

    def _advance(self) -> dict:
        self._tick_events = {"generated": 0, "completed": 0}
        self.simulation.step(force=True)
        payload = self.current_state()
        payload["events"] = dict(self._tick_events)
        return payload

    def _count_generated(self, payload: dict) -> None:
        self._tick_events["generated"] += payload["count"]

    def _count_completed(self, payload: dict) -> None:
        self._tick_events["completed"] += payload["count"]

    def publish(self, payload: dict) -> None:
        message = json.dumps(payload)
        for channel in list(self.clients.values()):
            channel.publish(message)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        await websocket.send_text(json.dumps(self.current_state()))
        channel = ClientChannel(websocket)
        channel.start()
        self.clients[websocket] = channel
        logger.info("Viewer connected (%d total)", len(self.clients))

    async def unregister(self, websocket: WebSocket) -> None:
        channel = self.clients.pop(websocket, None)
        if channel:
            await channel.close()
            logger.info("Viewer disconnected (%d remaining)", len(self.clients))
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        return {"type": "simulation-state", "state": self.simulation.snapshot()}

    async def step_once(self) -> dict:
        async with self._lock:
            payload = self._advance()
        self.publish(payload)
        return payload

    async def reset(self, total_floors: int, total_elevators: int, arrival_rate: float) -> dict:
        await self.stop()
        async with self._lock:
            config = replace(
                self.simulation.config,
                total_floors=total_floors,
                total_elevators=total_elevators,
                arrival_rate=arrival_rate,
            )
            self.simulation.reset(config)
            payload = self.current_state()
        self.publish(payload)
        return payload

    async def set_speed(self, multiplier: float) -> dict:
        async with self._lock:
            self.simulation.set_speed(multiplier)
            return self.current_state()

    async def set_arrival_rate(self, rate: float) -> dict:
        async with self._lock:
            self.simulation.set_arrival_rate(rate)
            return self.current_state()

    async def inject(self, origin: int, destination: int, elevator_id: Optional[int]) -> dict:
        async with self._lock:
            request = self.simulation.inject_request(origin, destination, elevator_id)
            state = self.current_state()
            state["request"] = request.to_dict()
            return state

    async def inject_escalation_test(self) -> dict:
        async with self._lock:
            requests: List[Request] = self.simulation.inject_escalation_test()
            state = self.current_state()
            state["requests"] = [request.to_dict() for request in requests]
            return state

    async def enter_rush_hour(self, kind: str) -> dict:
        async with self._lock:
            self.simulation.enter_rush_hour(kind)
            return self.current_state()

    async def exit_rush_hour(self) -> dict:
        async with self._lock:
            self.simulation.exit_rush_hour()
            return self.current_state()


manager = SimulationManager(tick_interval=float(os.environ.get("TICK_INTERVAL", "1.0")))
app = FastAPI(title="Elevator Dispatch Simulation API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await manager.stop()


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "running": manager.running}


@app.get("/state")
async def get_state() -> dict:
    return manager.current_state()


@app.post("/simulation/start")
async def start_simulation() -> dict:
    return await manager.start()


@app.post("/simulation/stop")
async def stop_simulation() -> dict:
    return await manager.stop()


@app.post("/simulation/step")
async def step_simulation() -> dict:
    return await manager.step_once()


@app.post("/simulation/reset")
async def reset_simulation(request: ResetRequest) -> dict:
    try:
        return await manager.reset(request.total_floors, request.total_elevators, request.arrival_rate)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/simulation/speed")
async def change_speed(update: SpeedUpdate) -> dict:
    try:
        return await manager.set_speed(update.multiplier)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/simulation/arrival-rate")
async def change_arrival_rate(update: ArrivalRateUpdate) -> dict:
    try:
        return await manager.set_arrival_rate(update.rate)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/requests")
async def inject_request(request: ManualRequest) -> dict:
    try:
        return await manager.inject(request.origin, request.destination, request.elevator_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/requests/escalation-test")
async def inject_escalation_test() -> dict:
    return await manager.inject_escalation_test()


@app.post("/rush-hour")
async def start_rush_hour(request: RushHourRequest) -> dict:
    try:
        return await manager.enter_rush_hour(request.kind)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.delete("/rush-hour")
async def end_rush_hour() -> dict:
    return await manager.exit_rush_hour()


@app.websocket("/ws/stream")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await manager.register(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "server.app:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=False,
    )
