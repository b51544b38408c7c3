from __future__ import annotations

import logging
import random
from typing import Callable, Dict, List, Optional, Tuple, Union

from scheduler import HybridScheduler, TrafficMode

from .config import SimulationConfig
from .elevator import Elevator
from .errors import ConfigurationError, InvalidRequestError
from .generator import RequestGenerator
from .metrics import MetricsTracker
from .request import Request, RequestState

logger = logging.getLogger(__name__)

RUSH_HOURS = {TrafficMode.MORNING: 9, TrafficMode.EVENING: 18}
LONG_WAIT_TICKS = 45.0


class Simulation:
    """Time-stepped dispatch simulation owning the fleet and the request pool.

    Every mutation happens either inside :meth:`step` or in a command issued
    between steps. Manually injected requests wait in an inbox and join the
    pool at the start of the next step.
    """

    def __init__(self, config: Optional[SimulationConfig] = None) -> None:
        self.config = config or SimulationConfig()
        self.config.validate()
        self.event_hooks: Dict[str, List[Callable[[object], None]]] = {}
        self._build()

    def _build(self) -> None:
        cfg = self.config
        self.random = random.Random(cfg.random_seed)
        self.generator = RequestGenerator(
            total_floors=cfg.total_floors,
            lobby_floor=cfg.lobby_floor,
            rush_probability=cfg.rush_probability,
            random_state=self.random,
        )
        self.scheduler = HybridScheduler(cfg.scheduler)
        self.metrics = MetricsTracker()
        self.elevators: List[Elevator] = [
            Elevator(
                elevator_id=index + 1,
                max_capacity=cfg.elevator_capacity,
                total_floors=cfg.total_floors,
                current_floor=self._starting_floor(index),
                floors_per_tick=cfg.floors_per_tick,
            )
            for index in range(cfg.total_elevators)
        ]
        self.pending_requests: List[Request] = []
        self._inbox: List[Tuple[Request, Optional[int]]] = []
        self._next_request_id = 1
        self.current_time: float = 0.0
        self.speed: float = cfg.speed
        self.base_arrival_rate: float = cfg.arrival_rate
        self.traffic_mode = TrafficMode.NORMAL
        self.simulation_hour: int = cfg.default_hour
        self.is_running = False

    def _starting_floor(self, index: int) -> int:
        cfg = self.config
        return int(index * (cfg.total_floors / cfg.total_elevators)) + 1

    # Scheduler view ---------------------------------------------------

    @property
    def total_floors(self) -> int:
        return self.config.total_floors

    @property
    def lobby_floor(self) -> int:
        return self.config.lobby_floor

    @property
    def is_rush_hour(self) -> bool:
        return self.traffic_mode != TrafficMode.NORMAL

    @property
    def arrival_rate(self) -> float:
        if self.is_rush_hour:
            return self.base_arrival_rate * self.config.rush_rate_multiplier
        return self.base_arrival_rate

    # Commands ---------------------------------------------------------

    def start(self) -> None:
        self.is_running = True
        logger.info(
            "Simulation started: %d floors, %d elevators, speed %.1fx, %.2f requests/tick, rush hour %s",
            self.total_floors,
            len(self.elevators),
            self.speed,
            self.arrival_rate,
            self.traffic_mode.value,
        )

    def stop(self) -> None:
        self.is_running = False
        stats = self.metrics.snapshot()
        logger.info(
            "Simulation stopped: %d/%d requests completed, average wait %.1f, average travel %.1f, utilization %.1f%%",
            stats.completed_requests,
            stats.total_requests,
            stats.average_wait_time,
            stats.average_travel_time,
            stats.elevator_utilization,
        )

    def reset(self, config: Optional[SimulationConfig] = None) -> None:
        if config is not None:
            config.validate()
            self.config = config
        self._build()
        logger.info(
            "Simulation reset: %d floors, %d elevators", self.total_floors, len(self.elevators)
        )

    def set_speed(self, multiplier: float) -> None:
        if multiplier <= 0:
            raise ConfigurationError("Speed multiplier must be positive")
        self.speed = multiplier
        logger.info("Speed set to %.1fx", multiplier)

    def set_arrival_rate(self, rate: float) -> None:
        if rate < 0:
            raise ConfigurationError("Arrival rate cannot be negative")
        self.base_arrival_rate = rate
        logger.info("Arrival rate set to %.2f requests/tick", rate)

    def enter_rush_hour(self, kind: Union[TrafficMode, str]) -> None:
        try:
            mode = TrafficMode(kind)
        except ValueError:
            raise ConfigurationError(f"Unknown rush-hour kind '{kind}'") from None
        if mode == TrafficMode.NORMAL:
            raise ConfigurationError("Rush hour must be 'morning' or 'evening'")
        self.traffic_mode = mode
        self.simulation_hour = RUSH_HOURS[mode]
        logger.info(
            "%s rush hour started at %d:00, arrival rate %.2f requests/tick",
            mode.value.capitalize(),
            self.simulation_hour,
            self.arrival_rate,
        )

    def exit_rush_hour(self) -> None:
        self.traffic_mode = TrafficMode.NORMAL
        logger.info("Rush hour ended, arrival rate %.2f requests/tick", self.arrival_rate)

    def inject_request(
        self,
        origin: int,
        destination: int,
        elevator_id: Optional[int] = None,
        waited: float = 0.0,
    ) -> Request:
        """Queue an operator request; it joins the pool on the next step."""

        for floor in (origin, destination):
            if not 1 <= floor <= self.total_floors:
                raise InvalidRequestError(
                    f"Floor {floor} is outside the building (1-{self.total_floors})"
                )
        if origin == destination:
            raise InvalidRequestError(f"Request origin and destination must differ (both {origin})")
        request = Request(
            request_id=self._allocate_request_id(),
            origin=origin,
            destination=destination,
            arrival_time=self.current_time - waited,
            is_manual=True,
        )
        self._inbox.append((request, elevator_id))
        logger.debug(
            "Queued manual request %s: floor %s -> %s%s",
            request.request_id,
            origin,
            destination,
            f" for elevator {elevator_id}" if elevator_id is not None else "",
        )
        return request

    def inject_escalation_test(self) -> List[Request]:
        """Queue a long-waiting request next to a fresh one to exercise escalation."""

        floors = self.total_floors
        if floors == 2:
            long_trip, normal_trip = (1, 2), (1, 2)
        elif floors == 3:
            long_trip, normal_trip = (1, 3), (2, 3)
        else:
            long_trip, normal_trip = (floors // 2, floors), (1, floors // 2)
        return [
            self.inject_request(*long_trip, waited=LONG_WAIT_TICKS),
            self.inject_request(*normal_trip),
        ]

    def on_event(self, event: str, callback: Callable[[object], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def get_elevator(self, elevator_id: int) -> Optional[Elevator]:
        for elevator in self.elevators:
            if elevator.elevator_id == elevator_id:
                return elevator
        return None

    # Tick -------------------------------------------------------------

    def run(self, ticks: int) -> None:
        for _ in range(ticks):
            self.step(force=True)

    def step(self, force: bool = False) -> None:
        if not self.is_running and not force:
            return

        self.current_time += self.speed
        generated = self._drain_inbox() + self._generate_requests()

        self.scheduler.rebalance(self)
        self.scheduler.position_idle_elevators(self)
        if len(self.pending_requests) > self.config.scheduler.sort_threshold:
            self.scheduler.sort_by_priority(self.pending_requests, self)
        self._assign_pending()

        completed = self._update_elevators()
        moving = sum(1 for elevator in self.elevators if elevator.is_moving)
        self.metrics.record_utilization(moving, len(self.elevators))

        if generated:
            self._emit("requests_generated", {"time": self.current_time, "count": generated})
        if completed:
            self._emit(
                "requests_completed",
                {
                    "time": self.current_time,
                    "count": len(completed),
                    "requests": [request.to_dict() for request in completed],
                },
            )
        if self.event_hooks.get("tick"):
            self._emit("tick", self.snapshot())

    def _allocate_request_id(self) -> int:
        request_id = self._next_request_id
        self._next_request_id += 1
        return request_id

    def _drain_inbox(self) -> int:
        inbox, self._inbox = self._inbox, []
        for request, elevator_id in inbox:
            self.pending_requests.append(request)
            self.metrics.record_arrival()
            if elevator_id is None:
                continue
            elevator = self.get_elevator(elevator_id)
            if elevator is None:
                logger.warning(
                    "Elevator %s does not exist; request %s falls back to scored assignment",
                    elevator_id,
                    request.request_id,
                )
                continue
            self.scheduler.assign_request(request, elevator, self)
        return len(inbox)

    def _generate_requests(self) -> int:
        count = self.generator.arrivals(self.arrival_rate * self.speed)
        for _ in range(count):
            origin, destination = self.generator.draw(self.traffic_mode)
            request = Request(
                request_id=self._allocate_request_id(),
                origin=origin,
                destination=destination,
                arrival_time=self.current_time,
            )
            self.pending_requests.append(request)
            logger.debug("New request %s: floor %s -> %s", request.request_id, origin, destination)
        self.metrics.record_arrival(count)
        return count

    def _assign_pending(self) -> None:
        for request in self.pending_requests:
            if request.state != RequestState.UNASSIGNED:
                continue
            elevator = self.scheduler.find_best_elevator(request, self)
            if elevator is None:
                logger.debug("No elevator has capacity for request %s; retrying next tick", request.request_id)
                continue
            self.scheduler.assign_request(request, elevator, self)

    def _update_elevators(self) -> List[Request]:
        completed: List[Request] = []
        for elevator in self.elevators:
            if elevator.target_floor is None:
                self.scheduler.update_target(elevator, self)
            elif elevator.has_reached_target():
                elevator.stop()
                elevator.open_doors()
                completed.extend(self._process_passengers(elevator))
                elevator.close_doors()
                self.scheduler.update_target(elevator, self)
            else:
                elevator.move()
        return completed

    def _process_passengers(self, elevator: Elevator) -> List[Request]:
        floor = elevator.current_floor
        owned = [
            request
            for request in self.pending_requests
            if request.is_assigned and request.assigned_elevator_id == elevator.elevator_id
        ]

        delivered: List[Request] = []
        for request in owned:
            if request.state == RequestState.PICKED_UP and request.destination == floor:
                if elevator.remove_passengers(1):
                    request.mark_delivered(self.current_time)
                    delivered.append(request)

        for request in owned:
            if request.state == RequestState.ASSIGNED and request.origin == floor:
                if elevator.add_passengers(1):
                    request.mark_picked_up(self.current_time)
                    logger.debug(
                        "Elevator %s picked up request %s at floor %s",
                        elevator.elevator_id,
                        request.request_id,
                        floor,
                    )
                else:
                    logger.debug(
                        "Elevator %s is full; request %s waits at floor %s",
                        elevator.elevator_id,
                        request.request_id,
                        floor,
                    )

        for request in delivered:
            self.pending_requests.remove(request)
            elevator.assigned_requests.remove(request.request_id)
            self.metrics.record_delivery(request)
            logger.debug(
                "Elevator %s delivered request %s at floor %s (wait %.1f, travel %.1f)",
                elevator.elevator_id,
                request.request_id,
                floor,
                request.total_wait,
                request.travel_time,
            )
        return delivered

    # Reporting --------------------------------------------------------

    def snapshot(self) -> dict:
        stats = self.metrics.snapshot()
        return {
            "time": self.current_time,
            "is_running": self.is_running,
            "speed": self.speed,
            "total_floors": self.total_floors,
            "total_elevators": len(self.elevators),
            "arrival_rate": self.arrival_rate,
            "elevators": [elevator.snapshot() for elevator in self.elevators],
            "pending_requests": len(self.pending_requests),
            "total_requests": stats.total_requests,
            "completed_requests": stats.completed_requests,
            "average_wait_time": stats.average_wait_time,
            "max_wait_time": stats.max_wait_time,
            "average_travel_time": stats.average_travel_time,
            "elevator_utilization": stats.elevator_utilization,
            "is_rush_hour": self.is_rush_hour,
            "rush_hour_type": self.traffic_mode.value,
            "simulation_hour": self.simulation_hour,
        }

    def _emit(self, event: str, payload: object) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)
