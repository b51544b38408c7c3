from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import SchedulerConfig
from .interface import Direction, DispatchElevator, DispatchRequest, DispatchState, TrafficMode
from .priority import escalated_priority
from .utils import assigned_requests, planned_stops, route_length

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElevatorScore:
    """Per-factor breakdown of how well an elevator fits a request."""

    elevator_id: int
    total: float
    distance: float
    load: float
    route: float
    direction: float
    priority: float
    experience: float


class HybridScheduler:
    """Scores every car on distance, load, route fit, direction and priority.

    The scheduler keeps no fleet state of its own; every call receives the
    simulation aggregate and mutates only the requests and elevators it is
    handed.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None) -> None:
        self.config = config or SchedulerConfig()
        self.config.validate()

    # Priority ---------------------------------------------------------

    def request_priority(self, request: DispatchRequest, state: DispatchState) -> float:
        cfg = self.config
        priority = escalated_priority(request.wait_time(state.current_time), cfg.priority)
        mode = state.traffic_mode
        if mode == TrafficMode.MORNING:
            if request.direction == Direction.UP:
                priority += cfg.traffic_direction_bonus
            if request.origin == state.lobby_floor:
                priority += cfg.lobby_rush_priority_bonus
        elif mode == TrafficMode.EVENING:
            if request.direction == Direction.DOWN:
                priority += cfg.traffic_direction_bonus
            if request.destination == state.lobby_floor:
                priority += cfg.lobby_rush_priority_bonus
        return priority

    def sort_by_priority(self, requests: List[DispatchRequest], state: DispatchState) -> None:
        """Order requests highest priority first; equal priorities keep pool order."""

        priorities = {request.request_id: self.request_priority(request, state) for request in requests}
        requests.sort(key=lambda request: priorities[request.request_id], reverse=True)

    # Assignment -------------------------------------------------------

    def find_best_elevator(
        self, request: DispatchRequest, state: DispatchState
    ) -> Optional[DispatchElevator]:
        available = [elevator for elevator in state.elevators if elevator.has_capacity()]
        if not available:
            return None
        scores = [self.score_elevator(elevator, request, state) for elevator in available]
        scores.sort(key=lambda score: (-score.total, score.elevator_id))
        best = scores[0]
        logger.debug(
            "Request %s best fit elevator %s (score %.2f, %d candidates)",
            request.request_id,
            best.elevator_id,
            best.total,
            len(scores),
        )
        return next(e for e in available if e.elevator_id == best.elevator_id)

    def assign_request(
        self, request: DispatchRequest, elevator: DispatchElevator, state: DispatchState
    ) -> None:
        request.assign(elevator.elevator_id)
        if request.request_id not in elevator.assigned_requests:
            elevator.assigned_requests.append(request.request_id)
        self.update_target(elevator, state)

    def score_elevator(
        self, elevator: DispatchElevator, request: DispatchRequest, state: DispatchState
    ) -> ElevatorScore:
        cfg = self.config
        weights = cfg.weights
        distance = elevator.distance_to(request.origin)
        load = elevator.load

        direct = max(0.0, 100 - distance * cfg.distance_penalty)
        distance_score = max(0.0, direct * (1 - load * cfg.load_attenuation))
        load_score = max(0.0, 100 - load * cfg.load_penalty)
        route_score = self.route_efficiency(elevator, request, state) * 100
        direction_score = self.direction_match(elevator, request) * 100
        priority_score = min(100.0, self.request_priority(request, state) * cfg.priority_scale)
        experience_score = self.experience_bonus(request, state)

        total = (
            distance_score * weights.distance
            + load_score * weights.load
            + route_score * weights.route
            + direction_score * weights.direction
            + priority_score * weights.priority
            + experience_score * weights.experience
        )
        return ElevatorScore(
            elevator_id=elevator.elevator_id,
            total=total,
            distance=distance_score,
            load=load_score,
            route=route_score,
            direction=direction_score,
            priority=priority_score,
            experience=experience_score,
        )

    def route_efficiency(
        self, elevator: DispatchElevator, request: DispatchRequest, state: DispatchState
    ) -> float:
        owned = assigned_requests(elevator, state)
        floors = max(1, state.total_floors)
        if not owned:
            return max(0.0, 1 - elevator.distance_to(request.origin) / floors)

        stops = planned_stops(elevator, owned)
        origin_in_path = request.origin in stops
        destination_in_path = request.destination in stops
        if origin_in_path and destination_in_path:
            return 1.0
        if origin_in_path or destination_in_path:
            return self.config.one_floor_in_path

        added = route_length(stops | {request.origin, request.destination}) - route_length(stops)
        return max(0.0, 1 - added / (floors * self.config.route_span_factor))

    def direction_match(self, elevator: DispatchElevator, request: DispatchRequest) -> float:
        if elevator.direction == Direction.IDLE:
            return self.config.idle_direction_score
        if elevator.direction == request.direction:
            return 1.0
        return self.config.mismatch_direction_score

    def experience_bonus(self, request: DispatchRequest, state: DispatchState) -> float:
        cfg = self.config
        bonus = 0.0
        wait = request.wait_time(state.current_time)
        for threshold, tier_bonus in sorted(cfg.wait_bonus_tiers, reverse=True):
            if wait > threshold:
                bonus += tier_bonus
                break

        lobby = state.lobby_floor
        if state.traffic_mode == TrafficMode.MORNING and request.origin == lobby:
            bonus += cfg.rush_lobby_bonus
        elif state.traffic_mode == TrafficMode.EVENING and request.destination == lobby:
            bonus += cfg.rush_lobby_bonus

        if request.origin in cfg.high_traffic_floors:
            bonus += cfg.high_traffic_bonus
        return bonus

    # Targeting --------------------------------------------------------

    def update_target(self, elevator: DispatchElevator, state: DispatchState) -> Optional[int]:
        """Point the elevator at the pickup or drop-off of its most urgent request."""

        candidates = assigned_requests(elevator, state)
        if not elevator.has_capacity():
            # A full car can only make progress by delivering.
            candidates = [request for request in candidates if request.picked_up]
        if not candidates:
            return None

        now = state.current_time
        next_request = min(
            candidates,
            key=lambda request: (
                -self.request_priority(request, state),
                -request.wait_time(now),
                request.request_id,
            ),
        )
        target = next_request.destination if next_request.picked_up else next_request.origin
        if elevator.target_floor != target:
            elevator.set_target(target)
            logger.debug(
                "Elevator %s targeting floor %s (%s) for request %s",
                elevator.elevator_id,
                target,
                "delivery" if next_request.picked_up else "pickup",
                next_request.request_id,
            )
        return target

    # Fleet maintenance ------------------------------------------------

    def rebalance(self, state: DispatchState) -> int:
        """Shift waiting requests off the busiest car when loads diverge."""

        elevators = list(state.elevators)
        if len(elevators) < 2:
            return 0
        loads = [len(elevator.assigned_requests) for elevator in elevators]
        difference = max(loads) - min(loads)
        if difference <= self.config.rebalance_threshold:
            return 0

        overloaded = elevators[loads.index(max(loads))]
        underloaded = elevators[loads.index(min(loads))]
        quota = math.floor(difference / self.config.rebalance_divisor)
        by_id: Dict[int, DispatchRequest] = {r.request_id: r for r in state.pending_requests}

        moved = 0
        for request_id in list(overloaded.assigned_requests[:quota]):
            request = by_id.get(request_id)
            if request is None or request.picked_up:
                continue
            request.reassign(underloaded.elevator_id)
            overloaded.assigned_requests.remove(request_id)
            underloaded.assigned_requests.append(request_id)
            moved += 1
        if moved:
            logger.debug(
                "Rebalanced %d request(s) from elevator %s to elevator %s (load difference %d)",
                moved,
                overloaded.elevator_id,
                underloaded.elevator_id,
                difference,
            )
        return moved

    def high_demand_floor(self, state: DispatchState) -> Optional[int]:
        """Floor with the most weighted unassigned demand, or None when there is none."""

        demand: Dict[int, int] = {}
        for request in state.pending_requests:
            if request.is_assigned:
                continue
            demand[request.origin] = demand.get(request.origin, 0) + self.config.origin_demand_weight
            demand[request.destination] = (
                demand.get(request.destination, 0) + self.config.destination_demand_weight
            )

        best_floor: Optional[int] = None
        best_count = 0
        for floor, count in demand.items():
            if count > best_count:
                best_floor = floor
                best_count = count
        return best_floor

    def position_idle_elevators(self, state: DispatchState) -> List[int]:
        """Send empty idle cars toward the floor where demand is building."""

        floor = self.high_demand_floor(state)
        if floor is None:
            return []
        moved: List[int] = []
        for elevator in state.elevators:
            if not elevator.is_idle() or elevator.passenger_count or elevator.assigned_requests:
                continue
            if elevator.distance_to(floor) > self.config.positioning_distance:
                elevator.set_target(floor)
                moved.append(elevator.elevator_id)
                logger.debug(
                    "Positioning idle elevator %s toward floor %s", elevator.elevator_id, floor
                )
        return moved
