from __future__ import annotations

from enum import Enum
from typing import List, Optional, Protocol, Sequence


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    IDLE = "idle"


class TrafficMode(str, Enum):
    NORMAL = "normal"
    MORNING = "morning"
    EVENING = "evening"


class DispatchRequest(Protocol):
    """View of a transport request as seen by the scheduler."""

    request_id: int
    origin: int
    destination: int
    arrival_time: float
    assigned_elevator_id: Optional[int]

    @property
    def direction(self) -> Direction:
        ...

    @property
    def picked_up(self) -> bool:
        ...

    @property
    def delivered(self) -> bool:
        ...

    @property
    def is_assigned(self) -> bool:
        ...

    def wait_time(self, now: float) -> float:
        ...

    def assign(self, elevator_id: int) -> None:
        ...

    def reassign(self, elevator_id: int) -> None:
        ...


class DispatchElevator(Protocol):
    """View of an elevator car as seen by the scheduler."""

    elevator_id: int
    current_floor: int
    direction: Direction
    passenger_count: int
    max_capacity: int
    target_floor: Optional[int]
    assigned_requests: List[int]

    @property
    def load(self) -> float:
        ...

    def has_capacity(self) -> bool:
        ...

    def is_idle(self) -> bool:
        ...

    def distance_to(self, floor: int) -> int:
        ...

    def set_target(self, floor: int) -> None:
        ...


class DispatchState(Protocol):
    """The fleet and pool aggregate the scheduler works against each tick."""

    current_time: float
    total_floors: int
    lobby_floor: int
    traffic_mode: TrafficMode
    elevators: Sequence[DispatchElevator]
    pending_requests: Sequence[DispatchRequest]
