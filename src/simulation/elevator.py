from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from scheduler import Direction
from scheduler.utils import direction_between


class ElevatorPhase(str, Enum):
    IDLE = "idle"
    TARGETING = "targeting"
    AT_TARGET = "at_target"


@dataclass
class Elevator:
    """A single car with a target floor, door state and passenger count."""

    elevator_id: int
    max_capacity: int
    total_floors: int
    current_floor: int = 1
    floors_per_tick: int = 1
    direction: Direction = Direction.IDLE
    passenger_count: int = 0
    doors_open: bool = False
    target_floor: Optional[int] = None
    is_moving: bool = False
    assigned_requests: List[int] = field(default_factory=list)

    @property
    def phase(self) -> ElevatorPhase:
        if self.target_floor is None:
            return ElevatorPhase.IDLE
        if self.has_reached_target():
            return ElevatorPhase.AT_TARGET
        return ElevatorPhase.TARGETING

    @property
    def available_capacity(self) -> int:
        return self.max_capacity - self.passenger_count

    @property
    def load(self) -> float:
        return len(self.assigned_requests) + self.passenger_count / self.max_capacity

    def set_target(self, floor: int) -> None:
        if not 1 <= floor <= self.total_floors:
            raise ValueError(f"Floor {floor} is outside the building (1-{self.total_floors})")
        self.target_floor = floor
        self.direction = direction_between(self.current_floor, floor)

    def move(self) -> None:
        if self.target_floor is None or self.direction == Direction.IDLE:
            return
        if self.direction == Direction.UP:
            next_floor = min(self.current_floor + self.floors_per_tick, self.target_floor, self.total_floors)
        else:
            next_floor = max(self.current_floor - self.floors_per_tick, self.target_floor, 1)
        self.is_moving = next_floor != self.current_floor
        self.current_floor = next_floor
        if next_floor == self.target_floor:
            self.direction = Direction.IDLE

    def has_reached_target(self) -> bool:
        return self.target_floor is not None and self.current_floor == self.target_floor

    def stop(self) -> None:
        self.direction = Direction.IDLE
        self.is_moving = False
        self.target_floor = None

    def open_doors(self) -> None:
        self.doors_open = True

    def close_doors(self) -> None:
        self.doors_open = False

    def add_passengers(self, count: int = 1) -> bool:
        if count < 0 or self.passenger_count + count > self.max_capacity:
            return False
        self.passenger_count += count
        return True

    def remove_passengers(self, count: int = 1) -> bool:
        if count < 0 or count > self.passenger_count:
            return False
        self.passenger_count -= count
        return True

    def has_capacity(self) -> bool:
        return self.available_capacity > 0

    def is_idle(self) -> bool:
        return self.direction == Direction.IDLE and not self.is_moving and self.target_floor is None

    def distance_to(self, floor: int) -> int:
        return abs(self.current_floor - floor)

    def snapshot(self) -> dict:
        return {
            "id": self.elevator_id,
            "current_floor": self.current_floor,
            "direction": self.direction.value,
            "passenger_count": self.passenger_count,
            "max_capacity": self.max_capacity,
            "available_capacity": self.available_capacity,
            "doors_open": self.doors_open,
            "target_floor": self.target_floor,
            "is_moving": self.is_moving,
            "phase": self.phase.value,
            "assigned_requests": list(self.assigned_requests),
        }
