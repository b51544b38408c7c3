from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from scheduler import Direction

from .errors import InvalidRequestError, RequestStateError


class RequestState(str, Enum):
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"


@dataclass
class Request:
    """One rider's trip from an origin floor to a destination floor.

    State only moves forward: unassigned, assigned, picked up, delivered.
    """

    request_id: int
    origin: int
    destination: int
    arrival_time: float
    is_manual: bool = False
    state: RequestState = RequestState.UNASSIGNED
    assigned_elevator_id: Optional[int] = None
    pickup_time: Optional[float] = None
    delivery_time: Optional[float] = None

    def __post_init__(self) -> None:
        if self.origin == self.destination:
            raise InvalidRequestError(
                f"Request origin and destination must differ (both {self.origin})"
            )

    @property
    def direction(self) -> Direction:
        """UP when the destination is above the origin, otherwise DOWN."""
        return Direction.UP if self.destination > self.origin else Direction.DOWN

    @property
    def is_assigned(self) -> bool:
        return self.state in (RequestState.ASSIGNED, RequestState.PICKED_UP)

    @property
    def picked_up(self) -> bool:
        return self.state in (RequestState.PICKED_UP, RequestState.DELIVERED)

    @property
    def delivered(self) -> bool:
        return self.state == RequestState.DELIVERED

    def wait_time(self, now: float) -> float:
        return now - self.arrival_time

    def assign(self, elevator_id: int) -> None:
        if self.state != RequestState.UNASSIGNED:
            raise RequestStateError(f"Request {self.request_id} is already {self.state.value}")
        self.assigned_elevator_id = elevator_id
        self.state = RequestState.ASSIGNED

    def reassign(self, elevator_id: int) -> None:
        if self.state != RequestState.ASSIGNED:
            raise RequestStateError(
                f"Request {self.request_id} can only be reassigned before pickup"
            )
        self.assigned_elevator_id = elevator_id

    def mark_picked_up(self, now: float) -> None:
        if self.state != RequestState.ASSIGNED:
            raise RequestStateError(f"Request {self.request_id} cannot be picked up while {self.state.value}")
        self.pickup_time = now
        self.state = RequestState.PICKED_UP

    def mark_delivered(self, now: float) -> None:
        if self.state != RequestState.PICKED_UP:
            raise RequestStateError(f"Request {self.request_id} cannot be delivered while {self.state.value}")
        self.delivery_time = now
        self.state = RequestState.DELIVERED

    @property
    def total_wait(self) -> Optional[float]:
        """Arrival to delivery, the figure folded into the wait aggregates."""
        if self.delivery_time is None:
            return None
        return self.delivery_time - self.arrival_time

    @property
    def travel_time(self) -> Optional[float]:
        if self.pickup_time is None or self.delivery_time is None:
            return None
        return self.delivery_time - self.pickup_time

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "origin": self.origin,
            "destination": self.destination,
            "arrival_time": self.arrival_time,
            "state": self.state.value,
            "assigned_elevator_id": self.assigned_elevator_id,
            "is_manual": self.is_manual,
        }
