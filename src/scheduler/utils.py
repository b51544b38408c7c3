from __future__ import annotations

from typing import Iterable, List, Set

from .interface import Direction, DispatchElevator, DispatchRequest, DispatchState


def direction_between(origin: int, destination: int) -> Direction:
    if destination > origin:
        return Direction.UP
    if destination < origin:
        return Direction.DOWN
    return Direction.IDLE


def route_length(floors: Iterable[int]) -> int:
    """Length of the shortest sweep through a set of floors.

    Visiting floors in sorted order covers the span between the lowest and
    highest stop, which is the optimal ordering for a single sweep.
    """

    ordered = sorted(set(floors))
    if len(ordered) <= 1:
        return 0
    return sum(upper - lower for lower, upper in zip(ordered, ordered[1:]))


def assigned_requests(elevator: DispatchElevator, state: DispatchState) -> List[DispatchRequest]:
    """Active requests owned by an elevator, in pool order."""

    return [
        request
        for request in state.pending_requests
        if request.is_assigned and request.assigned_elevator_id == elevator.elevator_id
    ]


def planned_stops(elevator: DispatchElevator, requests: Iterable[DispatchRequest]) -> Set[int]:
    """Floors the elevator is already committed to visiting."""

    stops: Set[int] = {elevator.current_floor}
    if elevator.target_floor is not None:
        stops.add(elevator.target_floor)
    for request in requests:
        if not request.picked_up:
            stops.add(request.origin)
        if not request.delivered:
            stops.add(request.destination)
    return stops
