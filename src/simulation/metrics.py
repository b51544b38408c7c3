from __future__ import annotations

from dataclasses import dataclass

from .request import Request


@dataclass
class MetricsSnapshot:
    total_requests: int
    completed_requests: int
    average_wait_time: float
    max_wait_time: float
    average_travel_time: float
    elevator_utilization: float


class MetricsTracker:
    """Running aggregates over delivered requests.

    Delivered requests are folded in and discarded, so memory stays flat no
    matter how long the simulation runs.
    """

    def __init__(self) -> None:
        self.total_requests: int = 0
        self.completed_requests: int = 0
        self.total_wait: float = 0.0
        self.max_wait: float = 0.0
        self.total_travel: float = 0.0
        self.utilization: float = 0.0

    def record_arrival(self, count: int = 1) -> None:
        self.total_requests += count

    def record_delivery(self, request: Request) -> None:
        wait = request.total_wait
        travel = request.travel_time
        if wait is None or travel is None:
            raise ValueError(f"Request {request.request_id} has not been delivered")
        self.completed_requests += 1
        self.total_wait += wait
        self.total_travel += travel
        self.max_wait = max(self.max_wait, wait)

    def record_utilization(self, moving: int, fleet_size: int) -> None:
        self.utilization = moving / fleet_size * 100 if fleet_size else 0.0

    def _average(self, total: float) -> float:
        if not self.completed_requests:
            return 0.0
        return total / self.completed_requests

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            total_requests=self.total_requests,
            completed_requests=self.completed_requests,
            average_wait_time=self._average(self.total_wait),
            max_wait_time=self.max_wait,
            average_travel_time=self._average(self.total_travel),
            elevator_utilization=self.utilization,
        )
