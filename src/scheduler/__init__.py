from __future__ import annotations

from .config import PriorityPolicy, SchedulerConfig, ScoringWeights
from .hybrid import ElevatorScore, HybridScheduler
from .interface import Direction, DispatchElevator, DispatchRequest, DispatchState, TrafficMode
from .priority import escalated_priority

__all__ = [
    "Direction",
    "DispatchElevator",
    "DispatchRequest",
    "DispatchState",
    "ElevatorScore",
    "HybridScheduler",
    "PriorityPolicy",
    "SchedulerConfig",
    "ScoringWeights",
    "TrafficMode",
    "escalated_priority",
]
