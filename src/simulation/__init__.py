"""Dispatch simulation primitives: requests, elevators and the tick engine."""

from .config import SimulationConfig
from .elevator import Elevator, ElevatorPhase
from .errors import ConfigurationError, InvalidRequestError, RequestStateError, SimulationError
from .generator import RequestGenerator
from .metrics import MetricsSnapshot, MetricsTracker
from .request import Request, RequestState
from .simulation import Simulation

__all__ = [
    "ConfigurationError",
    "Elevator",
    "ElevatorPhase",
    "InvalidRequestError",
    "MetricsSnapshot",
    "MetricsTracker",
    "Request",
    "RequestGenerator",
    "RequestState",
    "RequestStateError",
    "Simulation",
    "SimulationConfig",
    "SimulationError",
]
