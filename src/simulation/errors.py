from __future__ import annotations


class SimulationError(Exception):
    """Base class for errors raised by the dispatch simulation."""


class ConfigurationError(SimulationError, ValueError):
    """Raised when a simulation is built or reconfigured with invalid settings."""


class InvalidRequestError(SimulationError, ValueError):
    """Raised when a request names floors the building cannot serve."""


class RequestStateError(SimulationError):
    """Raised on an illegal request lifecycle transition."""
