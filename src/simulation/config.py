from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from scheduler import SchedulerConfig

from .errors import ConfigurationError


@dataclass
class SimulationConfig:
    """Building, fleet and traffic settings consumed at construction and reset."""

    total_floors: int = 20
    total_elevators: int = 4
    arrival_rate: float = 1.0
    elevator_capacity: int = 15
    floors_per_tick: int = 1
    lobby_floor: int = 1
    speed: float = 1.0
    random_seed: Optional[int] = None
    rush_probability: float = 0.7
    rush_rate_multiplier: float = 2.0
    default_hour: int = 12
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    def validate(self) -> None:
        if self.total_floors < 2:
            raise ConfigurationError("Building must have at least two floors")
        if self.total_elevators < 1:
            raise ConfigurationError("Simulation requires at least one elevator")
        if self.elevator_capacity < 1:
            raise ConfigurationError("Elevator capacity must be at least one passenger")
        if self.floors_per_tick < 1:
            raise ConfigurationError("Elevators must move at least one floor per tick")
        if self.arrival_rate < 0:
            raise ConfigurationError("Arrival rate cannot be negative")
        if self.speed <= 0:
            raise ConfigurationError("Speed multiplier must be positive")
        if not 1 <= self.lobby_floor <= self.total_floors:
            raise ConfigurationError("Lobby floor must be inside the building")
        if not 0.0 <= self.rush_probability <= 1.0:
            raise ConfigurationError("Rush-hour probability must be between 0 and 1")
        if self.rush_rate_multiplier <= 0:
            raise ConfigurationError("Rush-hour rate multiplier must be positive")
        if not 0 <= self.default_hour < 24:
            raise ConfigurationError("Default hour must be between 0 and 23")
        try:
            self.scheduler.validate()
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    @classmethod
    def from_dict(cls, data: Dict) -> "SimulationConfig":
        building = data.get("building", {})
        scheduler_cfg = data.get("scheduler", {})
        try:
            scheduler = SchedulerConfig.from_dict(scheduler_cfg)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid scheduler configuration: {exc}") from exc

        cfg = cls(
            total_floors=building.get("total_floors", data.get("total_floors", 20)),
            total_elevators=building.get("total_elevators", data.get("total_elevators", 4)),
            arrival_rate=data.get("arrival_rate", 1.0),
            elevator_capacity=building.get("elevator_capacity", 15),
            floors_per_tick=building.get("floors_per_tick", 1),
            lobby_floor=building.get("lobby_floor", 1),
            speed=data.get("speed", 1.0),
            random_seed=data.get("random_seed"),
            rush_probability=data.get("rush_probability", 0.7),
            rush_rate_multiplier=data.get("rush_rate_multiplier", 2.0),
            default_hour=data.get("default_hour", 12),
            scheduler=scheduler,
        )
        cfg.validate()
        return cfg
