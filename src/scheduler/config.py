from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Tuple


@dataclass
class PriorityPolicy:
    """Wait-time escalation used to rank requests and prevent starvation."""

    escalation_threshold: float = 30.0
    escalation_exponent: float = 1.5
    step_threshold: float = 60.0
    step_bonus: float = 25.0
    final_step_threshold: float = 120.0
    final_step_bonus: float = 100.0

    def validate(self) -> None:
        if self.escalation_exponent <= 1.0:
            raise ValueError("Escalation exponent must be greater than 1")
        if not self.escalation_threshold < self.step_threshold < self.final_step_threshold:
            raise ValueError("Priority thresholds must be strictly increasing")
        if self.step_bonus < 0 or self.final_step_bonus < 0:
            raise ValueError("Priority step bonuses cannot be negative")


@dataclass
class ScoringWeights:
    """Relative weight of each factor in an elevator's total score."""

    distance: float = 0.35
    load: float = 0.20
    route: float = 0.25
    direction: float = 0.15
    priority: float = 0.03
    experience: float = 0.02

    def validate(self) -> None:
        for item in fields(self):
            if getattr(self, item.name) < 0:
                raise ValueError(f"Scoring weight '{item.name}' cannot be negative")


@dataclass
class SchedulerConfig:
    """Weights and thresholds for the hybrid dispatch scheduler."""

    weights: ScoringWeights = field(default_factory=ScoringWeights)
    priority: PriorityPolicy = field(default_factory=PriorityPolicy)

    # distance / load factor shaping
    distance_penalty: float = 0.6
    load_attenuation: float = 0.1
    load_penalty: float = 25.0

    # route efficiency
    one_floor_in_path: float = 0.95
    route_span_factor: float = 3.5

    # direction match
    idle_direction_score: float = 0.8
    mismatch_direction_score: float = 0.5

    # priority factor and experience bonuses
    priority_scale: float = 1.5
    wait_bonus_tiers: Tuple[Tuple[float, float], ...] = ((30.0, 400.0), (20.0, 200.0), (10.0, 100.0))
    rush_lobby_bonus: float = 150.0
    high_traffic_bonus: float = 80.0
    high_traffic_floors: Tuple[int, ...] = (1, 10, 11, 12, 13, 14, 15)

    # bonuses folded into request priority
    traffic_direction_bonus: float = 5.0
    lobby_rush_priority_bonus: float = 20.0

    # fleet maintenance
    rebalance_threshold: int = 3
    rebalance_divisor: float = 1.5
    positioning_distance: int = 2
    origin_demand_weight: int = 3
    destination_demand_weight: int = 1
    sort_threshold: int = 3

    def validate(self) -> None:
        self.weights.validate()
        self.priority.validate()
        if not 0 < self.mismatch_direction_score <= 1:
            raise ValueError("Mismatched direction score must be in (0, 1]")
        if self.rebalance_divisor <= 0:
            raise ValueError("Rebalance divisor must be positive")
        if self.route_span_factor <= 0:
            raise ValueError("Route span factor must be positive")

    @classmethod
    def from_dict(cls, data: Dict) -> "SchedulerConfig":
        data = dict(data)
        weights = ScoringWeights(**data.pop("weights", {}))
        priority = PriorityPolicy(**data.pop("priority", {}))
        for key in ("wait_bonus_tiers", "high_traffic_floors"):
            if key in data:
                value = data[key]
                data[key] = tuple(tuple(item) if isinstance(item, list) else item for item in value)
        cfg = cls(weights=weights, priority=priority, **data)
        cfg.validate()
        return cfg
