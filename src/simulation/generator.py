from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import List, Tuple

from scheduler import TrafficMode


@dataclass
class RequestGenerator:
    """Draws arrival counts and origin/destination pairs for new requests."""

    total_floors: int
    lobby_floor: int
    rush_probability: float
    random_state: random.Random

    def arrivals(self, rate: float) -> int:
        """Number of requests arriving this tick for a mean of ``rate``."""
        return self._poisson(rate)

    def draw(self, mode: TrafficMode = TrafficMode.NORMAL) -> Tuple[int, int]:
        if mode == TrafficMode.MORNING and self.random_state.random() < self.rush_probability:
            return self.lobby_floor, self.random_state.choice(self._non_lobby_floors())
        if mode == TrafficMode.EVENING and self.random_state.random() < self.rush_probability:
            return self.random_state.choice(self._non_lobby_floors()), self.lobby_floor
        return self._uniform_pair()

    def _uniform_pair(self) -> Tuple[int, int]:
        origin = self.random_state.randint(1, self.total_floors)
        destination = self.random_state.randint(1, self.total_floors)
        while destination == origin:
            destination = self.random_state.randint(1, self.total_floors)
        return origin, destination

    def _non_lobby_floors(self) -> List[int]:
        return [floor for floor in range(1, self.total_floors + 1) if floor != self.lobby_floor]

    def _poisson(self, lam: float) -> int:
        if lam <= 0:
            return 0
        L = math.exp(-lam)
        k = 0
        p = 1.0
        while p > L:
            k += 1
            p *= self.random_state.random()
        return k - 1
