"""Forward-Euler approximation of the outbreak ODEs."""

import math
from dataclasses import dataclass
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import SimulationConfig


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going towards +infinity."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class EulerPoint:
    index: int
    susceptible: int
    zombified: int
    removed: int
    total: int


class EulerModel:
    """
    Deterministic S/Z/R companion to the agent simulation.

        S' = -beta*S*Z - delta*S
        Z' =  beta*S*Z - alpha*S*Z + zeta*R
        R' =  alpha*S*Z + delta*S - zeta*R

    The rates come from the same percentages the agents use. Activity
    windows and latency are not modelled, so curves drift from the agent
    run once either is in play.
    """

    def __init__(self, config: "SimulationConfig"):
        self.config = config
        self.step_size = config.euler_step
        rates = config.rates
        self.alpha = rates.susceptible_wins
        self.beta = rates.transmission * (100 - rates.susceptible_wins) / 100.0
        self.zeta = rates.natural_infection * 10000
        self.delta = rates.natural_death * 10000
        self.reset()

    def reset(self) -> None:
        self.zombified = float(self.config.population.initial_zombified)
        self.susceptible = float(self.config.population.size) - self.zombified
        self.removed = 0.0
        self.updates = 0
        self.complete = False

    def step(self) -> Optional[EulerPoint]:
        """Advance one Euler step. Returns None once fewer than two susceptibles remain."""
        if self.susceptible <= 1:
            self.complete = True
            return None

        s, z, r, h = self.susceptible, self.zombified, self.removed, self.step_size
        contact = s * z
        self.susceptible = s + h * (-self.beta * contact - self.delta * s)
        self.zombified = z + h * (self.beta * contact - self.alpha * contact + self.zeta * r)
        self.removed = r + h * (self.alpha * contact + self.delta * s - self.zeta * r)

        point = EulerPoint(
            index=self.updates,
            susceptible=round_half_up(self.susceptible),
            zombified=round_half_up(self.zombified),
            removed=round_half_up(self.removed),
            total=round_half_up(self.susceptible + self.zombified + self.removed)
        )
        self.updates += 1
        return point

    def run(self, max_steps: int) -> List[EulerPoint]:
        points = []
        for _ in range(max_steps):
            point = self.step()
            if point is None:
                break
            points.append(point)
        return points
