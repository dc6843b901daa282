"""Agent model with per-type movement behaviour."""

from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Tuple, TYPE_CHECKING
import numpy as np

from .grid import CellRef

if TYPE_CHECKING:
    from ..config import SimulationConfig


class AgentType(Enum):
    """Closed set of epidemic states an agent can be in."""
    SUSCEPTIBLE = "susceptible"
    INFECTED = "infected"
    ZOMBIFIED = "zombified"
    REMOVED = "removed"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class IdAllocator:
    """Hands out agent ids. Owned by the engine so that runs never share a counter."""

    def __init__(self, start: int = 1):
        self._next = start

    def allocate(self) -> int:
        agent_id = self._next
        self._next += 1
        return agent_id

    def peek(self) -> int:
        return self._next

    def reset(self, start: int = 1) -> None:
        self._next = start


class Agent:
    """
    A mobile point agent in pixel space.

    The id survives type changes: a transition builds a new Agent of the
    new type that carries the old id, location and cell. `cell` must
    always equal the cell derived from the location; only the movement
    resolver and the population index change it.
    """

    __slots__ = ('id', 'x', 'y', 'dx', 'dy', 'cell', 'agent_type',
                 'latency_remaining', 'reanimated')

    def __init__(self, agent_id: int,
                 agent_type: AgentType,
                 location: Tuple[int, int],
                 cell: CellRef,
                 velocity: Tuple[int, int] = (0, 0),
                 latency_remaining: int = 0,
                 reanimated: bool = False):
        self.id = agent_id
        self.agent_type = agent_type
        self.x, self.y = location
        self.dx, self.dy = velocity
        self.cell = cell
        self.latency_remaining = latency_remaining
        # Infected agents raised from the dead do not wander on their own
        self.reanimated = reanimated

    @property
    def location(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def velocity(self) -> Tuple[int, int]:
        return (self.dx, self.dy)

    def next_location(self) -> Tuple[int, int]:
        return (self.x + self.dx, self.y + self.dy)

    def reverse_dx(self) -> None:
        self.dx = -self.dx

    def reverse_dy(self) -> None:
        self.dy = -self.dy

    def apply_displacement(self) -> None:
        self.x += self.dx
        self.y += self.dy

    def latency_elapsed(self) -> bool:
        return self.latency_remaining <= 0

    def record_step(self) -> None:
        """Count one movement attempt against the latency period."""
        if self.agent_type is AgentType.INFECTED:
            self.latency_remaining -= 1

    def choose_velocity(self, config: "SimulationConfig",
                        rng: np.random.Generator) -> None:
        self.dx, self.dy = BEHAVIOURS[self.agent_type].choose_velocity(self, config, rng)

    def is_movement_eligible(self, rng: np.random.Generator) -> bool:
        return BEHAVIOURS[self.agent_type].is_movement_eligible(self, rng)

    def copy(self) -> "Agent":
        """Deep copy that keeps the id."""
        return Agent(self.id, self.agent_type, self.location, self.cell,
                     self.velocity, self.latency_remaining, self.reanimated)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Agent):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (f"Agent(id={self.id}, type={self.agent_type.value}, "
                f"pos={self.location}, vel={self.velocity}, {self.cell})")


def sample_velocity(speed_a: int, speed_b: int,
                    rng: np.random.Generator) -> Tuple[int, int]:
    """
    Draw a velocity from a speed range.

    Each axis gets an independent magnitude in [min, max) (or exactly max
    when the bounds are equal), then one of four sign patterns is picked
    uniformly. The result is not a uniform angular distribution.
    """
    lo, hi = min(speed_a, speed_b), max(speed_a, speed_b)
    if lo == hi:
        dx = dy = hi
    else:
        dx = int(rng.integers(lo, hi))
        dy = int(rng.integers(lo, hi))

    flip = int(rng.integers(0, 4))
    if flip == 1:
        dx = -dx
    elif flip == 2:
        dy = -dy
    elif flip == 3:
        dx, dy = -dx, -dy
    return dx, dy


class Behaviour(NamedTuple):
    choose_velocity: Callable[[Agent, "SimulationConfig", np.random.Generator], Tuple[int, int]]
    is_movement_eligible: Callable[[Agent, np.random.Generator], bool]


def _susceptible_velocity(agent, config, rng):
    return sample_velocity(config.speeds.susceptible_min,
                           config.speeds.susceptible_max, rng)


def _susceptible_eligible(agent, rng):
    # Stands still one tick in ten
    return int(rng.integers(0, 10)) != 0


def _infected_velocity(agent, config, rng):
    if agent.reanimated:
        return (0, 0)
    return sample_velocity(config.speeds.susceptible_min,
                           config.speeds.susceptible_max, rng)


def _zombified_velocity(agent, config, rng):
    return sample_velocity(config.speeds.zombified_min,
                           config.speeds.zombified_max, rng)


def _always(agent, rng):
    return True


def _never(agent, rng):
    return False


def _stationary(agent, config, rng):
    return (0, 0)


BEHAVIOURS: Dict[AgentType, Behaviour] = {
    AgentType.SUSCEPTIBLE: Behaviour(_susceptible_velocity, _susceptible_eligible),
    AgentType.INFECTED: Behaviour(_infected_velocity, _always),
    AgentType.ZOMBIFIED: Behaviour(_zombified_velocity, _always),
    AgentType.REMOVED: Behaviour(_stationary, _never),
}


def spawn_agent(agent_id: int, agent_type: AgentType,
                config: "SimulationConfig",
                rng: np.random.Generator) -> Agent:
    """Create an agent at a uniformly random pixel of the world."""
    g = config.grid
    x = int(rng.integers(0, g.width))
    y = int(rng.integers(0, g.height))
    cell = CellRef.from_location(x, y, g.cell_width, g.cell_height)
    latency = config.infection.latency_period if agent_type is AgentType.INFECTED else 0
    agent = Agent(agent_id, agent_type, (x, y), cell, latency_remaining=latency)
    agent.choose_velocity(config, rng)
    return agent


def convert_agent(agent: Agent, new_type: AgentType,
                  config: "SimulationConfig",
                  rng: np.random.Generator,
                  new_id: Optional[int] = None) -> Agent:
    """
    Build the replacement for `agent` after a transition.

    Location and cell carry over. The id carries over unless `new_id` is
    given (births). The velocity is re-drawn by the new type's policy.
    """
    latency = config.infection.latency_period if new_type is AgentType.INFECTED else 0
    reanimated = (new_type is AgentType.INFECTED
                  and agent.agent_type is AgentType.REMOVED)
    replacement = Agent(
        agent.id if new_id is None else new_id,
        new_type,
        agent.location,
        agent.cell,
        agent.velocity,
        latency_remaining=latency,
        reanimated=reanimated
    )
    replacement.choose_velocity(config, rng)
    return replacement
