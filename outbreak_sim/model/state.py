"""State snapshot dataclasses for the outbreak simulation."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .agent import Agent, AgentType
from .grid import CellRef


@dataclass(frozen=True)
class AgentSnapshot:
    """Immutable copy of one agent at the end of a tick."""
    agent_id: int
    agent_type: str  # AgentType value
    x: int
    y: int
    dx: int
    dy: int
    cell_x: int
    cell_y: int
    latency_remaining: int = 0
    reanimated: bool = False

    @classmethod
    def from_agent(cls, agent: Agent) -> "AgentSnapshot":
        return cls(
            agent_id=agent.id,
            agent_type=agent.agent_type.value,
            x=agent.x,
            y=agent.y,
            dx=agent.dx,
            dy=agent.dy,
            cell_x=agent.cell.x,
            cell_y=agent.cell.y,
            latency_remaining=agent.latency_remaining,
            reanimated=agent.reanimated
        )

    def to_agent(self) -> Agent:
        """Rebuild a live agent carrying the same id."""
        return Agent(
            self.agent_id,
            AgentType(self.agent_type),
            (self.x, self.y),
            CellRef(self.cell_x, self.cell_y),
            (self.dx, self.dy),
            latency_remaining=self.latency_remaining,
            reanimated=self.reanimated
        )


@dataclass(frozen=True)
class TickSnapshot:
    """
    Complete, immutable state of the simulation after a tick.

    `tick` counts completed ticks; `is_day` and `lunar_phase` describe the
    tick that produced this state. Tick 0 is the initial population.
    `awareness_raised_at` is the tick whose evaluation raised awareness.
    `rng_state` lets a restored engine continue with the same draws.
    """
    tick: int
    agents: Tuple[AgentSnapshot, ...]
    susceptible: int
    infected: int
    zombified: int
    removed: int
    awareness_raised: bool
    is_day: bool
    lunar_phase: int
    complete: bool
    next_agent_id: int
    awareness_raised_at: Optional[int] = None
    rng_state: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def total(self) -> int:
        return self.susceptible + self.infected + self.zombified + self.removed

    @property
    def affected(self) -> int:
        return self.infected + self.zombified + self.removed

    def counts(self) -> Dict[AgentType, int]:
        return {
            AgentType.SUSCEPTIBLE: self.susceptible,
            AgentType.INFECTED: self.infected,
            AgentType.ZOMBIFIED: self.zombified,
            AgentType.REMOVED: self.removed,
        }

    def metrics(self) -> Dict[str, float]:
        total = self.total
        return {
            'susceptible': self.susceptible,
            'infected': self.infected,
            'zombified': self.zombified,
            'removed': self.removed,
            'total': total,
            'affected_pct': 100.0 * self.affected / total if total > 0 else 0.0,
        }

    def to_csv_row(self) -> Dict:
        """Per-tick aggregate row."""
        return {
            "tick": self.tick,
            "susceptible": self.susceptible,
            "infected": self.infected,
            "zombified": self.zombified,
            "removed": self.removed,
            "total": self.total,
            "awareness_raised": int(self.awareness_raised),
            "day": int(self.is_day),
            "lunar_phase": self.lunar_phase
        }
