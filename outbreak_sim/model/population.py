"""Live agent set and the per-cell spatial index."""

from typing import Dict, Iterator, List

from .agent import Agent, AgentType
from .grid import CellRef, Grid
from ..exceptions import InternalConsistencyError


class Population:
    """
    All live agents, indexed by id and by cell.

    Every agent sits in exactly one cell bucket, and the union of all
    buckets is the agent set. Iteration order is insertion order; an agent
    replaced through `replace` keeps its slot.
    """

    def __init__(self, grid: Grid):
        self.grid = grid
        self._agents: Dict[int, Agent] = {}
        self._buckets: Dict[CellRef, Dict[int, Agent]] = {}

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents.values())

    def __contains__(self, agent_id: int) -> bool:
        return agent_id in self._agents

    def get(self, agent_id: int) -> Agent:
        return self._agents[agent_id]

    def agents(self) -> List[Agent]:
        """Stable list of agents, safe to iterate while the index changes."""
        return list(self._agents.values())

    def add(self, agent: Agent) -> None:
        if agent.id in self._agents:
            raise InternalConsistencyError(f"Agent {agent.id} is already in the population")
        if not self.grid.contains(agent.cell):
            raise InternalConsistencyError(
                f"Agent {agent.id} has no valid cell: {agent.cell}"
            )
        self._agents[agent.id] = agent
        self._buckets.setdefault(agent.cell, {})[agent.id] = agent

    def add_all(self, agents) -> None:
        for agent in agents:
            self.add(agent)

    def remove(self, agent: Agent) -> None:
        bucket = self._bucket_of(agent)
        del bucket[agent.id]
        if not bucket:
            del self._buckets[agent.cell]
        del self._agents[agent.id]

    def replace(self, old: Agent, new: Agent) -> None:
        """Swap in a new-typed agent carrying the same id."""
        if old.id != new.id or old.cell != new.cell:
            raise InternalConsistencyError(
                f"Replacement for agent {old.id} must keep its id and cell"
            )
        self._agents[old.id] = new
        self._bucket_of(old)[old.id] = new

    def relocate(self, agent: Agent, to: CellRef) -> None:
        """Move an agent to another cell bucket and update its cell."""
        if not self.grid.contains(to):
            raise InternalConsistencyError(f"Agent {agent.id} cannot move to {to}")
        bucket = self._bucket_of(agent)
        del bucket[agent.id]
        if not bucket:
            del self._buckets[agent.cell]
        self._buckets.setdefault(to, {})[agent.id] = agent
        agent.cell = to

    def agents_in(self, cell: CellRef) -> List[Agent]:
        return list(self._buckets.get(cell, {}).values())

    def of_type(self, agent_type: AgentType) -> List[Agent]:
        return [a for a in self._agents.values() if a.agent_type is agent_type]

    def counts(self) -> Dict[AgentType, int]:
        counts = {t: 0 for t in AgentType}
        for agent in self._agents.values():
            counts[agent.agent_type] += 1
        return counts

    def clear(self) -> None:
        self._agents.clear()
        self._buckets.clear()

    def occupied_cells(self) -> List[CellRef]:
        return [cell for cell, bucket in self._buckets.items() if bucket]

    def check_consistency(self) -> None:
        """
        Verify the index partitions the population and every agent's cell
        matches its location.
        """
        seen = 0
        for cell, bucket in self._buckets.items():
            for agent_id, agent in bucket.items():
                if self._agents.get(agent_id) is not agent:
                    raise InternalConsistencyError(
                        f"Agent {agent_id} is indexed in {cell} but not live"
                    )
                if agent.cell != cell:
                    raise InternalConsistencyError(
                        f"Agent {agent_id} is indexed in {cell} but reports {agent.cell}"
                    )
                seen += 1
        if seen != len(self._agents):
            raise InternalConsistencyError(
                f"{len(self._agents)} agents live but {seen} indexed"
            )
        for agent in self._agents.values():
            derived = self.grid.cell_ref(agent.x, agent.y)
            if derived != agent.cell:
                raise InternalConsistencyError(
                    f"Agent {agent.id} at {agent.location} is in {agent.cell}, expected {derived}"
                )

    def _bucket_of(self, agent: Agent) -> Dict[int, Agent]:
        bucket = self._buckets.get(agent.cell)
        if bucket is None or agent.id not in bucket:
            raise InternalConsistencyError(f"Agent {agent.id} has no assigned cell")
        return bucket
