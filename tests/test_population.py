from __future__ import annotations

import pytest

from outbreak_sim.exceptions import InternalConsistencyError
from outbreak_sim.model.agent import Agent, AgentType
from outbreak_sim.model.grid import CellRef, Grid
from outbreak_sim.model.population import Population


@pytest.fixture
def population() -> Population:
    return Population(Grid(3, 3, 50, 50))


def _agent(agent_id: int, location=(10, 10), agent_type=AgentType.SUSCEPTIBLE) -> Agent:
    return Agent(agent_id, agent_type, location, CellRef(location[0] // 50, location[1] // 50))


class TestPopulation:
    def test_add_indexes_by_cell(self, population: Population) -> None:
        a, b = _agent(1, (10, 10)), _agent(2, (60, 10))
        population.add_all([a, b])
        assert len(population) == 2
        assert population.agents_in(CellRef(0, 0)) == [a]
        assert population.agents_in(CellRef(1, 0)) == [b]
        assert population.occupied_cells() == [CellRef(0, 0), CellRef(1, 0)]
        assert 1 in population

    def test_duplicate_id_rejected(self, population: Population) -> None:
        population.add(_agent(1))
        with pytest.raises(InternalConsistencyError):
            population.add(_agent(1, (60, 60)))

    def test_agent_outside_grid_rejected(self, population: Population) -> None:
        with pytest.raises(InternalConsistencyError):
            population.add(_agent(1, (200, 10)))

    def test_relocate_moves_between_buckets(self, population: Population) -> None:
        agent = _agent(1, (10, 10))
        population.add(agent)
        agent.x = 60
        population.relocate(agent, CellRef(1, 0))
        assert agent.cell == CellRef(1, 0)
        assert population.agents_in(CellRef(0, 0)) == []
        assert population.agents_in(CellRef(1, 0)) == [agent]
        population.check_consistency()

    def test_relocate_outside_grid_rejected(self, population: Population) -> None:
        agent = _agent(1)
        population.add(agent)
        with pytest.raises(InternalConsistencyError):
            population.relocate(agent, CellRef(3, 0))

    def test_replace_keeps_iteration_slot(self, population: Population) -> None:
        agents = [_agent(i, (10 * i, 10)) for i in range(1, 4)]
        population.add_all(agents)
        zombie = Agent(2, AgentType.ZOMBIFIED, agents[1].location, agents[1].cell)
        population.replace(agents[1], zombie)

        assert [a.id for a in population] == [1, 2, 3]
        assert population.get(2) is zombie
        assert zombie in population.agents_in(CellRef(0, 0))
        assert population.counts()[AgentType.ZOMBIFIED] == 1
        assert population.counts()[AgentType.SUSCEPTIBLE] == 2

    def test_replace_must_keep_id(self, population: Population) -> None:
        agent = _agent(1)
        population.add(agent)
        with pytest.raises(InternalConsistencyError):
            population.replace(agent, _agent(2))

    def test_remove(self, population: Population) -> None:
        agent = _agent(1)
        population.add(agent)
        population.remove(agent)
        assert len(population) == 0
        assert population.occupied_cells() == []
        with pytest.raises(InternalConsistencyError):
            population.remove(agent)

    def test_of_type(self, population: Population) -> None:
        population.add(_agent(1))
        population.add(_agent(2, agent_type=AgentType.REMOVED))
        assert [a.id for a in population.of_type(AgentType.REMOVED)] == [2]

    def test_consistency_check_catches_stale_cell(self, population: Population) -> None:
        agent = _agent(1, (10, 10))
        population.add(agent)
        agent.x = 70
        with pytest.raises(InternalConsistencyError):
            population.check_consistency()
