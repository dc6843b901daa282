"""Epidemic engine for the outbreak simulation."""

import copy
import dataclasses
import logging
import numpy as np
from typing import List, Dict, Tuple, Set, Optional, TYPE_CHECKING

from .grid import Grid, CellRef
from .agent import Agent, AgentType, IdAllocator, spawn_agent, convert_agent
from .population import Population
from .movement import MovementResolver
from .clock import SimClock
from .chance import should_happen
from .state import TickSnapshot, AgentSnapshot
from ..exceptions import ConfigurationError, InternalConsistencyError, SimulationError

if TYPE_CHECKING:
    from ..config import SimulationConfig

logger = logging.getLogger(__name__)

# One agent in this many re-draws its velocity each tick
REDIRECT_ODDS = 20


def squared_distance(a: Agent, b: Agent) -> int:
    """Unrooted Euclidean distance; compare against a squared range."""
    return (b.x - a.x) ** 2 + (b.y - a.y) ** 2


class TransitionPlan:
    """
    Transitions scheduled during the read phase of a tick.

    An agent id can be claimed once per tick; later rules skip claimed
    agents. Nothing here touches the population until `commit`.
    """

    def __init__(self):
        self.claimed: Set[int] = set()
        self.to_infect: List[Agent] = []
        self.to_zombify: List[Agent] = []
        self.to_remove: List[Agent] = []
        self.to_introduce: List[Agent] = []

    def is_claimed(self, agent: Agent) -> bool:
        return agent.id in self.claimed

    def claim(self, agent: Agent, outcome: Optional[AgentType]) -> None:
        """Schedule `agent` to become `outcome`; None schedules a birth."""
        if agent.id in self.claimed:
            raise InternalConsistencyError(f"Agent {agent.id} claimed twice in one tick")
        self.claimed.add(agent.id)
        if outcome is None:
            self.to_introduce.append(agent)
        elif outcome is AgentType.INFECTED:
            self.to_infect.append(agent)
        elif outcome is AgentType.ZOMBIFIED:
            self.to_zombify.append(agent)
        elif outcome is AgentType.REMOVED:
            self.to_remove.append(agent)
        else:
            raise InternalConsistencyError(f"No transition leads to {outcome}")

    def __len__(self) -> int:
        return len(self.claimed)


class EpidemicEngine:
    """
    Orchestrates the discrete-time outbreak simulation.

    Each tick:
    1. Derive day/night and lunar phase from the tick number
    2. Move every agent (walls reflect, 1 in 20 re-draws its velocity)
    3. Evaluate births, deaths, bites and reanimation (read phase)
    4. Latch awareness once the affected share passes the threshold
    5. Commit every scheduled transition at once (write phase)
    6. Publish an immutable snapshot
    """

    def __init__(self, config: "SimulationConfig",
                 rng: Optional[np.random.Generator] = None):
        config.validate()
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        # Initialize grid
        self.grid = Grid(config.grid.cells_wide, config.grid.cells_high,
                         config.grid.cell_width, config.grid.cell_height)
        self._setup_walls()

        self.population = Population(self.grid)
        self.resolver = MovementResolver(self.grid, self.population)
        self.ids = IdAllocator()

        self.current_step = 0
        self.awareness_raised = config.awareness.initially_raised
        self.awareness_raised_at_step: Optional[int] = None
        self.complete = False
        self.faulted = False

        # Initialize agents
        self._spawn_agents()

    def _setup_walls(self) -> None:
        """Configure walls from config."""
        for wall_spec in self.config.walls:
            if wall_spec.wall_type == "cell":
                ref = CellRef(*wall_spec.data['cell'])
                self.grid.set_north_wall(ref, wall_spec.data['north'])
                self.grid.set_west_wall(ref, wall_spec.data['west'])
            elif wall_spec.wall_type == "line":
                self.grid.add_wall_line(
                    wall_spec.data['orientation'], wall_spec.data['at'],
                    wall_spec.data['start'], wall_spec.data['end']
                )

    def _spawn_agents(self) -> None:
        """Create the initial population at random locations."""
        pop = self.config.population
        split = (
            (AgentType.SUSCEPTIBLE, pop.initial_susceptible),
            (AgentType.INFECTED, pop.initial_infected),
            (AgentType.ZOMBIFIED, pop.initial_zombified),
        )
        for agent_type, count in split:
            for _ in range(count):
                agent = spawn_agent(self.ids.allocate(), agent_type,
                                    self.config, self.rng)
                self.population.add(agent)

    # ------------------------------------------------------------------
    # Setup helpers for collaborators (editors, scenario scripts, tests)

    def reset(self) -> TickSnapshot:
        """Discard all agents and start over from a fresh initial population."""
        self.population.clear()
        self.ids.reset()
        self.current_step = 0
        self.awareness_raised = self.config.awareness.initially_raised
        self.awareness_raised_at_step = None
        self.complete = False
        self.faulted = False
        self._spawn_agents()
        return self.snapshot()

    def resize(self, cells_wide: int, cells_high: int) -> None:
        """
        Change the grid's cell counts before the run starts.

        Walls and agents are discarded; a fresh population is spawned.
        """
        if self.current_step > 0:
            raise ConfigurationError("The grid cannot be resized once the simulation has started")
        resized = dataclasses.replace(self.config.grid, cells_wide=cells_wide,
                                      cells_high=cells_high)
        dataclasses.replace(self.config, grid=resized).validate()
        self.config.grid = resized
        self.grid.resize(cells_wide, cells_high)
        self.reset()

    def clear_agents(self) -> None:
        self.population.clear()

    def add_agent(self, agent_type: AgentType,
                  location: Tuple[int, int],
                  velocity: Optional[Tuple[int, int]] = None) -> Agent:
        """Place a new agent at a pixel location; velocity is drawn if omitted."""
        x, y = location
        if not self.grid.contains_pixel(x, y):
            raise ConfigurationError(f"Location {location} is outside the world")
        latency = self.config.infection.latency_period if agent_type is AgentType.INFECTED else 0
        agent = Agent(self.ids.allocate(), agent_type, (x, y),
                      self.grid.cell_ref(x, y), latency_remaining=latency)
        if velocity is None:
            agent.choose_velocity(self.config, self.rng)
        else:
            agent.dx, agent.dy = velocity
        self.population.add(agent)
        return agent

    # ------------------------------------------------------------------
    # Tick

    def step(self) -> TickSnapshot:
        """
        Execute one discrete time step and return its snapshot.

        An internal-consistency failure marks the engine as faulted; a
        faulted engine refuses to step until it is reset or restored.
        """
        if self.faulted:
            raise SimulationError("Engine is faulted; reset or restore before stepping")
        try:
            return self._step()
        except InternalConsistencyError:
            self.faulted = True
            logger.error("Tick %d faulted", self.current_step, exc_info=True)
            raise

    def _step(self) -> TickSnapshot:
        config = self.config
        clock = SimClock(self.current_step, config.steps_per_half_day)
        monster_active = clock.monster_active(
            config.activity.day, config.activity.night, config.activity.lunar_phases
        )

        # Phase 1: Movement
        for agent in self.population.agents():
            self.resolver.move(agent, self.rng)
            if int(self.rng.integers(0, REDIRECT_ODDS)) == 0:
                agent.choose_velocity(config, self.rng)

        # Phase 2: Evaluate transitions against the post-movement world
        plan = TransitionPlan()
        counts: Dict[AgentType, int] = {t: 0 for t in AgentType}
        for agent in self.population.agents():
            counts[agent.agent_type] += 1
            if agent.agent_type is AgentType.SUSCEPTIBLE:
                self._evaluate_susceptible(agent, plan)
            elif agent.agent_type is AgentType.INFECTED:
                self._evaluate_infected(agent, plan)
            elif agent.agent_type is AgentType.ZOMBIFIED:
                if monster_active:
                    self._evaluate_zombified(agent, plan)
            elif agent.agent_type is AgentType.REMOVED:
                self._evaluate_removed(agent, plan)

        # Phase 3: Awareness latch
        self._update_awareness(counts)

        # Phase 4: Commit
        self._commit(plan)

        self.current_step += 1
        if self.population.counts()[AgentType.SUSCEPTIBLE] == 0 and not self.complete:
            self.complete = True
            logger.info("No susceptibles remain after step %d", self.current_step)

        logger.debug("Step %d: %d transitions, monster_active=%s",
                     self.current_step, len(plan), monster_active)
        return self.snapshot(clock)

    def _evaluate_susceptible(self, agent: Agent, plan: TransitionPlan) -> None:
        rates = self.config.rates
        if rates.birth > 0 and not plan.is_claimed(agent):
            if should_happen(rates.birth, self.rng):
                plan.claim(agent, None)

        if rates.natural_death > 0 and not plan.is_claimed(agent):
            if should_happen(rates.natural_death, self.rng):
                plan.claim(agent, AgentType.REMOVED)

    def _evaluate_infected(self, agent: Agent, plan: TransitionPlan) -> None:
        rates = self.config.rates
        if agent.latency_elapsed() and not plan.is_claimed(agent):
            plan.claim(agent, AgentType.ZOMBIFIED)

        if rates.natural_death > 0 and not plan.is_claimed(agent):
            if should_happen(rates.natural_death, self.rng):
                plan.claim(agent, AgentType.REMOVED)

    def _evaluate_zombified(self, zombie: Agent, plan: TransitionPlan) -> None:
        """Attack at most one unclaimed susceptible in range in the same cell."""
        if plan.is_claimed(zombie):
            return
        reach = self.config.infection.range ** 2
        for other in self.population.agents_in(zombie.cell):
            if other.id == zombie.id or plan.is_claimed(other):
                continue
            if other.agent_type is not AgentType.SUSCEPTIBLE:
                continue
            if squared_distance(zombie, other) < reach:
                self._encounter(zombie, other, plan)
                return

    def _encounter(self, zombie: Agent, victim: Agent, plan: TransitionPlan) -> None:
        rates = self.config.rates
        if self.awareness_raised:
            win_chance = rates.aware_susceptible_wins
            transmit_chance = rates.aware_transmission
        else:
            win_chance = rates.susceptible_wins
            transmit_chance = rates.transmission

        if win_chance > 0 and should_happen(win_chance, self.rng):
            plan.claim(zombie, AgentType.REMOVED)
            return

        if should_happen(transmit_chance, self.rng):
            if self.config.infection.latency_period == 0:
                plan.claim(victim, AgentType.ZOMBIFIED)
            else:
                plan.claim(victim, AgentType.INFECTED)
        else:
            plan.claim(victim, AgentType.REMOVED)

    def _evaluate_removed(self, agent: Agent, plan: TransitionPlan) -> None:
        rates = self.config.rates
        if rates.natural_infection > 0 and not plan.is_claimed(agent):
            if should_happen(rates.natural_infection, self.rng):
                plan.claim(agent, AgentType.INFECTED)

    def _update_awareness(self, counts: Dict[AgentType, int]) -> None:
        """Raise awareness once the affected share exceeds the threshold. Never lowered."""
        if self.awareness_raised:
            return
        total = sum(counts.values())
        if total == 0:
            return
        affected = total - counts[AgentType.SUSCEPTIBLE]
        pct = 100.0 * affected / total
        if pct > self.config.awareness.raised_at:
            self.awareness_raised = True
            self.awareness_raised_at_step = self.current_step
            logger.info("Awareness raised at step %d (%.1f%% affected)",
                        self.current_step, pct)

    def _commit(self, plan: TransitionPlan) -> None:
        config = self.config
        for agents, new_type in ((plan.to_infect, AgentType.INFECTED),
                                 (plan.to_zombify, AgentType.ZOMBIFIED),
                                 (plan.to_remove, AgentType.REMOVED)):
            for agent in agents:
                replacement = convert_agent(agent, new_type, config, self.rng)
                self.population.replace(agent, replacement)

        for parent in plan.to_introduce:
            child = convert_agent(parent, AgentType.SUSCEPTIBLE, config, self.rng,
                                  new_id=self.ids.allocate())
            self.population.add(child)

    # ------------------------------------------------------------------
    # Snapshots and replay

    def snapshot(self, clock: Optional[SimClock] = None) -> TickSnapshot:
        """Create immutable snapshot of current simulation state."""
        if clock is None:
            clock = SimClock(max(0, self.current_step - 1), self.config.steps_per_half_day)
        counts = self.population.counts()
        return TickSnapshot(
            tick=self.current_step,
            agents=tuple(AgentSnapshot.from_agent(a) for a in self.population),
            susceptible=counts[AgentType.SUSCEPTIBLE],
            infected=counts[AgentType.INFECTED],
            zombified=counts[AgentType.ZOMBIFIED],
            removed=counts[AgentType.REMOVED],
            awareness_raised=self.awareness_raised,
            is_day=clock.is_day,
            lunar_phase=clock.lunar_phase,
            complete=self.complete,
            next_agent_id=self.ids.peek(),
            awareness_raised_at=self.awareness_raised_at_step,
            rng_state=copy.deepcopy(self.rng.bit_generator.state)
        )

    def restore(self, snapshot: TickSnapshot) -> None:
        """
        Return the engine to the state captured in `snapshot`.

        No ticks are re-run. If the snapshot carries a generator state the
        engine continues with exactly the same draws as the original run.
        """
        self.population.clear()
        self.population.add_all(a.to_agent() for a in snapshot.agents)
        self.population.check_consistency()
        self.current_step = snapshot.tick
        self.awareness_raised = snapshot.awareness_raised
        self.awareness_raised_at_step = snapshot.awareness_raised_at
        self.complete = snapshot.complete
        self.faulted = False
        self.ids.reset(snapshot.next_agent_id)
        if snapshot.rng_state is not None:
            self.rng.bit_generator.state = copy.deepcopy(snapshot.rng_state)

    # ------------------------------------------------------------------

    def counts(self) -> Dict[AgentType, int]:
        return self.population.counts()

    def is_finished(self) -> bool:
        """Check if simulation should terminate."""
        return self.complete or self.current_step >= self.config.max_steps

    def get_summary(self) -> Dict:
        """Get summary statistics for the simulation."""
        counts = self.population.counts()
        return {
            'total_steps': self.current_step,
            'agents_total': len(self.population),
            'susceptible': counts[AgentType.SUSCEPTIBLE],
            'infected': counts[AgentType.INFECTED],
            'zombified': counts[AgentType.ZOMBIFIED],
            'removed': counts[AgentType.REMOVED],
            'awareness_raised': self.awareness_raised,
            'awareness_raised_at_step': self.awareness_raised_at_step,
            'complete': self.complete
        }
