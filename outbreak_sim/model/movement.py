"""Wall-aware movement of agents between grid cells."""

import logging
from typing import NamedTuple, Optional

import numpy as np

from .agent import Agent
from .grid import Cell, CellRef, Grid
from .population import Population
from ..exceptions import InternalConsistencyError

logger = logging.getLogger(__name__)


class Bounce(NamedTuple):
    """Outcome of a diagonal crossing: axes to reflect and the cell to enter."""
    flip_x: bool
    flip_y: bool
    target: Optional[CellRef]  # None = stay in the source cell


class MovementResolver:
    """
    Moves agents by their velocity, reflecting off walls and world edges.

    Walls are stored as north/west flags per cell, so a cell's own flags
    only gate movement to its north or west neighbour. Entry into a cell to
    the south or east is gated by that neighbour's north/west flag.

    Agents may cross at most one boundary per axis per tick; the
    configuration validator enforces speeds small enough for that.
    """

    def __init__(self, grid: Grid, population: Population):
        self.grid = grid
        self.population = population

    def move(self, agent: Agent, rng: np.random.Generator) -> bool:
        """
        Advance one agent by one tick.

        Returns True if the agent changed cell. Agents that are not
        eligible to move this tick stay exactly where they are.
        """
        eligible = agent.is_movement_eligible(rng)
        if eligible:
            changed = self.resolve(agent)
        else:
            changed = False
        agent.record_step()
        return changed

    def resolve(self, agent: Agent) -> bool:
        """Apply the agent's displacement against the grid's walls."""
        grid = self.grid
        nx, ny = agent.next_location()

        # World edges act as walls
        if not 0 <= nx < grid.width:
            agent.reverse_dx()
        if not 0 <= ny < grid.height:
            agent.reverse_dy()

        src = agent.cell
        dst = grid.cell_ref(*agent.next_location())

        if src == dst:
            agent.apply_displacement()
            return self._settle(agent, None)

        src_cell = grid.cell_at(src)
        if src_cell is None:
            raise InternalConsistencyError(f"Agent {agent.id} is outside the grid at {src}")
        dst_cell = grid.cell_at(dst)

        if src.x == dst.x:
            return self._cross_vertical(agent, src, dst, src_cell, dst_cell)
        if src.y == dst.y:
            return self._cross_horizontal(agent, src, dst, src_cell, dst_cell)
        return self._cross_diagonal(agent, src, dst, src_cell, dst_cell)

    def _cross_vertical(self, agent: Agent, src: CellRef, dst: CellRef,
                        src_cell: Cell, dst_cell: Optional[Cell]) -> bool:
        if dst_cell is None:
            agent.reverse_dy()
            agent.apply_displacement()
            return self._settle(agent, None)

        if dst.y < src.y:
            blocked = src_cell.north_wall   # leaving through our own north edge
        else:
            blocked = dst_cell.north_wall   # entering through their north edge

        if blocked:
            agent.reverse_dy()
            agent.apply_displacement()
            return self._settle(agent, None)
        agent.apply_displacement()
        return self._settle(agent, dst)

    def _cross_horizontal(self, agent: Agent, src: CellRef, dst: CellRef,
                          src_cell: Cell, dst_cell: Optional[Cell]) -> bool:
        if dst_cell is None:
            agent.reverse_dx()
            agent.apply_displacement()
            return self._settle(agent, None)

        if dst.x < src.x:
            blocked = src_cell.west_wall
        else:
            blocked = dst_cell.west_wall

        if blocked:
            agent.reverse_dx()
            agent.apply_displacement()
            return self._settle(agent, None)
        agent.apply_displacement()
        return self._settle(agent, dst)

    def _cross_diagonal(self, agent: Agent, src: CellRef, dst: CellRef,
                        src_cell: Cell, dst_cell: Optional[Cell]) -> bool:
        north = self.grid.cell_at(src.north())
        south = self.grid.cell_at(src.south())
        east = self.grid.cell_at(src.east())
        west = self.grid.cell_at(src.west())

        if dst.x < src.x and dst.y < src.y:
            self._require(agent, dst, north=north, west=west)
            bounce = self._north_west(src, src_cell, north, west)
        elif dst.x > src.x and dst.y > src.y:
            self._require(agent, dst, to=dst_cell, south=south, east=east)
            bounce = self._south_east(src, dst, dst_cell, south, east)
        elif dst.x > src.x and dst.y < src.y:
            self._require(agent, dst, to=dst_cell, east=east)
            bounce = self._north_east(src, dst, src_cell, dst_cell, east)
        elif dst.x < src.x and dst.y > src.y:
            self._require(agent, dst, to=dst_cell, south=south)
            bounce = self._south_west(src, dst, src_cell, dst_cell, south)
        else:
            raise InternalConsistencyError(
                f"Agent {agent.id} crossing {src} -> {dst} matches no diagonal case"
            )

        if bounce.flip_x:
            agent.reverse_dx()
        if bounce.flip_y:
            agent.reverse_dy()
        agent.apply_displacement()
        return self._settle(agent, bounce.target)

    # Per-quadrant decision tables. Conditions are checked in order and the
    # first match wins. The four quadrants are not mirror images
    # of each other.

    @staticmethod
    def _north_west(src: CellRef, here: Cell, north: Cell, west: Cell) -> Bounce:
        if north.west_wall and here.west_wall and not here.north_wall:
            return Bounce(True, False, src.north())
        if here.north_wall and west.north_wall and not here.west_wall:
            return Bounce(False, True, src.west())
        if here.north_wall and here.west_wall:
            return Bounce(True, True, None)
        if north.west_wall and west.north_wall:
            return Bounce(True, True, None)
        return Bounce(False, False, CellRef(src.x - 1, src.y - 1))

    @staticmethod
    def _south_east(src: CellRef, dst: CellRef, there: Cell,
                    south: Cell, east: Cell) -> Bounce:
        if south.north_wall and there.north_wall and not east.west_wall:
            return Bounce(False, True, src.east())
        if there.west_wall and east.west_wall and not south.north_wall:
            return Bounce(True, False, src.south())
        if there.north_wall and there.west_wall:
            return Bounce(True, True, None)
        if south.north_wall and east.west_wall:
            return Bounce(True, True, None)
        return Bounce(False, False, dst)

    @staticmethod
    def _north_east(src: CellRef, dst: CellRef, here: Cell, there: Cell,
                    east: Cell) -> Bounce:
        if here.north_wall and east.north_wall and not east.west_wall:
            return Bounce(False, True, src.east())
        if east.west_wall and there.west_wall and not here.north_wall:
            return Bounce(True, False, src.north())
        if east.west_wall and here.north_wall:
            return Bounce(True, True, None)
        if there.west_wall and east.north_wall:
            return Bounce(True, True, None)
        return Bounce(False, False, dst)

    @staticmethod
    def _south_west(src: CellRef, dst: CellRef, here: Cell, there: Cell,
                    south: Cell) -> Bounce:
        if here.west_wall and south.west_wall and not south.north_wall:
            return Bounce(True, False, src.south())
        if there.north_wall and south.north_wall and not here.west_wall:
            return Bounce(False, True, src.west())
        if south.north_wall and here.west_wall:
            return Bounce(True, True, None)
        if there.north_wall and south.west_wall:
            return Bounce(True, True, None)
        return Bounce(False, False, dst)

    @staticmethod
    def _require(agent: Agent, dst: CellRef, **cells: Optional[Cell]) -> None:
        missing = [name for name, cell in cells.items() if cell is None]
        if missing:
            raise InternalConsistencyError(
                f"Agent {agent.id} crossing {agent.cell} -> {dst}: "
                f"no {', '.join(missing)} cell"
            )

    def _settle(self, agent: Agent, target: Optional[CellRef]) -> bool:
        """Re-index the agent if it entered a new cell, then verify its cell."""
        if target is not None:
            self.population.relocate(agent, target)
        derived = self.grid.cell_ref(agent.x, agent.y)
        if derived != agent.cell:
            raise InternalConsistencyError(
                f"Agent {agent.id} at {agent.location} ended in {agent.cell}, "
                f"location belongs to {derived}"
            )
        return target is not None
