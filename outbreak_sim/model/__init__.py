"""Model package for the outbreak simulation."""

from .state import AgentSnapshot, TickSnapshot
from .grid import Cell, CellRef, Grid
from .agent import Agent, AgentType, IdAllocator
from .population import Population
from .movement import MovementResolver
from .clock import SimClock
from .chance import should_happen
from .engine import EpidemicEngine
from .euler import EulerModel, EulerPoint

__all__ = [
    'AgentSnapshot',
    'TickSnapshot',
    'Cell',
    'CellRef',
    'Grid',
    'Agent',
    'AgentType',
    'IdAllocator',
    'Population',
    'MovementResolver',
    'SimClock',
    'should_happen',
    'EpidemicEngine',
    'EulerModel',
    'EulerPoint',
]
