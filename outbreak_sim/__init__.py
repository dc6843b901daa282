"""Agent-based outbreak simulation on a walled grid world."""

__version__ = "0.1.0"
