"""Outbreak simulation exception hierarchy.

Configuration problems are reported when a config is loaded or an engine is
built. Internal-consistency failures mean the world state itself is broken
(malformed wall data, an agent missing from the cell index) and are fatal
for the tick in which they are detected.
"""


class OutbreakError(Exception):
    """Root of all outbreak simulation exceptions."""


class ConfigurationError(OutbreakError):
    """Invalid or missing configuration."""


class SimulationError(OutbreakError):
    """Errors during simulation execution."""


class InternalConsistencyError(SimulationError):
    """The world reached a state the movement or index rules cannot explain."""
