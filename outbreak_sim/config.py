"""Configuration dataclasses and YAML loader for the outbreak simulation."""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from pathlib import Path
import yaml

from .exceptions import ConfigurationError

LUNAR_PHASES = 28


@dataclass
class GridConfig:
    cells_wide: int = 20
    cells_high: int = 20
    cell_width: int = 25    # pixels
    cell_height: int = 25   # pixels

    @property
    def width(self) -> int:
        """World width in pixels."""
        return self.cells_wide * self.cell_width

    @property
    def height(self) -> int:
        """World height in pixels."""
        return self.cells_high * self.cell_height


@dataclass
class PopulationConfig:
    size: int = 6000
    initial_infected: int = 0
    initial_zombified: int = 1

    @property
    def initial_susceptible(self) -> int:
        return self.size - self.initial_infected - self.initial_zombified


@dataclass
class SpeedConfig:
    susceptible_min: int = 1
    susceptible_max: int = 3
    zombified_min: int = 1
    zombified_max: int = 2


@dataclass
class InfectionConfig:
    range: int = 10          # pixels
    latency_period: int = 0  # ticks between infection and zombification


@dataclass
class RateConfig:
    """
    Event chances expressed as percentages (1 is 1%, 0.1 is 0.1%).

    A rate of 0 switches the corresponding event off.
    """
    birth: float = 0.1
    natural_death: float = 0.1
    natural_infection: float = 0.1
    susceptible_wins: float = 5.0
    transmission: float = 75.0
    aware_susceptible_wins: float = 25.0
    aware_transmission: float = 75.0


@dataclass
class AwarenessConfig:
    raised_at: float = 25.0   # percent of population affected
    initially_raised: bool = False


@dataclass
class ActivityConfig:
    day: bool = True
    night: bool = True
    lunar_phases: List[bool] = field(
        default_factory=lambda: [True] * LUNAR_PHASES
    )


@dataclass
class WallSpec:
    wall_type: str  # "cell" or "line"
    data: Dict[str, Any]


@dataclass
class SimulationConfig:
    grid: GridConfig = field(default_factory=GridConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)
    speeds: SpeedConfig = field(default_factory=SpeedConfig)
    infection: InfectionConfig = field(default_factory=InfectionConfig)
    rates: RateConfig = field(default_factory=RateConfig)
    awareness: AwarenessConfig = field(default_factory=AwarenessConfig)
    activity: ActivityConfig = field(default_factory=ActivityConfig)
    walls: List[WallSpec] = field(default_factory=list)

    max_steps: int = 5000
    repeats: int = 1
    history_limit: int = 1000
    steps_per_half_day: int = 2
    euler_step: float = 0.00000001

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    quiet: bool = False
    seed: Optional[int] = None
    out_dir: Path = field(default_factory=lambda: Path("./output"))

    def validate(self) -> "SimulationConfig":
        """Raise ConfigurationError for values the engine cannot run with."""
        validate_config(self)
        return self


def validate_config(config: SimulationConfig) -> None:
    """Check a configuration for values that would fail deep inside a tick."""
    g = config.grid
    for name in ('cells_wide', 'cells_high', 'cell_width', 'cell_height'):
        if getattr(g, name) <= 0:
            raise ConfigurationError(f"grid.{name} must be positive, got {getattr(g, name)}")

    p = config.population
    if p.size < 0:
        raise ConfigurationError(f"population.size must not be negative, got {p.size}")
    if p.initial_infected < 0 or p.initial_zombified < 0:
        raise ConfigurationError("initial infected/zombified counts must not be negative")
    if p.initial_susceptible < 0:
        raise ConfigurationError(
            f"initial infected ({p.initial_infected}) and zombified "
            f"({p.initial_zombified}) exceed population size ({p.size})"
        )

    s = config.speeds
    for name in ('susceptible_min', 'susceptible_max', 'zombified_min', 'zombified_max'):
        if getattr(s, name) < 0:
            raise ConfigurationError(f"speeds.{name} must not be negative")

    # A step, and the same step reflected, must each cross at most one
    # cell boundary per axis.
    fastest = max(s.susceptible_min, s.susceptible_max,
                  s.zombified_min, s.zombified_max)
    if 2 * fastest > g.cell_width or 2 * fastest > g.cell_height:
        raise ConfigurationError(
            f"maximum speed {fastest} must be at most half the cell size "
            f"({g.cell_width}x{g.cell_height})"
        )

    if config.infection.range < 0:
        raise ConfigurationError("infection.range must not be negative")
    if config.infection.latency_period < 0:
        raise ConfigurationError("infection.latency_period must not be negative")

    for name, value in vars(config.rates).items():
        if value < 0:
            raise ConfigurationError(f"rates.{name} must not be negative, got {value}")

    if len(config.activity.lunar_phases) != LUNAR_PHASES:
        raise ConfigurationError(
            f"activity.lunar_phases needs {LUNAR_PHASES} entries, "
            f"got {len(config.activity.lunar_phases)}"
        )

    if config.max_steps <= 0:
        raise ConfigurationError("simulation.max_steps must be positive")
    if config.repeats < 1:
        raise ConfigurationError("simulation.repeats must be at least 1")
    if config.history_limit < 0:
        raise ConfigurationError("simulation.history_limit must not be negative")
    if config.steps_per_half_day <= 0:
        raise ConfigurationError("simulation.steps_per_half_day must be positive")

    for wall in config.walls:
        if wall.wall_type not in ('cell', 'line'):
            raise ConfigurationError(f"Unknown wall type: {wall.wall_type}")


def _parse_walls(walls_raw: List[Dict]) -> List[WallSpec]:
    """Parse wall specifications from raw YAML data."""
    walls = []
    for w in walls_raw:
        wall_type = w.get('type', 'cell')
        if wall_type == 'cell':
            data = {
                'cell': tuple(w['cell']),
                'north': bool(w.get('north', False)),
                'west': bool(w.get('west', False)),
            }
        elif wall_type == 'line':
            orientation = w['orientation']
            if orientation not in ('horizontal', 'vertical'):
                raise ConfigurationError(f"Unknown wall orientation: {orientation}")
            data = {
                'orientation': orientation,
                'at': w['at'],
                'start': w['start'],
                'end': w['end'],
            }
        else:
            raise ConfigurationError(f"Unknown wall type: {wall_type}")
        walls.append(WallSpec(wall_type=wall_type, data=data))
    return walls


def _section(raw: Dict, name: str) -> Dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping")
    return value


def config_from_dict(raw: Dict) -> SimulationConfig:
    """Build a validated configuration from already-parsed YAML data."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    grid_raw = _section(raw, 'grid')
    grid = GridConfig(
        cells_wide=grid_raw.get('cells_wide', 20),
        cells_high=grid_raw.get('cells_high', 20),
        cell_width=grid_raw.get('cell_width', 25),
        cell_height=grid_raw.get('cell_height', 25)
    )

    pop_raw = _section(raw, 'population')
    population = PopulationConfig(
        size=pop_raw.get('size', 6000),
        initial_infected=pop_raw.get('initial_infected', 0),
        initial_zombified=pop_raw.get('initial_zombified', 1)
    )

    speeds_raw = _section(raw, 'speeds')
    speeds = SpeedConfig(
        susceptible_min=speeds_raw.get('susceptible_min', 1),
        susceptible_max=speeds_raw.get('susceptible_max', 3),
        zombified_min=speeds_raw.get('zombified_min', 1),
        zombified_max=speeds_raw.get('zombified_max', 2)
    )

    inf_raw = _section(raw, 'infection')
    infection = InfectionConfig(
        range=inf_raw.get('range', 10),
        latency_period=inf_raw.get('latency_period', 0)
    )

    rates_raw = _section(raw, 'rates')
    defaults = RateConfig()
    rates = RateConfig(**{
        name: float(rates_raw.get(name, getattr(defaults, name)))
        for name in vars(defaults)
    })
    unknown = set(rates_raw) - set(vars(defaults))
    if unknown:
        raise ConfigurationError(f"Unknown rates: {', '.join(sorted(unknown))}")

    aw_raw = _section(raw, 'awareness')
    awareness = AwarenessConfig(
        raised_at=float(aw_raw.get('raised_at', 25.0)),
        initially_raised=bool(aw_raw.get('initially_raised', False))
    )

    act_raw = _section(raw, 'activity')
    activity = ActivityConfig(
        day=bool(act_raw.get('day', True)),
        night=bool(act_raw.get('night', True)),
        lunar_phases=[bool(v) for v in act_raw.get('lunar_phases', [True] * LUNAR_PHASES)]
    )

    sim_raw = _section(raw, 'simulation')
    export_raw = _section(raw, 'export')

    config = SimulationConfig(
        grid=grid,
        population=population,
        speeds=speeds,
        infection=infection,
        rates=rates,
        awareness=awareness,
        activity=activity,
        walls=_parse_walls(raw.get('walls') or []),
        max_steps=sim_raw.get('max_steps', 5000),
        repeats=sim_raw.get('repeats', 1),
        history_limit=sim_raw.get('history_limit', 1000),
        steps_per_half_day=sim_raw.get('steps_per_half_day', 2),
        csv_enabled=export_raw.get('csv', True),
        seed=sim_raw.get('seed')
    )
    return config.validate()


def load_config(config_path: Path) -> SimulationConfig:
    """Load and validate YAML configuration file."""
    with open(config_path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML in {config_path}: {e}") from e

    try:
        return config_from_dict(raw)
    except (KeyError, TypeError) as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e
