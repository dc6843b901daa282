"""Shared fixtures for outbreak simulation tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from outbreak_sim.config import (
    GridConfig,
    InfectionConfig,
    PopulationConfig,
    RateConfig,
    SimulationConfig,
    SpeedConfig,
)
from outbreak_sim.model.engine import EpidemicEngine

CONFIG_DIR = Path(__file__).resolve().parent.parent / "configs"


def _calm_rates(**overrides) -> RateConfig:
    """Every event switched off unless overridden."""
    values = dict(
        birth=0.0,
        natural_death=0.0,
        natural_infection=0.0,
        susceptible_wins=0.0,
        transmission=0.0,
        aware_susceptible_wins=0.0,
        aware_transmission=0.0,
    )
    values.update(overrides)
    return RateConfig(**values)


def _make_config(**overrides) -> SimulationConfig:
    """Small 4x4 world of 50px cells with a handful of agents."""
    values = dict(
        grid=GridConfig(cells_wide=4, cells_high=4, cell_width=50, cell_height=50),
        population=PopulationConfig(size=60, initial_infected=2, initial_zombified=2),
        seed=1234,
        max_steps=200,
    )
    values.update(overrides)
    return SimulationConfig(**values)


def _still_config(**overrides) -> SimulationConfig:
    """Empty world where nobody moves and nothing happens by itself."""
    values = dict(
        population=PopulationConfig(size=0, initial_infected=0, initial_zombified=0),
        speeds=SpeedConfig(0, 0, 0, 0),
        infection=InfectionConfig(range=10, latency_period=0),
        rates=_calm_rates(),
    )
    values.update(overrides)
    return _make_config(**values)


@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a deterministic generator for tests."""
    return np.random.default_rng(42)


@pytest.fixture
def calm_rates():
    return _calm_rates


@pytest.fixture
def make_config():
    return _make_config


@pytest.fixture
def still_config():
    return _still_config


@pytest.fixture
def engine() -> EpidemicEngine:
    return EpidemicEngine(_make_config())


@pytest.fixture
def config_dir() -> Path:
    return CONFIG_DIR
