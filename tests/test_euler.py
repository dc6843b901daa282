from __future__ import annotations

import pytest

from outbreak_sim.config import PopulationConfig
from outbreak_sim.model.euler import EulerModel, round_half_up


@pytest.fixture
def bite_only(make_config, calm_rates):
    return make_config(
        population=PopulationConfig(size=100, initial_infected=0, initial_zombified=1),
        rates=calm_rates(transmission=100.0),
    )


class TestEulerModel:
    def test_initial_state(self, bite_only) -> None:
        model = EulerModel(bite_only)
        assert model.susceptible == 99
        assert model.zombified == 1
        assert model.removed == 0
        assert model.beta == 100.0
        assert model.alpha == 0.0

    def test_rate_derivation(self, make_config) -> None:
        model = EulerModel(make_config())
        # Defaults: 5% wins, 75% transmission, 0.1% background rates
        assert model.alpha == 5.0
        assert model.beta == pytest.approx(71.25)
        assert model.zeta == pytest.approx(1000.0)
        assert model.delta == pytest.approx(1000.0)

    def test_first_step(self, bite_only) -> None:
        point = EulerModel(bite_only).step()
        assert point.index == 0
        assert point.susceptible == 99
        assert point.zombified == 1
        assert point.total == 100

    def test_runs_until_susceptibles_exhausted(self, bite_only) -> None:
        bite_only.euler_step = 0.001
        model = EulerModel(bite_only)

        points = model.run(100)

        assert [p.index for p in points] == [0, 1]
        assert points[0].susceptible == 89
        assert points[0].zombified == 11
        assert all(p.total == 100 for p in points)
        assert model.complete
        assert model.step() is None

    def test_reset(self, bite_only) -> None:
        bite_only.euler_step = 0.001
        model = EulerModel(bite_only)
        model.run(100)
        model.reset()
        assert not model.complete
        assert model.susceptible == 99
        assert model.step().index == 0


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2.5, 3), (2.4999, 2), (-2.5, -2), (-2.6, -3), (0.0, 0)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected
