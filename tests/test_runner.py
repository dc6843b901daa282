from __future__ import annotations

import pytest

from outbreak_sim.exceptions import InternalConsistencyError, SimulationError
from outbreak_sim.runner import RunResult, SimulationRunner


def _row(tick: int, susceptible: int) -> dict:
    return {'tick': tick, 'susceptible': susceptible, 'infected': 0,
            'zombified': 0, 'removed': 0}


class TestRun:
    def test_single_run(self, make_config) -> None:
        runner = SimulationRunner(make_config(max_steps=20))
        results = runner.run()

        assert len(results) == 1
        result = results[0]
        assert result.counts[0]['tick'] == 0
        assert len(result.counts) == result.ticks + 1
        assert result.final.tick == result.ticks
        assert len(runner.history) == result.ticks + 1
        assert len(result.euler) == result.ticks

    def test_repeats_reset_between_runs(self, make_config) -> None:
        runner = SimulationRunner(make_config(max_steps=15, repeats=3))
        results = runner.run()

        assert [r.run_index for r in results] == [0, 1, 2]
        assert all(r.counts[0]['tick'] == 0 for r in results)
        assert all(r.counts[0]['susceptible'] == 56 for r in results)
        # Same generator, different draws
        assert results[0].final.agents != results[1].final.agents

    def test_seeded_runs_reproduce(self, make_config) -> None:
        first = SimulationRunner(make_config(max_steps=25, seed=5)).run()
        second = SimulationRunner(make_config(max_steps=25, seed=5)).run()
        assert first[0].counts == second[0].counts

    def test_on_tick_sees_every_step(self, make_config) -> None:
        seen = []
        runner = SimulationRunner(make_config(max_steps=10))
        runner.run(on_tick=lambda snapshot: seen.append(snapshot.tick))
        assert seen == list(range(1, runner.results[0].ticks + 1))

    def test_stop_ends_the_run_and_skips_repeats(self, make_config) -> None:
        runner = SimulationRunner(make_config(max_steps=50, repeats=3))

        def stop_at_three(snapshot):
            if snapshot.tick == 3:
                runner.stop()

        produced = runner.run(on_tick=stop_at_three)

        assert len(produced) == 1
        assert produced[0].ticks == 3
        assert runner.engine.current_step == 3

        # A later run starts unstopped
        assert len(runner.run()) == 3

    def test_fault_marks_runner(self, make_config, monkeypatch) -> None:
        runner = SimulationRunner(make_config(max_steps=10))

        def broken_move(agent, rng):
            raise InternalConsistencyError("agent without cell")

        monkeypatch.setattr(runner.engine.resolver, 'move', broken_move)
        with pytest.raises(InternalConsistencyError):
            runner.run()
        assert runner.faulted
        with pytest.raises(SimulationError):
            runner.run()


class TestAveragedCounts:
    def test_averages_over_runs_reaching_each_tick(self, make_config) -> None:
        runner = SimulationRunner(make_config())
        runner.results = [
            RunResult(0, counts=[_row(0, 10), _row(1, 8)]),
            RunResult(1, counts=[_row(0, 20)]),
        ]

        averaged = runner.averaged_counts()

        assert averaged[0]['tick'] == 0
        assert averaged[0]['runs'] == 2
        assert averaged[0]['susceptible'] == 15.0
        assert averaged[1] == {'tick': 1, 'runs': 1, 'susceptible': 8.0,
                               'infected': 0.0, 'zombified': 0.0, 'removed': 0.0}

    def test_real_runs(self, make_config) -> None:
        runner = SimulationRunner(make_config(max_steps=10, repeats=2))
        runner.run()
        averaged = runner.averaged_counts()
        assert averaged[0]['runs'] == 2
        assert averaged[0]['susceptible'] == 56.0


class TestThreaded:
    def test_consumer_receives_snapshots_in_order(self, make_config) -> None:
        seen = []
        runner = SimulationRunner(make_config(max_steps=30, repeats=2))

        results = runner.run_threaded(lambda snapshot: seen.append(snapshot.tick), queue_size=4)

        assert len(results) == 2
        expected = (list(range(1, results[0].ticks + 1))
                    + list(range(1, results[1].ticks + 1)))
        assert seen == expected

    def test_matches_unthreaded_run(self, make_config) -> None:
        threaded = SimulationRunner(make_config(max_steps=20, seed=8))
        threaded.run_threaded(lambda snapshot: None)
        direct = SimulationRunner(make_config(max_steps=20, seed=8))
        direct.run()
        assert threaded.results[0].counts == direct.results[0].counts

    def test_producer_fault_is_reraised(self, make_config, monkeypatch) -> None:
        runner = SimulationRunner(make_config(max_steps=10))

        def broken_move(agent, rng):
            raise InternalConsistencyError("no diagonal case")

        monkeypatch.setattr(runner.engine.resolver, 'move', broken_move)
        with pytest.raises(InternalConsistencyError):
            runner.run_threaded(lambda snapshot: None)
        assert runner.faulted

    def test_consumer_error_stops_producer(self, make_config) -> None:
        runner = SimulationRunner(make_config(max_steps=1000))

        def failing(snapshot):
            if snapshot.tick == 3:
                raise ValueError("display closed")

        with pytest.raises(ValueError):
            runner.run_threaded(failing, queue_size=2)
        assert runner.engine.current_step < 1000
