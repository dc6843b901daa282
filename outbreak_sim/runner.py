"""Drives the engine through complete runs, repeats and a background thread."""

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

import numpy as np

from .history import SimulationHistory
from .model.engine import EpidemicEngine
from .model.euler import EulerModel, EulerPoint
from .model.state import TickSnapshot
from .exceptions import InternalConsistencyError, SimulationError

if TYPE_CHECKING:
    from .config import SimulationConfig

logger = logging.getLogger(__name__)

COUNT_FIELDS = ('susceptible', 'infected', 'zombified', 'removed')

_DONE = object()


@dataclass
class RunResult:
    """Per-tick aggregates of one complete run."""
    run_index: int
    counts: List[Dict] = field(default_factory=list)
    euler: List[EulerPoint] = field(default_factory=list)
    final: Optional[TickSnapshot] = None
    awareness_raised_at_step: Optional[int] = None

    @property
    def ticks(self) -> int:
        return self.final.tick if self.final is not None else 0

    @property
    def complete(self) -> bool:
        return self.final is not None and self.final.complete


class SimulationRunner:
    """
    Runs the outbreak to completion (or `max_steps`) `repeats` times.

    The engine is reset between repeats but keeps drawing from the same
    generator, so repeats differ while the whole batch stays reproducible
    from one seed. The Euler model advances one step per tick alongside
    the agents until it completes.
    """

    def __init__(self, config: "SimulationConfig",
                 rng: Optional[np.random.Generator] = None):
        self.config = config
        self.engine = EpidemicEngine(config, rng)
        self.euler = EulerModel(config)
        self.history = SimulationHistory(config.history_limit)
        self.results: List[RunResult] = []
        self.faulted = False

        self._stop = threading.Event()

    def run_once(self, on_tick: Optional[Callable[[TickSnapshot], None]] = None) -> RunResult:
        """Run the current engine state until it finishes."""
        result = RunResult(run_index=len(self.results))
        initial = self.engine.snapshot()
        self.history.append(initial)
        result.counts.append(initial.to_csv_row())
        result.final = initial

        while not self.engine.is_finished():
            if self._stop.is_set():
                logger.info("Run %d stopped at step %d", result.run_index, self.engine.current_step)
                break
            try:
                snapshot = self.engine.step()
            except InternalConsistencyError:
                self.faulted = True
                raise

            self.history.append(snapshot)
            result.counts.append(snapshot.to_csv_row())
            result.final = snapshot

            if not self.euler.complete:
                point = self.euler.step()
                if point is not None:
                    result.euler.append(point)

            if on_tick is not None:
                on_tick(snapshot)

        result.awareness_raised_at_step = self.engine.awareness_raised_at_step
        self.results.append(result)
        logger.info("Run %d finished after %d steps (complete=%s)",
                    result.run_index, result.ticks, result.complete)
        return result

    def run(self, on_tick: Optional[Callable[[TickSnapshot], None]] = None) -> List[RunResult]:
        """Run every repeat; returns the results of this call."""
        if self.faulted:
            raise SimulationError("Runner is faulted; create a new runner")
        self._stop.clear()
        produced = []
        for repeat in range(self.config.repeats):
            if repeat > 0 or self.engine.current_step > 0:
                self.reset()
            produced.append(self.run_once(on_tick))
            if self._stop.is_set():
                break
        return produced

    def reset(self) -> None:
        """Fresh initial population, Euler model and history for the next run."""
        self.engine.reset()
        self.euler.reset()
        self.history.clear()

    def stop(self) -> None:
        """Ask the current run to end after the tick in progress."""
        self._stop.set()

    def averaged_counts(self) -> List[Dict[str, float]]:
        """
        Mean count per type for each tick over all recorded runs.

        Runs that finished early only contribute to the ticks they reached.
        """
        sums: Dict[int, Dict[str, float]] = {}
        divisors: Dict[int, int] = {}
        for result in self.results:
            for row in result.counts:
                tick = row['tick']
                totals = sums.setdefault(tick, {name: 0.0 for name in COUNT_FIELDS})
                for name in COUNT_FIELDS:
                    totals[name] += row[name]
                divisors[tick] = divisors.get(tick, 0) + 1

        averaged = []
        for tick in sorted(sums):
            row = {'tick': tick, 'runs': divisors[tick]}
            for name in COUNT_FIELDS:
                row[name] = sums[tick][name] / divisors[tick]
            averaged.append(row)
        return averaged

    def run_threaded(self, consumer: Callable[[TickSnapshot], None],
                     queue_size: int = 64) -> List[RunResult]:
        """
        Run on a background thread and hand each snapshot to `consumer`
        on the calling thread.

        A fault on the simulation thread is re-raised here once the
        consumer has seen every snapshot produced before it.
        """
        handoff: "queue.Queue" = queue.Queue(maxsize=queue_size)
        outcome: Dict[str, object] = {}
        self._stop.clear()

        def publish(item) -> None:
            while not self._stop.is_set():
                try:
                    handoff.put(item, timeout=0.1)
                    return
                except queue.Full:
                    continue

        def produce() -> None:
            try:
                outcome['results'] = self.run(on_tick=publish)
            except BaseException as e:  # re-raised on the consumer side
                outcome['error'] = e
            finally:
                publish(_DONE)

        thread = threading.Thread(target=produce, name="outbreak-sim", daemon=True)
        thread.start()
        try:
            while True:
                item = handoff.get()
                if item is _DONE:
                    break
                consumer(item)
        finally:
            self._stop.set()
            thread.join()
            self._stop.clear()

        if 'error' in outcome:
            logger.error("Simulation thread failed: %s", outcome['error'])
            raise outcome['error']
        return outcome['results']
