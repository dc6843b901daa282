"""Bounded history of tick snapshots with a rewind cursor."""

import logging
from collections import deque
from typing import Deque, Optional

from .model.state import TickSnapshot

logger = logging.getLogger(__name__)


class SimulationHistory:
    """
    Keeps the most recent snapshots of a run and a cursor into them.

    The cursor normally sits on the newest snapshot. `rewind` and `forward`
    move it without touching the engine; hand the snapshot they return to
    `EpidemicEngine.restore` to resume from that point. Appending while
    rewound drops everything after the cursor.

    A limit of 0 disables retention entirely.
    """

    def __init__(self, limit: int = 1000):
        self.limit = limit
        self._snapshots: Deque[TickSnapshot] = deque(maxlen=limit if limit > 0 else None)
        self._cursor = -1

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def position(self) -> int:
        return self._cursor

    def append(self, snapshot: TickSnapshot) -> None:
        if not self.enabled:
            return
        while len(self._snapshots) - 1 > self._cursor:
            self._snapshots.pop()
        self._snapshots.append(snapshot)
        self._cursor = len(self._snapshots) - 1

    def current(self) -> Optional[TickSnapshot]:
        if self._cursor < 0:
            return None
        return self._snapshots[self._cursor]

    def latest(self) -> Optional[TickSnapshot]:
        if not self._snapshots:
            return None
        return self._snapshots[-1]

    def rewind(self, steps: int = 1) -> Optional[TickSnapshot]:
        """Move the cursor back, stopping at the oldest retained snapshot."""
        if not self._snapshots:
            return None
        self._cursor = max(0, self._cursor - steps)
        return self.current()

    def forward(self, steps: int = 1) -> Optional[TickSnapshot]:
        """Move the cursor towards the newest snapshot."""
        if not self._snapshots:
            return None
        self._cursor = min(len(self._snapshots) - 1, self._cursor + steps)
        return self.current()

    def seek(self, tick: int) -> TickSnapshot:
        """Point the cursor at the snapshot taken after `tick` ticks."""
        for i, snapshot in enumerate(self._snapshots):
            if snapshot.tick == tick:
                self._cursor = i
                return snapshot
        raise KeyError(f"Tick {tick} is not in the retained history")

    def clear(self) -> None:
        self._snapshots.clear()
        self._cursor = -1

    def ticks(self):
        return [s.tick for s in self._snapshots]
