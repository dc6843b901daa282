"""Day/night and lunar phase derived from the tick counter."""

from dataclasses import dataclass
from typing import Sequence

from ..config import LUNAR_PHASES


@dataclass(frozen=True)
class SimClock:
    """
    Calendar view of a tick number.

    A half day lasts `steps_per_half_day` ticks, so a full day is twice
    that, and the moon advances one phase per full day.
    """
    tick: int
    steps_per_half_day: int = 2

    @property
    def is_day(self) -> bool:
        return (self.tick // self.steps_per_half_day) % 2 == 0

    @property
    def is_night(self) -> bool:
        return not self.is_day

    @property
    def lunar_phase(self) -> int:
        return (self.tick // (self.steps_per_half_day * 2)) % LUNAR_PHASES

    def monster_active(self, active_by_day: bool, active_by_night: bool,
                       lunar_phases: Sequence[bool]) -> bool:
        """Whether zombies hunt during this tick."""
        if self.is_day:
            return active_by_day
        return active_by_night and bool(lunar_phases[self.lunar_phase])
