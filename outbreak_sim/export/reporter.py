"""Text summary of an outbreak run."""

from typing import List, Dict, Optional, TYPE_CHECKING
from pathlib import Path

from ..model.agent import AgentType

if TYPE_CHECKING:
    from ..model.state import TickSnapshot
    from ..model.euler import EulerPoint


class Reporter:
    """Tracks peaks over a run and renders the final report."""

    def __init__(self, config_path: str, seed: Optional[int]):
        self.config_path = config_path
        self.seed = seed
        self.step_metrics: List[Dict] = []
        self.peaks: Dict[AgentType, int] = {t: 0 for t in AgentType}
        self.peak_ticks: Dict[AgentType, int] = {t: 0 for t in AgentType}
        self.awareness_tick: Optional[int] = None
        self.completed_at: Optional[int] = None

    def update(self, snapshot: "TickSnapshot") -> None:
        """Accumulate metrics for one tick."""
        self.step_metrics.append(snapshot.metrics())

        for agent_type, count in snapshot.counts().items():
            if count > self.peaks[agent_type]:
                self.peaks[agent_type] = count
                self.peak_ticks[agent_type] = snapshot.tick

        if snapshot.awareness_raised and self.awareness_tick is None:
            self.awareness_tick = snapshot.tick
        if snapshot.complete and self.completed_at is None:
            self.completed_at = snapshot.tick

    def reset(self) -> None:
        """Clear the per-run accumulators; configuration and seed are kept."""
        self.step_metrics = []
        self.peaks = {t: 0 for t in AgentType}
        self.peak_ticks = {t: 0 for t in AgentType}
        self.awareness_tick = None
        self.completed_at = None

    def generate_summary(self, final: "TickSnapshot",
                         output_dir: Path,
                         csv_enabled: bool,
                         repeats: int = 1,
                         euler_final: Optional["EulerPoint"] = None) -> str:
        """Returns formatted text report."""
        metrics = final.metrics()
        if self.completed_at is not None:
            outcome = f"no susceptibles left after {self.completed_at} steps"
        else:
            outcome = f"stopped after {final.tick} steps with {final.susceptible} susceptible"

        lines = [
            "",
            "=" * 80,
            "                      OUTBREAK SIMULATION REPORT",
            "=" * 80,
            f"Configuration: {self.config_path}",
            f"Random Seed: {self.seed if self.seed is not None else 'None (random)'}",
            f"Repeats: {repeats}",
            "",
            "FINAL POPULATION",
            "-" * 40,
            f"Total Steps:           {final.tick}",
            f"Susceptible:           {final.susceptible}",
            f"Infected:              {final.infected}",
            f"Zombified:             {final.zombified}",
            f"Removed:               {final.removed}",
            f"Total:                 {final.total}",
            f"Affected:              {metrics['affected_pct']:.1f}%",
            f"Outcome:               {outcome}",
            "",
            "PEAKS",
            "-" * 40,
        ]
        for agent_type in AgentType:
            lines.append(
                f"{agent_type.label + ':':<22} {self.peaks[agent_type]} at step {self.peak_ticks[agent_type]}"
            )

        lines += [
            "",
            "AWARENESS",
            "-" * 40,
        ]
        if self.awareness_tick is not None:
            lines.append(f"[X] Raised at step {self.awareness_tick}")
        else:
            lines.append("[ ] Never raised")

        if euler_final is not None:
            lines += [
                "",
                "EULER APPROXIMATION",
                "-" * 40,
                f"Steps:                 {euler_final.index + 1}",
                f"S / Z / R:             {euler_final.susceptible} / "
                f"{euler_final.zombified} / {euler_final.removed}",
            ]

        lines += [
            "",
            "OUTPUT FILES",
            "-" * 40,
        ]
        if csv_enabled:
            lines.append(f"CSV Log:    {output_dir / 'outbreak_counts.csv'}")
            if repeats > 1:
                lines.append(f"Averages:   {output_dir / 'outbreak_averages.csv'}")
        else:
            lines.append("CSV Log:    (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)
