#!/usr/bin/env python3
"""
Outbreak Simulation

Agents wander a walled grid world while zombies bite, susceptibles fight
back and the dead occasionally rise.

Usage:
    python -m outbreak_sim --config configs/default.yaml [options]

Examples:
    python -m outbreak_sim --config configs/default.yaml
    python -m outbreak_sim --config configs/walled_town.yaml --repeats 5 --out-dir results/
    python -m outbreak_sim --config configs/default.yaml --no-csv --quiet
    python -m outbreak_sim --config configs/default.yaml --seed 42
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from outbreak_sim.config import load_config
from outbreak_sim.exceptions import ConfigurationError, InternalConsistencyError
from outbreak_sim.runner import SimulationRunner
from outbreak_sim.export.csv_writer import CSVWriter, COUNT_COLUMNS, AVERAGE_COLUMNS
from outbreak_sim.export.reporter import Reporter

COUNTS_FILE = 'outbreak_counts.csv'
AVERAGES_FILE = 'outbreak_averages.csv'


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Outbreak Simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m outbreak_sim --config configs/default.yaml
    python -m outbreak_sim --config configs/walled_town.yaml --repeats 5 --out-dir results/
    python -m outbreak_sim --config configs/default.yaml --no-csv --quiet
    python -m outbreak_sim --config configs/default.yaml --seed 42
        """
    )

    # Required arguments
    parser.add_argument('--config', type=Path, required=True,
                        help='Path to YAML configuration file')

    # Optional overrides
    parser.add_argument('--steps', type=int, default=None,
                        help='Override max simulation steps')
    parser.add_argument('--repeats', type=int, default=None,
                        help='Override number of repeated runs')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Log every simulation step')

    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')

    return parser.parse_args(argv)


def configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except ConfigurationError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.steps is not None:
        config.max_steps = args.steps
    if args.repeats is not None:
        config.repeats = args.repeats
    if args.csv is not None:
        config.csv_enabled = args.csv
    config.quiet = args.quiet
    if args.seed is not None:
        config.seed = args.seed
    config.out_dir = args.out_dir

    try:
        config.validate()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Initialize runner
    if not config.quiet:
        print(f"Initializing simulation...")
        print(f"  Grid: {config.grid.cells_wide}x{config.grid.cells_high} cells "
              f"({config.grid.width}x{config.grid.height} px)")
        print(f"  Population: {config.population.size}")
        print(f"  Max steps: {config.max_steps}")
        print(f"  Repeats: {config.repeats}")

    runner = SimulationRunner(config)

    if not config.quiet:
        print(f"  Walls: {runner.engine.grid.wall_count()} edges")

    # Initialize exporters
    csv_writer = None
    if config.csv_enabled:
        csv_writer = CSVWriter(config.out_dir / COUNTS_FILE, ['run'] + COUNT_COLUMNS)
        csv_writer.open()

    reporter = Reporter(str(args.config), config.seed)

    current_run = [0]

    def on_tick(snapshot) -> None:
        if csv_writer:
            csv_writer.write_row(dict(snapshot.to_csv_row(), run=current_run[0]))
        reporter.update(snapshot)

        # Progress indicator
        if not config.quiet and snapshot.tick % 100 == 0:
            print(f"  Step {snapshot.tick}: S={snapshot.susceptible} I={snapshot.infected} "
                  f"Z={snapshot.zombified} R={snapshot.removed}")

    # Main simulation loop
    if not config.quiet:
        print(f"\nRunning simulation...")

    try:
        for repeat in range(config.repeats):
            if repeat > 0:
                runner.reset()
                reporter.reset()
            if not config.quiet and config.repeats > 1:
                print(f"\n  Run {repeat + 1}/{config.repeats}")
            current_run[0] = repeat
            on_tick(runner.engine.snapshot())
            runner.run_once(on_tick=on_tick)
    except KeyboardInterrupt:
        if not config.quiet:
            print("\nSimulation interrupted by user.")
    except InternalConsistencyError as e:
        print(f"Error: simulation faulted: {e}", file=sys.stderr)
        return 2
    finally:
        if csv_writer:
            csv_writer.close()

    if csv_writer and not config.quiet:
        print(f"\nCSV saved: {config.out_dir / COUNTS_FILE}")

    if config.csv_enabled and config.repeats > 1 and runner.results:
        with CSVWriter(config.out_dir / AVERAGES_FILE, AVERAGE_COLUMNS) as averages:
            averages.write_rows(runner.averaged_counts())
        if not config.quiet:
            print(f"Averages saved: {config.out_dir / AVERAGES_FILE}")

    # Print summary report
    if not config.quiet and runner.results:
        last = runner.results[-1]
        report = reporter.generate_summary(
            last.final,
            config.out_dir,
            config.csv_enabled,
            config.repeats,
            last.euler[-1] if last.euler else None
        )
        print(report)

    return 0


if __name__ == '__main__':
    sys.exit(main())
