from __future__ import annotations

import csv
from pathlib import Path

from outbreak_sim.main import AVERAGES_FILE, COUNTS_FILE, main

SMALL_CONFIG = """
grid: {cells_wide: 4, cells_high: 4, cell_width: 50, cell_height: 50}
population: {size: 80, initial_zombified: 3}
simulation: {max_steps: 12}
"""


def _small(tmp_path: Path) -> Path:
    path = tmp_path / "small.yaml"
    path.write_text(SMALL_CONFIG)
    return path


class TestMain:
    def test_writes_counts(self, tmp_path: Path) -> None:
        out = tmp_path / "out"
        code = main(['--config', str(_small(tmp_path)), '--out-dir', str(out),
                     '--seed', '3', '--quiet'])

        assert code == 0
        with open(out / COUNTS_FILE, newline='') as f:
            rows = list(csv.DictReader(f))
        assert rows[0]['run'] == '0'
        assert rows[0]['tick'] == '0'
        assert rows[-1]['tick'] == str(len(rows) - 1)
        assert len(rows) <= 13

    def test_step_override_and_report(self, tmp_path: Path, capsys) -> None:
        code = main(['--config', str(_small(tmp_path)), '--out-dir', str(tmp_path),
                     '--steps', '3', '--seed', '1'])

        assert code == 0
        out = capsys.readouterr().out
        assert "OUTBREAK SIMULATION REPORT" in out
        assert "Total Steps:           3" in out

    def test_repeats_write_averages(self, tmp_path: Path) -> None:
        code = main(['--config', str(_small(tmp_path)), '--out-dir', str(tmp_path),
                     '--repeats', '2', '--seed', '4', '--quiet'])

        assert code == 0
        with open(tmp_path / AVERAGES_FILE, newline='') as f:
            rows = list(csv.DictReader(f))
        assert rows[0]['runs'] == '2'
        with open(tmp_path / COUNTS_FILE, newline='') as f:
            runs = {row['run'] for row in csv.DictReader(f)}
        assert runs == {'0', '1'}

    def test_no_csv(self, tmp_path: Path) -> None:
        code = main(['--config', str(_small(tmp_path)), '--out-dir', str(tmp_path / "none"),
                     '--no-csv', '--quiet'])
        assert code == 0
        assert not (tmp_path / "none").exists()

    def test_missing_config(self, tmp_path: Path, capsys) -> None:
        assert main(['--config', str(tmp_path / "absent.yaml"), '--quiet']) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("rates: {birth: -1}\n")
        assert main(['--config', str(path), '--quiet']) == 1
        assert "birth" in capsys.readouterr().err

    def test_invalid_override(self, tmp_path: Path) -> None:
        assert main(['--config', str(_small(tmp_path)), '--steps', '0', '--quiet']) == 1
