"""CSV export of per-tick population counts."""

import csv
from pathlib import Path
from typing import Dict, Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import TickSnapshot

COUNT_COLUMNS = ['tick', 'susceptible', 'infected', 'zombified', 'removed',
                 'total', 'awareness_raised', 'day', 'lunar_phase']

AVERAGE_COLUMNS = ['tick', 'runs', 'susceptible', 'infected', 'zombified', 'removed']


class CSVWriter:
    """
    Writes one row of counts per tick, appending as the run progresses.

    Output format:
        tick,susceptible,infected,zombified,removed,total,awareness_raised,day,lunar_phase
        0,5999,0,1,0,6000,0,1,0
        ...
    """

    def __init__(self, output_path: Path, fieldnames=None):
        self.output_path = Path(output_path)
        self.fieldnames = list(fieldnames or COUNT_COLUMNS)
        self.file: Optional[object] = None
        self.writer: Optional[csv.DictWriter] = None
        self._is_open = False

    def open(self) -> None:
        """Create the file and write the header."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', newline='')
        self.writer = csv.DictWriter(self.file, fieldnames=self.fieldnames)
        self.writer.writeheader()
        self._is_open = True

    def append(self, snapshot: "TickSnapshot") -> None:
        self.write_row(snapshot.to_csv_row())

    def write_row(self, row: Dict) -> None:
        if not self._is_open:
            self.open()
        self.writer.writerow(row)
        self.file.flush()

    def write_rows(self, rows: Iterable[Dict]) -> None:
        for row in rows:
            self.write_row(row)

    def close(self) -> None:
        if self.file:
            self.file.close()
            self.file = None
            self.writer = None
            self._is_open = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
