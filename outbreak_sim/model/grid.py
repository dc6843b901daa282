"""Walled cell grid for the outbreak simulation."""

from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class CellRef:
    """Column/row coordinate of a grid cell."""
    x: int
    y: int

    @classmethod
    def from_location(cls, px: int, py: int,
                      cell_width: int, cell_height: int) -> "CellRef":
        """Cell containing the pixel location (px, py)."""
        return cls(px // cell_width, py // cell_height)

    def north(self) -> "CellRef":
        return CellRef(self.x, self.y - 1)

    def south(self) -> "CellRef":
        return CellRef(self.x, self.y + 1)

    def east(self) -> "CellRef":
        return CellRef(self.x + 1, self.y)

    def west(self) -> "CellRef":
        return CellRef(self.x - 1, self.y)

    def __str__(self) -> str:
        return f"Cell({self.x}, {self.y})"


@dataclass(frozen=True)
class Cell:
    """
    Wall flags of a single cell.

    Only the north and west edges are stored. The east edge of a cell is
    the west edge of its eastern neighbour, and the south edge is the north
    edge of its southern neighbour.
    """
    north_wall: bool = False
    west_wall: bool = False


class Grid:
    """
    Rectangular array of cells with shared boundary walls.

    Coordinate convention: (x, y) for API, [y, x] for array indexing.
    Row 0 is the northern edge of the world.
    """

    def __init__(self, cells_wide: int, cells_high: int,
                 cell_width: int, cell_height: int):
        if cells_wide <= 0 or cells_high <= 0:
            raise ConfigurationError(
                f"Grid needs a positive cell count, got {cells_wide}x{cells_high}"
            )
        if cell_width <= 0 or cell_height <= 0:
            raise ConfigurationError(
                f"Cells need a positive pixel size, got {cell_width}x{cell_height}"
            )
        self.cell_width = cell_width
        self.cell_height = cell_height
        self._allocate(cells_wide, cells_high)

    def _allocate(self, cells_wide: int, cells_high: int) -> None:
        self.cells_wide = cells_wide
        self.cells_high = cells_high

        # True = wall present on that edge of the cell
        self.north_walls = np.zeros((cells_high, cells_wide), dtype=bool)
        self.west_walls = np.zeros((cells_high, cells_wide), dtype=bool)

    @property
    def width(self) -> int:
        """World width in pixels."""
        return self.cells_wide * self.cell_width

    @property
    def height(self) -> int:
        """World height in pixels."""
        return self.cells_high * self.cell_height

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.cells_wide, self.cells_high)

    def resize(self, cells_wide: int, cells_high: int) -> None:
        """
        Change the cell counts.

        All wall data is discarded. Callers holding agent placement must
        drop it as well, so this is only meaningful before a run starts.
        """
        if cells_wide <= 0 or cells_high <= 0:
            raise ConfigurationError(
                f"Grid needs a positive cell count, got {cells_wide}x{cells_high}"
            )
        self._allocate(cells_wide, cells_high)

    def contains(self, ref: CellRef) -> bool:
        return 0 <= ref.x < self.cells_wide and 0 <= ref.y < self.cells_high

    def contains_pixel(self, px: int, py: int) -> bool:
        return 0 <= px < self.width and 0 <= py < self.height

    def cell_ref(self, px: int, py: int) -> CellRef:
        """Cell reference for a pixel location."""
        return CellRef.from_location(px, py, self.cell_width, self.cell_height)

    def cell_at(self, ref: CellRef) -> Optional[Cell]:
        """Wall flags for the referenced cell, or None beyond the grid."""
        if not self.contains(ref):
            return None
        return Cell(north_wall=bool(self.north_walls[ref.y, ref.x]),
                    west_wall=bool(self.west_walls[ref.y, ref.x]))

    def cells(self):
        """Iterate (CellRef, Cell) pairs in row-major order."""
        for y in range(self.cells_high):
            for x in range(self.cells_wide):
                ref = CellRef(x, y)
                yield ref, self.cell_at(ref)

    def wall_between(self, a: CellRef, b: CellRef) -> bool:
        """Whether a wall separates two axis-adjacent cells."""
        dx = b.x - a.x
        dy = b.y - a.y
        if abs(dx) + abs(dy) != 1:
            raise ValueError(f"{a} and {b} are not axis-adjacent")
        # The flag lives on whichever cell is south/east of the shared edge
        if not (self.contains(a) and self.contains(b)):
            return True  # edge of the world
        owner = b if (dx > 0 or dy > 0) else a
        if dx != 0:
            return bool(self.west_walls[owner.y, owner.x])
        return bool(self.north_walls[owner.y, owner.x])

    # Wall editing. Used by configuration loading only; the engine never
    # changes walls while ticking.

    def set_north_wall(self, ref: CellRef, present: bool = True) -> None:
        self._require(ref)
        self.north_walls[ref.y, ref.x] = present

    def set_west_wall(self, ref: CellRef, present: bool = True) -> None:
        self._require(ref)
        self.west_walls[ref.y, ref.x] = present

    def set_wall_between(self, a: CellRef, b: CellRef,
                         present: bool = True) -> None:
        """Place or clear the shared wall between two adjacent cells."""
        dx = b.x - a.x
        dy = b.y - a.y
        if abs(dx) + abs(dy) != 1:
            raise ValueError(f"{a} and {b} are not axis-adjacent")
        owner = b if (dx > 0 or dy > 0) else a
        if dx != 0:
            self.set_west_wall(owner, present)
        else:
            self.set_north_wall(owner, present)

    def add_wall_line(self, orientation: str, at: int,
                      start: int, end: int) -> None:
        """
        Draw a straight run of wall edges along a grid line.

        A vertical line at column boundary `at` sets the west wall of
        cells (at, start..end); a horizontal line at row boundary `at` sets
        the north wall of cells (start..end, at). Cells outside the grid
        are clipped.
        """
        lo, hi = min(start, end), max(start, end)
        if orientation == 'vertical':
            if not 0 <= at < self.cells_wide:
                return
            lo, hi = max(0, lo), min(self.cells_high - 1, hi)
            self.west_walls[lo:hi + 1, at] = True
        elif orientation == 'horizontal':
            if not 0 <= at < self.cells_high:
                return
            lo, hi = max(0, lo), min(self.cells_wide - 1, hi)
            self.north_walls[at, lo:hi + 1] = True
        else:
            raise ValueError(f"Unknown orientation: {orientation}")

    def wall_count(self) -> int:
        return int(self.north_walls.sum() + self.west_walls.sum())

    def _require(self, ref: CellRef) -> None:
        if not self.contains(ref):
            raise ConfigurationError(f"{ref} is outside a {self.cells_wide}x{self.cells_high} grid")
