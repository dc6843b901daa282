from __future__ import annotations

import pytest

from outbreak_sim.exceptions import ConfigurationError
from outbreak_sim.model.grid import Cell, CellRef, Grid


class TestCellRef:
    def test_from_location_uses_integer_division(self) -> None:
        assert CellRef.from_location(49, 25, 50, 50) == CellRef(0, 0)
        assert CellRef.from_location(50, 0, 50, 50) == CellRef(1, 0)
        assert CellRef.from_location(99, 149, 50, 50) == CellRef(1, 2)

    def test_neighbours(self) -> None:
        ref = CellRef(2, 3)
        assert ref.north() == CellRef(2, 2)
        assert ref.south() == CellRef(2, 4)
        assert ref.east() == CellRef(3, 3)
        assert ref.west() == CellRef(1, 3)

    def test_hashable(self) -> None:
        assert len({CellRef(1, 1), CellRef(1, 1), CellRef(1, 2)}) == 2


class TestGrid:
    def test_dimensions_in_pixels(self) -> None:
        grid = Grid(4, 3, 50, 25)
        assert grid.width == 200
        assert grid.height == 75
        assert grid.shape == (4, 3)

    def test_cell_at_beyond_bounds_is_none(self) -> None:
        grid = Grid(2, 2, 50, 50)
        assert grid.cell_at(CellRef(1, 1)) == Cell()
        assert grid.cell_at(CellRef(2, 0)) is None
        assert grid.cell_at(CellRef(0, -1)) is None

    def test_west_wall_separates_horizontal_neighbours(self) -> None:
        grid = Grid(2, 2, 50, 50)
        grid.set_west_wall(CellRef(1, 0))
        assert grid.wall_between(CellRef(0, 0), CellRef(1, 0))
        assert grid.wall_between(CellRef(1, 0), CellRef(0, 0))
        assert not grid.wall_between(CellRef(0, 1), CellRef(1, 1))

    def test_north_wall_separates_vertical_neighbours(self) -> None:
        grid = Grid(2, 2, 50, 50)
        grid.set_north_wall(CellRef(0, 1))
        assert grid.wall_between(CellRef(0, 0), CellRef(0, 1))
        assert grid.wall_between(CellRef(0, 1), CellRef(0, 0))
        assert not grid.wall_between(CellRef(1, 0), CellRef(1, 1))

    def test_world_edge_counts_as_wall(self) -> None:
        grid = Grid(2, 2, 50, 50)
        assert grid.wall_between(CellRef(0, 0), CellRef(-1, 0))
        assert grid.wall_between(CellRef(1, 1), CellRef(1, 2))

    def test_wall_between_requires_adjacent_cells(self) -> None:
        grid = Grid(3, 3, 50, 50)
        with pytest.raises(ValueError):
            grid.wall_between(CellRef(0, 0), CellRef(1, 1))

    def test_set_wall_between_picks_owner(self) -> None:
        grid = Grid(3, 3, 50, 50)
        grid.set_wall_between(CellRef(2, 1), CellRef(1, 1))
        assert grid.cell_at(CellRef(2, 1)).west_wall
        grid.set_wall_between(CellRef(0, 0), CellRef(0, 1))
        assert grid.cell_at(CellRef(0, 1)).north_wall
        assert grid.wall_count() == 2

    def test_wall_line_is_clipped(self) -> None:
        grid = Grid(4, 4, 50, 50)
        grid.add_wall_line('vertical', 2, 0, 10)
        assert grid.wall_count() == 4
        assert all(grid.cell_at(CellRef(2, y)).west_wall for y in range(4))

        grid.add_wall_line('horizontal', 1, 3, 1)
        assert grid.wall_count() == 7
        assert grid.cell_at(CellRef(1, 1)).north_wall
        assert not grid.cell_at(CellRef(0, 1)).north_wall

    def test_unknown_line_orientation(self) -> None:
        grid = Grid(2, 2, 50, 50)
        with pytest.raises(ValueError):
            grid.add_wall_line('diagonal', 0, 0, 1)

    def test_resize_discards_walls(self) -> None:
        grid = Grid(2, 2, 50, 50)
        grid.set_north_wall(CellRef(1, 1))
        grid.resize(5, 3)
        assert grid.shape == (5, 3)
        assert grid.wall_count() == 0

        grid.set_west_wall(CellRef(4, 2))
        grid.resize(5, 3)
        assert grid.wall_count() == 0

    def test_non_positive_dimensions_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            Grid(0, 2, 50, 50)
        with pytest.raises(ConfigurationError):
            Grid(2, 2, 50, -1)
        with pytest.raises(ConfigurationError):
            Grid(2, 2, 50, 50).resize(2, 0)

    def test_editing_outside_grid_rejected(self) -> None:
        grid = Grid(2, 2, 50, 50)
        with pytest.raises(ConfigurationError):
            grid.set_north_wall(CellRef(2, 0))

    def test_cells_iterates_row_major(self) -> None:
        grid = Grid(2, 2, 10, 10)
        refs = [ref for ref, _ in grid.cells()]
        assert refs == [CellRef(0, 0), CellRef(1, 0), CellRef(0, 1), CellRef(1, 1)]
