from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np


Coordinate = Tuple[int, int]


@dataclass(frozen=True)
class Cell:
    occupied: bool
    color: Optional[int] = None


EMPTY = Cell(occupied=False)

# Color-array value of an occupied cell that carries no color.
NO_COLOR = 0


class Grid:
    """Fixed-size square cell matrix.

    Occupancy and color live in two parallel numpy arrays indexed
    ``[row, col]``. A color of ``NO_COLOR`` means "no color".
    """

    def __init__(self, size: int) -> None:
        self.size = int(size)
        self.occupied = np.zeros((self.size, self.size), dtype=np.bool_)
        self.colors = np.zeros((self.size, self.size), dtype=np.int64)

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def cell(self, row: int, col: int) -> Cell:
        if not self.occupied[row, col]:
            return EMPTY
        color = int(self.colors[row, col])
        return Cell(occupied=True, color=color or None)

    def set_cell(self, row: int, col: int, color: Optional[int]) -> None:
        self.occupied[row, col] = True
        self.colors[row, col] = int(color or NO_COLOR)

    def clear_cell(self, row: int, col: int) -> None:
        self.occupied[row, col] = False
        self.colors[row, col] = NO_COLOR

    def filled_count(self) -> int:
        return int(np.count_nonzero(self.occupied))

    def filled_positions(self) -> List[Coordinate]:
        rows, cols = np.nonzero(self.occupied)
        return [(int(r), int(c)) for r, c in zip(rows, cols)]

    def color_distribution(self) -> Dict[int, int]:
        """Count occupied cells per color, in row-major first-seen order.

        Colorless occupied cells are counted under ``NO_COLOR``.
        """
        counts: Dict[int, int] = {}
        for row, col in self.filled_positions():
            color = int(self.colors[row, col])
            counts[color] = counts.get(color, 0) + 1
        return counts

    def copy(self) -> "Grid":
        new_grid = Grid(self.size)
        new_grid.occupied = self.occupied.copy()
        new_grid.colors = self.colors.copy()
        return new_grid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self.size == other.size
            and np.array_equal(self.occupied, other.occupied)
            and np.array_equal(self.colors, other.colors)
        )
