from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .bitmask import BitMask, col_masks, row_masks, shape_mask
from .errors import CorruptedSnapshot
from .grid import NO_COLOR, Coordinate, Grid
from .pieces import PALETTE, WILD_COLOR, Piece, check_color


@dataclass(frozen=True)
class ClearedCell:
    row: int
    col: int
    color: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row, "col": self.col, "color": self.color}


@dataclass(frozen=True)
class LineClearResult:
    rows: FrozenSet[int] = frozenset()
    cols: FrozenSet[int] = frozenset()
    cleared_cells: Tuple[ClearedCell, ...] = ()

    @property
    def line_count(self) -> int:
        return len(self.rows) + len(self.cols)


@dataclass(frozen=True)
class LinePreview:
    """Rows and columns a placement would complete."""

    rows: FrozenSet[int] = field(default_factory=frozenset)
    cols: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def line_count(self) -> int:
        return len(self.rows) + len(self.cols)


class Board:
    """Square board backed by a cell grid and an occupancy bitmask.

    The grid is the source of truth for rendering and serialization; the
    bitmask is kept in sync after every mutating method so collision and
    full-line checks are integer operations.
    """

    def __init__(self, size: int) -> None:
        self.size = int(size)
        self.grid = Grid(self.size)
        self.mask = BitMask(self.size)

    @classmethod
    def from_grid(cls, grid: Grid) -> "Board":
        board = cls(grid.size)
        board.grid = grid
        board.resync()
        return board

    def resync(self) -> None:
        """Rebuild the bitmask from the grid."""
        self.mask = BitMask.from_occupancy(self.grid.occupied)

    # ---------- Placement ----------
    def fits_bounds(self, piece: Piece, x: int, y: int) -> bool:
        return x >= 0 and y >= 0 and x + piece.width <= self.size and y + piece.height <= self.size

    def can_place(self, piece: Piece, x: int, y: int) -> bool:
        """Check if ``piece`` fits with its top-left corner at column x, row y."""
        if not self.fits_bounds(piece, x, y):
            return False
        return not self.mask.intersects(shape_mask(piece.shape, x, y, self.size))

    def place(self, piece: Piece, x: int, y: int) -> int:
        """Write ``piece`` onto the board and return the number of cells placed.

        Assumes ``can_place`` was true for this exact board state.
        """
        for dy, dx in piece.cells():
            self.grid.set_cell(y + dy, x + dx, piece.color)
        self.mask.add(shape_mask(piece.shape, x, y, self.size))
        return piece.cell_count

    def preview_breaks(self, piece: Piece, x: int, y: int) -> LinePreview:
        if not self.can_place(piece, x, y):
            return LinePreview()
        combined = self.mask | shape_mask(piece.shape, x, y, self.size)
        rows = frozenset(i for i, m in enumerate(row_masks(self.size)) if (combined & m) == m)
        cols = frozenset(i for i, m in enumerate(col_masks(self.size)) if (combined & m) == m)
        return LinePreview(rows=rows, cols=cols)

    # ---------- Line clearing ----------
    def break_lines(self) -> LineClearResult:
        """Clear every full row and column.

        A cell lying in both a full row and a full column is reported once.
        """
        rows = self.mask.full_rows()
        cols = self.mask.full_cols()
        if not rows and not cols:
            return LineClearResult()

        seen = set()
        cleared: List[ClearedCell] = []
        targets = [(r, c) for r in rows for c in range(self.size)]
        targets += [(r, c) for c in cols for r in range(self.size)]
        for row, col in targets:
            if (row, col) in seen:
                continue
            seen.add((row, col))
            cleared.append(ClearedCell(row, col, self.grid.cell(row, col).color))
        for row, col in seen:
            self.grid.clear_cell(row, col)
        self.resync()
        return LineClearResult(rows=frozenset(rows), cols=frozenset(cols), cleared_cells=tuple(cleared))

    def clear_cells(self, cells: Iterable[Coordinate]) -> List[ClearedCell]:
        """Empty the given occupied cells and resync the mask.

        Empty cells in ``cells`` are skipped and not reported.
        """
        cleared: List[ClearedCell] = []
        for row, col in cells:
            cell = self.grid.cell(row, col)
            if not cell.occupied:
                continue
            cleared.append(ClearedCell(row, col, cell.color))
            self.grid.clear_cell(row, col)
        self.resync()
        return cleared

    # ---------- Reachability ----------
    def largest_empty_region(self) -> int:
        """Size of the largest 4-connected group of empty cells."""
        visited = np.zeros((self.size, self.size), dtype=np.bool_)
        occupied = self.grid.occupied
        best = 0
        for row in range(self.size):
            for col in range(self.size):
                if occupied[row, col] or visited[row, col]:
                    continue
                visited[row, col] = True
                queue = deque([(row, col)])
                count = 0
                while queue:
                    r, c = queue.popleft()
                    count += 1
                    for nr, nc in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
                        if 0 <= nr < self.size and 0 <= nc < self.size \
                                and not visited[nr, nc] and not occupied[nr, nc]:
                            visited[nr, nc] = True
                            queue.append((nr, nc))
                best = max(best, count)
        return best

    def has_any_valid_move(self, hand: Sequence[Piece]) -> bool:
        if not hand:
            return False
        # A region smaller than the smallest piece can never take a placement.
        min_piece = min(piece.cell_count for piece in hand)
        if self.largest_empty_region() < min_piece:
            return False
        for piece in hand:
            for y in range(self.size - piece.height + 1):
                for x in range(self.size - piece.width + 1):
                    if self.can_place(piece, x, y):
                        return True
        return False

    def valid_placements(self, piece: Piece) -> List[Tuple[int, int]]:
        """All (x, y) positions where ``piece`` can be placed."""
        return [
            (x, y)
            for y in range(self.size - piece.height + 1)
            for x in range(self.size - piece.width + 1)
            if self.can_place(piece, x, y)
        ]

    # ---------- Queries ----------
    def density(self) -> float:
        return self.grid.filled_count() / float(self.size * self.size)

    def is_empty(self) -> bool:
        return self.mask.value == 0

    def most_common_color(self) -> Optional[int]:
        """Most frequent color, or ``None`` on an empty board.

        Ties go to palette order, then the wild color, then other colors in
        first-seen order, then ``NO_COLOR`` for colorless blocks.
        """
        distribution = self.grid.color_distribution()
        if not distribution:
            return None
        order = list(PALETTE) + [WILD_COLOR]
        order += [color for color in distribution if color not in order and color != NO_COLOR]
        order.append(NO_COLOR)
        best_color, best_count = None, 0
        for color in order:
            count = distribution.get(color, 0)
            if count > best_count:
                best_color, best_count = color, count
        return best_color

    def is_in_sync(self) -> bool:
        return self.mask == BitMask.from_occupancy(self.grid.occupied)

    def clone(self) -> "Board":
        board = Board(self.size)
        board.grid = self.grid.copy()
        board.mask = self.mask.copy()
        return board

    # ---------- Serialization ----------
    def to_dict(self) -> Dict[str, Any]:
        cells = []
        for row in range(self.size):
            for col in range(self.size):
                cell = self.grid.cell(row, col)
                entry: Dict[str, Any] = {"row": row, "col": col, "occupied": cell.occupied}
                if cell.color is not None:
                    entry["color"] = cell.color
                cells.append(entry)
        return {"size": self.size, "cells": cells}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], expected_size: Optional[int] = None) -> "Board":
        """Rebuild a board; the bitmask is always recomputed from the cells."""
        try:
            size = int(data["size"])
            cells = data["cells"]
            cell_count = len(cells)
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptedSnapshot(f"board data malformed: {exc}") from exc
        if expected_size is not None and size != expected_size:
            raise CorruptedSnapshot(f"board size {size} does not match expected {expected_size}")
        if size <= 0 or cell_count != size * size:
            raise CorruptedSnapshot(f"board of size {size} has {cell_count} cells")

        grid = Grid(size)
        try:
            for entry in cells:
                row, col = int(entry["row"]), int(entry["col"])
                if not grid.is_inside(row, col):
                    raise CorruptedSnapshot(f"cell ({row}, {col}) outside {size}x{size} board")
                if entry.get("occupied"):
                    color = entry.get("color")
                    grid.set_cell(row, col, None if color is None else check_color(color))
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptedSnapshot(f"board cell malformed: {exc}") from exc
        return cls.from_grid(grid)

    def render(self) -> str:
        return "\n".join(
            "".join("█" if filled else "·" for filled in row) for row in self.grid.occupied
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.grid == other.grid and self.mask == other.mask
