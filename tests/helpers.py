from __future__ import annotations

from typing import Iterable, Optional, Tuple

from blockerino.game.board import Board
from blockerino.game.pieces import PALETTE, Piece, new_instance_id


def make_piece(*rows: str, color: int = PALETTE[0], kind: int = 24) -> Piece:
    """Build a piece from ``#``/``.`` rows, e.g. ``make_piece("##", "#.")``."""
    shape = tuple(tuple(ch == "#" for ch in row) for row in rows)
    return Piece(id=new_instance_id(), shape=shape, color=color, kind=kind)


def fill(board: Board, cells: Iterable[Tuple[int, int]], color: Optional[int] = PALETTE[0]) -> Board:
    """Occupy (row, col) cells directly and resync the bitmask."""
    for row, col in cells:
        board.grid.set_cell(row, col, color)
    board.resync()
    return board


class FakeClock:
    def __init__(self, value: float = 1000.0) -> None:
        self.value = value

    def advance(self, amount: float) -> None:
        self.value += amount

    def __call__(self) -> float:
        return self.value
