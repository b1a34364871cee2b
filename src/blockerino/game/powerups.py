from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .bag import PieceBag
from .board import Board, ClearedCell
from .errors import PowerUpUnavailable
from .pieces import Piece

logger = logging.getLogger(__name__)


class PowerUpType(str, Enum):
    SHUFFLE = "shuffle"
    WILD_PIECE = "wildPiece"
    LINE_CLEAR = "lineClear"
    BOMB = "bomb"
    COLOR_BOMB = "colorBomb"


LINE_CLEAR_POINTS = 10
BOMB_POINTS = 15
COLOR_BOMB_POINTS = 15
BOMB_SPAN = 3


@dataclass(frozen=True)
class PowerUpResult:
    success: bool
    board: Optional[Board] = None
    hand: Optional[Tuple[Piece, ...]] = None
    score_gained: int = 0
    cleared_cells: Tuple[ClearedCell, ...] = ()
    line_count: int = 0
    error: Optional[PowerUpUnavailable] = None

    @classmethod
    def failed(cls, reason: str) -> "PowerUpResult":
        return cls(success=False, error=PowerUpUnavailable(reason))


class PowerUpEngine:
    """Applies power-up effects to copies of the board and hand.

    Board effects clone first and clear through ``Board.clear_cells`` so the
    bitmask is resynchronized before the new board is handed back.
    """

    def __init__(self, bag: PieceBag, rng: Optional[random.Random] = None) -> None:
        self.bag = bag
        self.rng = rng or random.SystemRandom()

    def activate(
        self,
        power_up: PowerUpType,
        board: Board,
        hand: Sequence[Piece],
        hand_size: int,
        density: Optional[float] = None,
    ) -> PowerUpResult:
        power_up = PowerUpType(power_up)
        if power_up is PowerUpType.SHUFFLE:
            return self.shuffle(hand_size, density)
        if power_up is PowerUpType.WILD_PIECE:
            return self.wild_piece(hand)
        if power_up is PowerUpType.LINE_CLEAR:
            return self.line_clear(board)
        if power_up is PowerUpType.BOMB:
            return self.bomb(board)
        return self.color_bomb(board)

    def shuffle(self, hand_size: int, density: Optional[float] = None) -> PowerUpResult:
        return PowerUpResult(success=True, hand=tuple(self.bag.draw_hand(hand_size, density)))

    def wild_piece(self, hand: Sequence[Piece]) -> PowerUpResult:
        return PowerUpResult(success=True, hand=tuple(hand) + (Piece.wild(),))

    def line_clear(self, original: Board) -> PowerUpResult:
        """Empty one random row or column that has at least one block."""
        if original.is_empty():
            return PowerUpResult.failed("board is empty")
        occupied = original.grid.occupied
        lines = [("row", r) for r in range(original.size) if occupied[r, :].any()]
        lines += [("col", c) for c in range(original.size) if occupied[:, c].any()]
        axis, index = self.rng.choice(lines)
        if axis == "row":
            targets = [(index, c) for c in range(original.size)]
        else:
            targets = [(r, index) for r in range(original.size)]

        board = original.clone()
        cleared = board.clear_cells(targets)
        logger.debug("Line clear on %s %d removed %d cells", axis, index, len(cleared))
        return PowerUpResult(
            success=True,
            board=board,
            score_gained=len(cleared) * LINE_CLEAR_POINTS,
            cleared_cells=tuple(cleared),
            line_count=1,
        )

    def bomb(self, original: Board) -> PowerUpResult:
        """Empty the 3x3 window holding the most blocks (first found wins ties)."""
        occupied = original.grid.occupied
        best, best_count = (0, 0), 0
        for row in range(original.size - BOMB_SPAN + 1):
            for col in range(original.size - BOMB_SPAN + 1):
                count = int(occupied[row:row + BOMB_SPAN, col:col + BOMB_SPAN].sum())
                if count > best_count:
                    best, best_count = (row, col), count
        if best_count == 0:
            return PowerUpResult.failed("no blocks to bomb")

        row0, col0 = best
        board = original.clone()
        cleared = board.clear_cells(
            (row0 + dr, col0 + dc) for dr in range(BOMB_SPAN) for dc in range(BOMB_SPAN)
        )
        return PowerUpResult(
            success=True,
            board=board,
            score_gained=len(cleared) * BOMB_POINTS,
            cleared_cells=tuple(cleared),
            line_count=len(cleared) // original.size,
        )

    def color_bomb(self, original: Board) -> PowerUpResult:
        """Empty every block of the board's most common color."""
        color = original.most_common_color()
        if color is None:
            return PowerUpResult.failed("board is empty")
        colors = original.grid.colors
        targets = [(r, c) for r, c in original.grid.filled_positions() if int(colors[r, c]) == color]

        board = original.clone()
        cleared = board.clear_cells(targets)
        logger.debug("Color bomb %#x removed %d cells", color, len(cleared))
        return PowerUpResult(
            success=True,
            board=board,
            score_gained=len(cleared) * COLOR_BOMB_POINTS,
            cleared_cells=tuple(cleared),
            line_count=len(cleared) // original.size,
        )
