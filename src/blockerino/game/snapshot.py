"""JSON snapshot of an in-progress session, one per game mode.

Schema::

    {
      "board": {"size": int, "cells": [{"row", "col", "occupied", "color"?}]},
      "hand": [{"id": str, "shape": bool[][], "color": int, "kind"?: int}],
      "score": int, "combo": int, "movesSinceLastClear": int,
      "pieceBag": {"queue": int[], "cursor": int, "refillCount": int}
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .board import Board
from .errors import CorruptedSnapshot
from .modes import GameMode
from .pieces import Piece


def snapshot_key(mode: GameMode) -> str:
    return f"savedGame:{GameMode(mode).value}"


@dataclass(frozen=True)
class SessionSnapshot:
    board: Board
    hand: Tuple[Piece, ...]
    score: int
    combo: int
    moves_since_last_clear: int
    bag_state: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "board": self.board.to_dict(),
            "hand": [piece.to_dict() for piece in self.hand],
            "score": self.score,
            "combo": self.combo,
            "movesSinceLastClear": self.moves_since_last_clear,
            "pieceBag": dict(self.bag_state),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], expected_size: Optional[int] = None) -> "SessionSnapshot":
        if not isinstance(data, dict):
            raise CorruptedSnapshot("snapshot is not an object")
        board = Board.from_dict(data.get("board"), expected_size=expected_size)
        try:
            hand = tuple(Piece.from_dict(p) for p in data["hand"])
            score = int(data["score"])
            combo = int(data["combo"])
            moves = int(data["movesSinceLastClear"])
            bag_state = dict(data["pieceBag"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptedSnapshot(f"snapshot field malformed: {exc}") from exc
        if score < 0 or combo < 0 or moves < 0:
            raise CorruptedSnapshot("score, combo and move counters must be non-negative")
        return cls(board, hand, score, combo, moves, bag_state)

    def encode(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def decode(cls, raw: bytes, expected_size: Optional[int] = None) -> "SessionSnapshot":
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CorruptedSnapshot(f"snapshot is not valid JSON: {exc}") from exc
        return cls.from_dict(data, expected_size=expected_size)
