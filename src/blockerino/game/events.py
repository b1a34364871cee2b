from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from blinker import Signal

from .board import ClearedCell


class EventBus:
    """Engine -> renderer/audio notifications, one blinker Signal per name."""

    def __init__(self) -> None:
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn) -> None:
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False so lambdas and bound methods of short-lived listeners stay connected.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload: Any) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


@dataclass(frozen=True)
class LineClearEvent:
    cleared_cells: Tuple[ClearedCell, ...]
    line_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clearedCells": [cell.to_dict() for cell in self.cleared_cells],
            "lineCount": self.line_count,
        }


EVENT_LINES_CLEARED = "lines_cleared"      # payload: event=LineClearEvent
EVENT_INVALID_MOVE = "invalid_move"        # payload: piece=Piece, x=int, y=int
EVENT_PIECE_PLACED = "piece_placed"        # payload: piece=Piece, x=int, y=int, points=int
EVENT_HAND_REFILLED = "hand_refilled"      # payload: hand=tuple[Piece, ...]
EVENT_COMBO = "combo"                      # payload: combo=int, multiplier=int
EVENT_POWER_UP_USED = "power_up_used"      # payload: power_up=PowerUpType, score_gained=int
EVENT_TIMER_TICK = "timer_tick"            # payload: time_remaining=float
EVENT_GAME_OVER = "game_over"              # payload: state=GameOver
