from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from .board import Board, LinePreview
from .modes import GameMode, StoryLevel
from .pieces import Piece


@dataclass(frozen=True)
class Initial:
    """No game has been started yet."""


@dataclass(frozen=True)
class InProgress:
    board: Board
    hand: Tuple[Piece, ...]
    score: int
    combo: int
    moves_since_last_clear: int
    mode: GameMode
    story_level: Optional[StoryLevel] = None
    lines_cleared: int = 0
    # Absolute wall-clock deadline and the last computed remaining time.
    deadline: Optional[float] = None
    time_remaining: Optional[float] = None
    power_ups_disabled: bool = False
    preview: Optional[LinePreview] = None

    @property
    def is_story(self) -> bool:
        return self.story_level is not None

    def evolve(self, **changes) -> "InProgress":
        return replace(self, **changes)


@dataclass(frozen=True)
class StoryResult:
    stars_earned: int
    objectives_met: bool


@dataclass(frozen=True)
class GameOver:
    board: Board
    final_score: int
    mode: GameMode
    story_level: Optional[StoryLevel] = None
    story_result: Optional[StoryResult] = None


SessionState = Union[Initial, InProgress, GameOver]
