from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class GameMode(str, Enum):
    CLASSIC = "classic"
    CHAOS = "chaos"
    STORY = "story"


@dataclass(frozen=True)
class ModeConfig:
    board_size: int
    hand_size: int
    name: str
    # Bias bag refills toward small pieces as the board fills up.
    adaptive_pieces: bool = False


MODE_CONFIGS: Dict[GameMode, ModeConfig] = {
    GameMode.CLASSIC: ModeConfig(board_size=8, hand_size=3, name="Classic"),
    GameMode.CHAOS: ModeConfig(board_size=10, hand_size=5, name="Chaos", adaptive_pieces=True),
    GameMode.STORY: ModeConfig(board_size=8, hand_size=3, name="Story"),
}


def mode_config(mode: GameMode) -> ModeConfig:
    return MODE_CONFIGS[GameMode(mode)]


@dataclass(frozen=True)
class StoryLevel:
    """A story-mode level layered on a base mode's board and hand size."""

    level_number: int
    title: str
    target_score: int
    star_thresholds: Tuple[int, int, int]
    coin_reward: int
    base_mode: GameMode = GameMode.STORY
    target_lines: Optional[int] = None
    time_limit: Optional[int] = None
    power_ups_disabled: bool = False

    @property
    def config(self) -> ModeConfig:
        return mode_config(self.base_mode)

    def objectives_met(self, score: int, lines_cleared: int) -> bool:
        if score < self.target_score:
            return False
        return self.target_lines is None or lines_cleared >= self.target_lines

    def stars_for(self, score: int) -> int:
        return sum(1 for threshold in self.star_thresholds if score >= threshold)


STORY_LEVELS: Tuple[StoryLevel, ...] = (
    StoryLevel(1, "First Steps", 300, (300, 500, 700), 50),
    StoryLevel(2, "Line Breaker", 600, (600, 1000, 1400), 75),
    StoryLevel(3, "Combo Master", 1200, (1200, 1800, 2500), 100),
    StoryLevel(4, "Embrace Chaos", 1500, (1500, 2200, 3000), 150, base_mode=GameMode.CHAOS),
    StoryLevel(5, "Speed Run", 2000, (2000, 2800, 3500), 200, time_limit=180),
    StoryLevel(6, "Purist Challenge", 3000, (3000, 4200, 6000), 300, power_ups_disabled=True),
    StoryLevel(7, "Marathon", 5000, (5000, 7000, 10000), 500, base_mode=GameMode.CHAOS),
    StoryLevel(8, "Master's Trial", 8000, (8000, 12000, 18000), 1000, base_mode=GameMode.CHAOS, time_limit=300),
)


def story_level(level_number: int) -> StoryLevel:
    for level in STORY_LEVELS:
        if level.level_number == level_number:
            return level
    raise KeyError(f"no story level {level_number}")
