from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

from .modes import GameMode
from .powerups import PowerUpType

logger = logging.getLogger(__name__)


class Inventory(Protocol):
    """Settings-store view the session needs for power-ups and rewards."""

    def get_power_up_count(self, power_up: PowerUpType) -> int: ...

    def decrement_power_up(self, power_up: PowerUpType) -> bool: ...

    def add_coins(self, amount: int) -> None: ...

    def record_high_score(self, mode: GameMode, score: int) -> None: ...


class InMemoryInventory:
    def __init__(self, power_ups: Optional[Dict[PowerUpType, int]] = None, coins: int = 0) -> None:
        self.power_ups: Dict[PowerUpType, int] = dict(power_ups or {})
        self.coins = coins
        self.high_scores: Dict[GameMode, int] = {}

    def get_power_up_count(self, power_up: PowerUpType) -> int:
        return self.power_ups.get(power_up, 0)

    def decrement_power_up(self, power_up: PowerUpType) -> bool:
        count = self.power_ups.get(power_up, 0)
        if count <= 0:
            return False
        self.power_ups[power_up] = count - 1
        return True

    def add_power_up(self, power_up: PowerUpType, count: int = 1) -> None:
        self.power_ups[power_up] = self.power_ups.get(power_up, 0) + count

    def add_coins(self, amount: int) -> None:
        self.coins += amount

    def record_high_score(self, mode: GameMode, score: int) -> None:
        if score > self.high_scores.get(mode, 0):
            logger.info("New %s high score: %d", mode.value, score)
            self.high_scores[mode] = score
