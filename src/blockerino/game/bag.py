"""Weighted random bag of upcoming piece ids.

Each refill builds a multiset in which every difficulty tier occupies its
target share, then shuffles it. Within a tier, the ``target % len(ids)``
leftover copies rotate across refills so that over time no id is favoured.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import BagStateInconsistent, CorruptedSnapshot
from .pieces import CATALOG, TIERS, Piece, Tier

logger = logging.getLogger(__name__)


Distribution = Dict[Tier, int]

DEFAULT_DISTRIBUTION: Distribution = {Tier.EASY: 50, Tier.MEDIUM: 35, Tier.HARD: 15}

# (minimum density exclusive, distribution); checked top to bottom.
DENSITY_BANDS: Tuple[Tuple[float, Distribution], ...] = (
    (0.75, {Tier.EASY: 70, Tier.MEDIUM: 25, Tier.HARD: 5}),
    (0.60, {Tier.EASY: 60, Tier.MEDIUM: 30, Tier.HARD: 10}),
    (0.40, {Tier.EASY: 50, Tier.MEDIUM: 35, Tier.HARD: 15}),
    (-1.0, {Tier.EASY: 45, Tier.MEDIUM: 35, Tier.HARD: 20}),
)


@dataclass
class BagConfig:
    tiers: Dict[Tier, Tuple[int, ...]] = field(default_factory=lambda: dict(TIERS))
    distribution: Distribution = field(default_factory=lambda: dict(DEFAULT_DISTRIBUTION))
    density_bands: Tuple[Tuple[float, Distribution], ...] = DENSITY_BANDS

    def distribution_for(self, density: Optional[float]) -> Distribution:
        if density is None:
            return self.distribution
        for threshold, distribution in self.density_bands:
            if density > threshold:
                return distribution
        return self.distribution


class PieceBag:
    def __init__(self, config: Optional[BagConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or BagConfig()
        # SystemRandom: concurrent refills must not share a time-derived seed.
        self.rng = rng or random.SystemRandom()
        self.queue: List[int] = []
        self.cursor = 0
        self.refill_count = 0

    def reset(self) -> None:
        self.queue = []
        self.cursor = 0
        self.refill_count = 0

    @property
    def remaining(self) -> int:
        return len(self.queue) - self.cursor

    def _add_tier(self, ids: Tuple[int, ...], target: int) -> None:
        copies, remainder = divmod(target, len(ids))
        for _ in range(copies):
            self.queue.extend(ids)
        if remainder:
            start = (self.refill_count * remainder) % len(ids)
            self.queue.extend(ids[(start + i) % len(ids)] for i in range(remainder))

    def refill(self, density: Optional[float] = None) -> None:
        self.refill_count += 1
        self.queue = []
        distribution = self.config.distribution_for(density)
        for tier, ids in self.config.tiers.items():
            self._add_tier(ids, distribution.get(tier, 0))
        # random.shuffle is Fisher-Yates.
        self.rng.shuffle(self.queue)
        self.cursor = 0
        logger.debug("Bag refill #%d: %d pieces", self.refill_count, len(self.queue))

    def draw(self, density: Optional[float] = None) -> int:
        """Next catalog index; refills first when the queue is exhausted.

        ``density`` selects the distribution only when a refill happens.
        """
        if self.cursor >= len(self.queue):
            self.refill(density)
        piece_id = self.queue[self.cursor]
        self.cursor += 1
        return piece_id

    def draw_hand(self, count: int, density: Optional[float] = None) -> List[Piece]:
        return [Piece.from_catalog(self.draw(density), self.rng) for _ in range(count)]

    # ---------- Persistence ----------
    def state(self) -> Dict[str, Any]:
        return {"queue": list(self.queue), "cursor": self.cursor, "refillCount": self.refill_count}

    def restore(self, state: Dict[str, Any]) -> None:
        try:
            queue = [int(v) for v in state["queue"]]
            cursor = int(state["cursor"])
            refill_count = int(state["refillCount"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptedSnapshot(f"bag state malformed: {exc}") from exc
        if any(not 0 <= v < len(CATALOG) for v in queue):
            raise CorruptedSnapshot("bag queue references unknown pieces")
        if cursor < 0 or refill_count < 0:
            raise CorruptedSnapshot("bag cursor and refill count must be non-negative")

        self.queue = queue
        self.refill_count = refill_count
        if cursor > len(queue):
            error = BagStateInconsistent(f"cursor {cursor} past queue length {len(queue)}")
            logger.warning("%s; forcing refill on next draw", error)
            cursor = len(queue)
        self.cursor = cursor
