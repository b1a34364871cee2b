from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoreUpdate:
    points: int
    combo: int
    moves_since_last_clear: int
    multiplier: int = 1


@dataclass
class ScoringRules:
    points_per_cell: int = 1
    line_points: int = 10
    combo_step: int = 10
    max_multiplier: int = 10
    # Non-clearing placements tolerated before the combo resets; fixed,
    # independent of hand size.
    combo_reset_buffer: int = 3

    def combo_multiplier(self, combo: int) -> int:
        return max(1, min(combo // self.combo_step + 1, self.max_multiplier))

    def apply(self, cells_placed: int, lines_broken: int, combo: int, moves_since_last_clear: int) -> ScoreUpdate:
        """Score a single placement and advance the combo counters."""
        points = cells_placed * self.points_per_cell
        if lines_broken > 0:
            multiplier = self.combo_multiplier(combo)
            points += lines_broken * self.line_points * multiplier
            return ScoreUpdate(points, combo + lines_broken, 0, multiplier)

        moves = moves_since_last_clear + 1
        if moves > self.combo_reset_buffer:
            combo = 0
        return ScoreUpdate(points, combo, moves)
