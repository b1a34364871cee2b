from __future__ import annotations

import random
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from blockerino.game import CATALOG, GameMode, GameOver, GameSession, InProgress, MemoryStore, mode_config

EMPTY_SLOT = -1
WILD_SLOT = len(CATALOG)


def _compute_action_mask(session: GameSession) -> np.ndarray:
    """Boolean mask of shape (hand_size, size, size) indexed [piece, y, x]."""
    state = session.state
    config = mode_config(state.mode)
    size, k = config.board_size, config.hand_size
    mask = np.zeros((k, size, size), dtype=np.bool_)
    if not isinstance(state, InProgress):
        return mask
    for piece_idx, piece in enumerate(state.hand[:k]):
        for x, y in state.board.valid_placements(piece):
            mask[piece_idx, y, x] = True
    return mask


def _valid_actions(session: GameSession) -> List[Tuple[int, int, int]]:
    """List of (piece_idx, x, y) valid actions."""
    mask = _compute_action_mask(session)
    return [(int(p), int(x), int(y)) for p, y, x in zip(*np.nonzero(mask))]


def _argb_to_rgb(color: int) -> Tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


class BlockerinoEnv(gym.Env):
    """Single-player placement environment over a :class:`GameSession`.

    Action ``(piece_idx, x, y)`` places the hand piece at column x, row y.
    """

    metadata = {"render_modes": ["ansi", "rgb_array"], "render_fps": 30}

    def __init__(self, mode: GameMode | str = GameMode.CLASSIC, render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 invalid_action_penalty: float = -0.1,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = 0.0,
                 max_episode_steps: int = 10000) -> None:
        super().__init__()
        self.mode = GameMode(mode)
        if self.mode is GameMode.STORY:
            raise ValueError("story levels are not exposed as an environment")
        self.config = mode_config(self.mode)
        self.render_mode = render_mode
        self.max_episode_steps = int(max_episode_steps)

        # Reward shaping parameters
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.reward_weights: Dict[str, float] = {
            "cells": 0.05,     # reward per cell placed
            "lines": 10.0,     # reward per line cleared
            "lines_sq": 5.0,   # extra for multiple lines (quadratic)
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        size = self.config.board_size
        k = self.config.hand_size

        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=1, shape=(size, size), dtype=np.int8),
                "pieces": spaces.Box(low=EMPTY_SLOT, high=WILD_SLOT, shape=(k,), dtype=np.int8),
                "pieces_remaining": spaces.Discrete(k + 1),
            }
        )
        self.action_space = spaces.MultiDiscrete((k, size, size))

        self.session = self._new_session(None)
        self._steps = 0

    def _new_session(self, seed: Optional[int]) -> GameSession:
        session = GameSession(store=MemoryStore(), rng=random.Random(seed))
        session.start_game(self.mode)
        return session

    def _get_obs(self) -> Dict[str, Any]:
        k = self.config.hand_size
        state = self.session.state
        grid = state.board.grid.occupied.astype(np.int8)
        pieces = np.full((k,), EMPTY_SLOT, dtype=np.int8)
        hand = state.hand if isinstance(state, InProgress) else ()
        for i, piece in enumerate(hand[:k]):
            pieces[i] = WILD_SLOT if piece.is_wild else piece.kind
        return {
            "grid": grid,
            "pieces": pieces,
            "pieces_remaining": min(len(hand), k),
        }

    def _get_info(self) -> Dict[str, Any]:
        state = self.session.state
        score = state.score if isinstance(state, InProgress) else state.final_score
        return {
            "action_mask": _compute_action_mask(self.session),
            "valid_actions": _valid_actions(self.session),
            "score": score,
            "steps": self._steps,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.session)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.session.close()
        self.session = self._new_session(seed)
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action: np.ndarray | Tuple[int, int, int]):
        piece_idx, x, y = map(int, action)
        state = self.session.state

        reward_components: Dict[str, float] = {}
        lines = 0
        success = False
        if isinstance(state, InProgress) and 0 <= piece_idx < len(state.hand):
            piece = state.hand[piece_idx]
            outcome = self.session.place_piece(piece, x, y)
            success = outcome.success
            lines = outcome.lines_cleared
            if success:
                reward_components["cells"] = self.reward_weights["cells"] * float(piece.cell_count)
                reward_components["lines"] = self.reward_weights["lines"] * float(lines)
                reward_components["lines_sq"] = self.reward_weights["lines_sq"] * float(lines * lines)
        if not success:
            reward_components["invalid"] = self.invalid_action_penalty

        reward_components["step"] = self.step_penalty
        terminated = isinstance(self.session.state, GameOver)
        self._steps += 1
        truncated = self._steps >= self.max_episode_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))
        info = self._get_info()
        info["reward_components"] = reward_components
        info["lines_cleared"] = lines
        return self._get_obs(), reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray | str]:
        board = self.session.state.board
        if self.render_mode == "ansi":
            return board.render()
        if self.render_mode == "rgb_array":
            cell = 12
            size = board.size
            img = np.full((size * cell, size * cell, 3), 30, dtype=np.uint8)
            for row, col in board.grid.filled_positions():
                color = int(board.grid.colors[row, col])
                rgb = _argb_to_rgb(color) if color else (70, 200, 120)
                img[row * cell:(row + 1) * cell, col * cell:(col + 1) * cell, :] = rgb
            return img
        return None

    def close(self) -> None:
        self.session.close()
