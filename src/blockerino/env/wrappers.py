from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

logger = logging.getLogger(__name__)


class FlattenDiscreteActionWrapper(gym.ActionWrapper):
    """Flattens the env's MultiDiscrete (piece, x, y) action into Discrete(N).

    Index order matches a C-order flattening of the env's ``[piece, y, x]``
    action mask, so ``get_action_mask()`` is that mask reshaped to (N,).
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        assert isinstance(env.action_space, spaces.MultiDiscrete)
        k, size_x, size_y = map(int, env.action_space.nvec)
        assert size_x == size_y, "Expected square board"
        self.hand_size = k
        self.size = size_x
        self.n = int(k * self.size * self.size)
        self.action_space = spaces.Discrete(self.n)

    def flatten(self, piece_idx: int, x: int, y: int) -> int:
        return (piece_idx * self.size + y) * self.size + x

    def unflatten(self, idx: int) -> Tuple[int, int, int]:
        """Discrete index -> (piece_idx, x, y)."""
        idx, x = divmod(int(idx), self.size)
        piece_idx, y = divmod(idx, self.size)
        return piece_idx, x, y

    def action(self, action: int):  # type: ignore[override]
        return np.array(self.unflatten(action), dtype=np.int64)

    def get_action_mask(self) -> np.ndarray:
        return self.env.unwrapped.get_action_mask().reshape(-1)


class ResampleInvalidActionWrapper(gym.Wrapper):
    """Replaces an invalid Discrete action with a uniformly chosen valid one.

    Needs a wrapped env exposing ``get_action_mask()`` (e.g. the flatten
    wrapper). With no valid action left the original action passes through.
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        if not isinstance(env.action_space, spaces.Discrete) or not hasattr(env, "get_action_mask"):
            raise TypeError("ResampleInvalidActionWrapper needs a Discrete env with get_action_mask()")
        self.resampled = 0

    def step(self, action):  # type: ignore[override]
        mask = self.get_action_mask()
        if not bool(mask[int(action)]):
            valid_idxs = np.flatnonzero(mask)
            if valid_idxs.size > 0:
                action = int(self.np_random.choice(valid_idxs))
                self.resampled += 1
                logger.debug("Resampled invalid action to %d", action)
        return self.env.step(action)

    def get_action_mask(self) -> np.ndarray:
        return self.env.get_action_mask()
