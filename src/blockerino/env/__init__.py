"""Gymnasium environments for Blockerino."""

from __future__ import annotations

from gymnasium.envs.registration import register

register(
    id="Blockerino-Classic-v0",
    entry_point="blockerino.env.blockerino_env:BlockerinoEnv",
    kwargs={"mode": "classic"},
)

register(
    id="Blockerino-Chaos-v0",
    entry_point="blockerino.env.blockerino_env:BlockerinoEnv",
    kwargs={"mode": "chaos"},
)

__all__ = ["Blockerino-Classic-v0", "Blockerino-Chaos-v0"]
