from __future__ import annotations

import argparse
import logging
import random
from typing import List, Optional, Tuple

import gymnasium as gym

import blockerino.env  # noqa: F401  (registers environments)

logger = logging.getLogger(__name__)

ENV_IDS = {
    "classic": "Blockerino-Classic-v0",
    "chaos": "Blockerino-Chaos-v0",
}


def run_random(steps: int = 200, mode: str = "classic", seed: Optional[int] = None) -> Tuple[float, List[int]]:
    """Play uniformly random valid moves; returns total reward and final scores per episode."""
    rng = random.Random(seed)
    env = gym.make(ENV_IDS[mode])
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    scores: List[int] = []
    for _ in range(steps):
        # Prefer valid actions if available
        valid = info.get("valid_actions", [])
        if valid:
            action = rng.choice(valid)
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if terminated or truncated:
            scores.append(int(info["score"]))
            logger.info("Episode finished with score %d", info["score"])
            obs, info = env.reset(seed=rng.randrange(2**31))
    env.close()
    return total_reward, scores


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a random Blockerino agent")
    parser.add_argument("--mode", choices=sorted(ENV_IDS), default="classic")
    parser.add_argument("--steps", type=int, default=200)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    total_reward, scores = run_random(args.steps, args.mode, args.seed)
    print(f"Random agent total reward: {total_reward:.2f}")
    if scores:
        print(f"Episodes: {len(scores)}  best score: {max(scores)}  mean score: {sum(scores) / len(scores):.1f}")


if __name__ == "__main__":  # pragma: no cover
    main()
