import numpy as np
import gymnasium as gym

import blockerino.env  # noqa: F401
from blockerino.env.blockerino_env import BlockerinoEnv
from blockerino.env.wrappers import FlattenDiscreteActionWrapper, ResampleInvalidActionWrapper
from blockerino.rl.random_agent import run_random
from tests.helpers import make_piece


def test_env_reset_observation_and_mask():
    env = BlockerinoEnv(mode="classic")
    obs, info = env.reset(seed=3)
    assert obs["grid"].shape == (8, 8)
    assert obs["grid"].sum() == 0
    assert obs["pieces"].shape == (3,)
    assert obs["pieces_remaining"] == 3
    assert info["action_mask"].shape == (3, 8, 8)
    assert info["action_mask"].any()
    assert env.observation_space.contains(obs)
    env.close()


def test_env_valid_step_places_piece():
    env = BlockerinoEnv(mode="classic")
    obs, info = env.reset(seed=5)
    piece_idx, x, y = info["valid_actions"][0]
    obs, reward, terminated, truncated, info = env.step((piece_idx, x, y))
    assert reward > 0
    assert obs["grid"].sum() > 0
    assert info["score"] > 0
    assert not truncated
    env.close()


def _rig_hand(env):
    session = env.unwrapped.session
    hand = (make_piece("####"), make_piece("##"), make_piece("#", "#"))
    session._state = session.state.evolve(hand=hand)


def test_env_invalid_step_is_penalized():
    env = BlockerinoEnv(mode="classic", invalid_action_penalty=-1.0)
    env.reset(seed=1)
    _rig_hand(env)
    _, reward, terminated, _, info = env.step((0, 7, 7))
    assert reward == -1.0
    assert "invalid" in info["reward_components"]
    assert not terminated
    env.close()


def test_env_reset_is_seeded():
    a, b = BlockerinoEnv(mode="chaos"), BlockerinoEnv(mode="chaos")
    obs_a, _ = a.reset(seed=9)
    obs_b, _ = b.reset(seed=9)
    assert np.array_equal(obs_a["pieces"], obs_b["pieces"])
    a.close()
    b.close()


def test_gym_make_registered_ids():
    env = gym.make("Blockerino-Chaos-v0")
    obs, _ = env.reset(seed=0)
    assert obs["grid"].shape == (10, 10)
    env.close()


def test_flatten_wrapper_maps_mask_and_actions():
    env = FlattenDiscreteActionWrapper(BlockerinoEnv(mode="classic"))
    _, info = env.reset(seed=2)
    mask = env.get_action_mask()
    assert mask.shape == (3 * 8 * 8,)
    idx = int(np.flatnonzero(mask)[0])
    piece_idx, x, y = env.unflatten(idx)
    assert env.flatten(piece_idx, x, y) == idx
    assert info["action_mask"][piece_idx, y, x]
    _, reward, _, _, _ = env.step(idx)
    assert reward > 0
    env.close()


def test_resample_wrapper_replaces_invalid_action():
    env = ResampleInvalidActionWrapper(FlattenDiscreteActionWrapper(BlockerinoEnv(mode="classic")))
    env.reset(seed=4)
    _rig_hand(env)
    invalid = env.env.flatten(0, 7, 0)
    assert not env.get_action_mask()[invalid]
    _, _, _, _, info = env.step(invalid)
    assert "invalid" not in info["reward_components"]
    assert env.resampled == 1
    env.close()


def test_random_agent_runs():
    total_reward, scores = run_random(steps=50, mode="classic", seed=0)
    assert isinstance(total_reward, float)
    assert all(score >= 0 for score in scores)
