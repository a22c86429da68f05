"""Tests for episode rollouts."""

import numpy as np

import gymkit
from rl_common.inference import random_policy, run_episodes, summarize_episodes


def _cartpole():
    return gymkit.make_untyped("CartPole-v1")


class TestRunEpisodes:
    """run_episodes() records and reproducibility."""

    def test_records(self):
        episodes = run_episodes(_cartpole(), n_episodes=3, seed=0)
        assert len(episodes) == 3
        for ep in episodes:
            assert ep["steps"] >= 1
            assert ep["reward"] == float(ep["steps"])
            assert ep["terminated"] or ep["truncated"]
            assert "trajectory" not in ep

    def test_seed_reproduces_run(self):
        env = _cartpole()
        env.action_space.seed(9)
        first = run_episodes(env, 3, seed=123)
        env.action_space.seed(9)
        second = run_episodes(env, 3, seed=123)
        assert [e["steps"] for e in first] == [e["steps"] for e in second]

    def test_custom_policy(self):
        episodes = run_episodes(_cartpole(), 2, policy=lambda obs: 1, seed=1)
        # Always pushing right falls over long before the time limit.
        assert all(ep["terminated"] for ep in episodes)
        assert all(ep["steps"] < 100 for ep in episodes)

    def test_trajectory(self):
        (ep,) = run_episodes(_cartpole(), 1, seed=2, collect_trajectory=True)
        traj = ep["trajectory"]
        assert traj["observations"].shape == (ep["steps"] + 1, 4)
        assert traj["actions"].shape == (ep["steps"],)
        np.testing.assert_array_equal(traj["rewards"], np.ones(ep["steps"]))

    def test_max_steps_cap(self):
        env = gymkit.make_untyped("CartPole-v1")
        (ep,) = run_episodes(env, 1, policy=lambda obs: 0 if obs[2] < 0 else 1, max_steps=5)
        assert ep["steps"] <= 5

    def test_random_policy_samples_action_space(self):
        env = _cartpole()
        policy = random_policy(env)
        assert all(env.action_space.contains(policy(None)) for _ in range(20))


class TestSummarize:
    """Aggregate statistics."""

    def test_summary(self):
        episodes = [
            {"reward": 10.0, "steps": 10},
            {"reward": 20.0, "steps": 20},
        ]
        summary = summarize_episodes(episodes)
        assert summary == {
            "episodes": 2,
            "mean_reward": 15.0,
            "std_reward": 5.0,
            "mean_steps": 15.0,
        }

    def test_empty(self):
        assert summarize_episodes([])["mean_reward"] == 0.0
