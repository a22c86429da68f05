"""Episode rollouts for gymkit environments.

Provides `run_episodes()` for driving an env under a policy and collecting
episode-level records. Used for:
  - Smoke-testing newly registered environments with a random policy
  - Evaluation (mean return, episode length)
  - Collecting trajectories for offline analysis

This module is environment-agnostic. Environment-specific metrics come
from the env's info dict.
"""

from typing import Any, Callable, Optional

import numpy as np

from gymkit.src.core import Env

# Maps an observation to an action.
Policy = Callable[[Any], Any]


def random_policy(env: Env) -> Policy:
    """Policy that samples uniformly from the env's action space."""
    return lambda obs: env.action_space.sample()


def run_episodes(
    env: Env,
    n_episodes: int,
    policy: Optional[Policy] = None,
    seed: Optional[int] = None,
    max_steps: Optional[int] = None,
    collect_trajectory: bool = False,
) -> list[dict]:
    """Run a policy for N episodes and collect results.

    Each episode produces a record dict containing:
      - 'reward': total episode reward
      - 'steps': number of steps in the episode
      - 'terminated' / 'truncated': how the episode ended
      - 'info': the info dict from the final step
      - 'trajectory' (if collect_trajectory=True): dict with keys
        'observations', 'actions', 'rewards' as numpy arrays

    Only the first reset() is seeded; later episodes continue the env's RNG
    stream, so a fixed seed reproduces the whole run.

    Args:
        env: A gymkit env, wrapped or not.
        n_episodes: Number of episodes to run.
        policy: Maps observation -> action. Defaults to random_policy(env).
        seed: Seed for the first reset. None keeps the env's current RNG.
        max_steps: Optional cap on steps per episode, for envs without a
            TimeLimit. Capped episodes are recorded as truncated.
        collect_trajectory: If True, record full obs/action/reward sequences.

    Returns:
        List of episode record dicts.
    """
    if policy is None:
        policy = random_policy(env)

    episodes = []
    for episode in range(n_episodes):
        obs, info = env.reset(seed=seed if episode == 0 else None)

        episode_reward = 0.0
        episode_steps = 0
        terminated = truncated = False
        traj_obs, traj_actions, traj_rewards = [obs], [], []

        while not (terminated or truncated):
            action = policy(obs)
            obs, reward, terminated, truncated, info = env.step(action)

            episode_reward += float(reward)
            episode_steps += 1

            if collect_trajectory:
                traj_obs.append(obs)
                traj_actions.append(action)
                traj_rewards.append(float(reward))

            if max_steps is not None and episode_steps >= max_steps:
                truncated = True

        record = {
            "reward": episode_reward,
            "steps": episode_steps,
            "terminated": bool(terminated),
            "truncated": bool(truncated),
            "info": info,
        }
        if collect_trajectory:
            record["trajectory"] = {
                "observations": np.array(traj_obs),
                "actions": np.array(traj_actions),
                "rewards": np.array(traj_rewards),
            }
        episodes.append(record)

    return episodes


def summarize_episodes(episodes: list[dict]) -> dict:
    """Mean/std of return and length across episode records."""
    rewards = np.array([e["reward"] for e in episodes], dtype=np.float64)
    steps = np.array([e["steps"] for e in episodes], dtype=np.float64)
    return {
        "episodes": len(episodes),
        "mean_reward": float(rewards.mean()) if len(rewards) else 0.0,
        "std_reward": float(rewards.std()) if len(rewards) else 0.0,
        "mean_steps": float(steps.mean()) if len(steps) else 0.0,
    }
