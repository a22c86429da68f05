"""Bridge between gymkit and Gymnasium.

Lets gymkit environments plug into tooling that expects the Gymnasium API
(Stable-Baselines3, Gymnasium wrappers, vector envs):

  - to_gymnasium_space(): gymkit Discrete/Box -> gymnasium.spaces equivalent
  - from_gymnasium_space(): the reverse, for porting Gymnasium envs
  - GymnasiumEnv: a gymnasium.Env that drives a gymkit env

Only Discrete and Box are supported in either direction.
"""

from typing import Any

import gymnasium
import numpy as np
from gymnasium import spaces

from gymkit.src.core import Env
from gymkit.src.seeding import RNG
from gymkit.src.spaces import Box, Discrete, Space


def to_gymnasium_space(space: Space) -> spaces.Space:
    """Convert a gymkit space to the matching gymnasium space."""
    if isinstance(space, Discrete):
        return spaces.Discrete(space.n, start=space.start)
    if isinstance(space, Box):
        return spaces.Box(
            low=space.low, high=space.high, shape=space.shape, dtype=np.float64
        )
    raise TypeError(f"No gymnasium equivalent for {type(space).__name__}")


def from_gymnasium_space(space: spaces.Space, rng: RNG | None = None) -> Space:
    """Convert a gymnasium Discrete or Box to a gymkit space."""
    if isinstance(space, spaces.Discrete):
        return Discrete(int(space.n), start=int(space.start), rng=rng)
    if isinstance(space, spaces.Box):
        return Box(
            space.low.astype(np.float64),
            space.high.astype(np.float64),
            shape=space.shape,
            rng=rng,
        )
    raise TypeError(f"No gymkit equivalent for {type(space).__name__}")


class GymnasiumEnv(gymnasium.Env):
    """Expose a gymkit env through the gymnasium.Env interface.

    Seeds passed to reset() reach the gymkit env's RNG, so seeded resets
    reproduce exactly as they would through gymkit directly.

    Args:
        env: A gymkit env (typically from gymkit.make / make_untyped).
    """

    def __init__(self, env: Env):
        self.env = env
        self.metadata = env.metadata
        self.render_mode = env.render_mode
        self.observation_space = to_gymnasium_space(env.observation_space)
        self.action_space = to_gymnasium_space(env.action_space)

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ):
        super().reset(seed=seed)
        return self.env.reset(seed=seed, options=options)

    def step(self, action):
        # Gymnasium Discrete samples are numpy ints; gymkit accepts those.
        return self.env.step(action)

    def render(self):
        return self.env.render()

    def close(self):
        self.env.close()
