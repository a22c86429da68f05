"""gymkit: typed spaces, environments and an environment registry.

Importing the package registers the builtin environments, making them
available via:
    gymkit.make("CartPole-v1", obs_type=np.ndarray, act_type=int)
    gymkit.make_untyped("CartPole-v1", render_mode="ansi")
"""

import numpy as np

from gymkit.src.core import Env, EnvStatus, Wrapper
from gymkit.src.registration import (
    EnvSpec,
    Registry,
    get_env_id,
    list_registered,
    make,
    make_untyped,
    parse_env_id,
    pprint_registry,
    register,
    spec,
    with_kwargs,
    with_max_episode_steps,
    with_nondeterministic,
    with_order_enforce,
    with_reward_threshold,
)
from gymkit.src.seeding import RNG, get_default_rng, new_rng
from gymkit.src.spaces import Box, Discrete, Space

register(
    "CartPole-v1",
    "gymkit.src.cartpole:CartPoleEnv",
    with_max_episode_steps(500),
    with_reward_threshold(475.0),
    obs_type=np.ndarray,
    act_type=int,
)

__all__ = [
    "Box",
    "Discrete",
    "Env",
    "EnvSpec",
    "EnvStatus",
    "RNG",
    "Registry",
    "Space",
    "Wrapper",
    "get_default_rng",
    "get_env_id",
    "list_registered",
    "make",
    "make_untyped",
    "new_rng",
    "parse_env_id",
    "pprint_registry",
    "register",
    "spec",
    "with_kwargs",
    "with_max_episode_steps",
    "with_nondeterministic",
    "with_order_enforce",
    "with_reward_threshold",
]
