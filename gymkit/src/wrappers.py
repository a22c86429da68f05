"""Wrappers applied by make() according to the env's registration spec.

  - OrderEnforcing: refuses step()/render() before the first reset(), even
    for envs that bypass the Env base-class checks.
  - TimeLimit: truncates episodes after max_episode_steps steps.

make() applies them in that order, so the outermost wrapper is TimeLimit.
"""

from typing import Any

from gymnasium import logger

from gymkit.src.core import (
    ActType,
    Env,
    EnvStatus,
    Info,
    ObsType,
    RenderFrame,
    Wrapper,
)
from gymkit.src.error import InvalidArgument, ResetNeeded


class TimeLimit(Wrapper[ObsType, ActType]):
    """Set truncated=True once an episode reaches max_episode_steps.

    Truncation is reported on the step that reaches the limit and on every
    step after it until the next reset(). Termination reported by the inner
    env is passed through untouched.

    The inner env never sees the truncation, so this wrapper keeps the
    post-episode bookkeeping for it: steps past the limit report reward 0.0,
    are counted in `steps_beyond_done`, and the first one logs a warning.
    `status` reads TRUNCATED until the next reset().

    Args:
        env: Env to wrap.
        max_episode_steps: Positive step limit per episode.
    """

    def __init__(self, env: Env[ObsType, ActType], max_episode_steps: int):
        if (
            not isinstance(max_episode_steps, int)
            or isinstance(max_episode_steps, bool)
            or max_episode_steps <= 0
        ):
            raise InvalidArgument(
                f"max_episode_steps must be a positive integer, got {max_episode_steps!r}"
            )
        super().__init__(env)
        self.max_episode_steps = max_episode_steps
        self._elapsed_steps: int | None = None
        # Set to 0 when this wrapper (not the inner env) ends the episode.
        self._steps_beyond_limit: int | None = None

    @property
    def elapsed_steps(self) -> int | None:
        return self._elapsed_steps

    @property
    def status(self) -> EnvStatus:
        if self._steps_beyond_limit is not None:
            return EnvStatus.TRUNCATED
        return self.env.status

    @property
    def steps_beyond_done(self) -> int | None:
        if self._steps_beyond_limit is not None:
            return self._steps_beyond_limit
        return self.env.steps_beyond_done

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[ObsType, Info]:
        observation, info = self.env.reset(seed=seed, options=options)
        self._elapsed_steps = 0
        self._steps_beyond_limit = None
        return observation, info

    def step(self, action: ActType):
        observation, reward, terminated, truncated, info = self.env.step(action)
        if self._elapsed_steps is None:
            # Inner env accepted a step without reset(); nothing to count from.
            return observation, reward, terminated, truncated, info

        self._elapsed_steps += 1
        if self._steps_beyond_limit is not None:
            if self._steps_beyond_limit == 0:
                logger.warn(
                    "You are calling 'step()' even though this environment has "
                    "already returned truncated = True after "
                    f"max_episode_steps={self.max_episode_steps}. You should "
                    "always call 'reset()' once you receive 'truncated = True'."
                )
            self._steps_beyond_limit += 1
            reward = 0.0
        elif (
            self._elapsed_steps >= self.max_episode_steps
            and self.env.status is EnvStatus.READY
        ):
            self._steps_beyond_limit = 0

        if self._elapsed_steps >= self.max_episode_steps:
            truncated = True
        return observation, reward, terminated, truncated, info


class OrderEnforcing(Wrapper[ObsType, ActType]):
    """Raise ResetNeeded if step() or render() is called before reset()."""

    def __init__(self, env: Env[ObsType, ActType]):
        super().__init__(env)
        self._has_reset = False

    @property
    def has_reset(self) -> bool:
        return self._has_reset

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[ObsType, Info]:
        result = self.env.reset(seed=seed, options=options)
        self._has_reset = True
        return result

    def step(self, action: ActType):
        if not self._has_reset:
            raise ResetNeeded("cannot call step() before calling reset()")
        return self.env.step(action)

    def render(self) -> RenderFrame:
        if not self._has_reset:
            raise ResetNeeded("cannot call render() before calling reset()")
        return self.env.render()
