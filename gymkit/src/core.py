"""Environment base class and wrapper.

`Env` is the contract every gymkit environment implements. It owns the
lifecycle state machine so concrete envs only describe their dynamics:

    UNINITIALIZED --reset--> READY --step--> TERMINATED | TRUNCATED
          ^                    ^                    |
          |                    +-------reset--------+
    any state --close--> CLOSED

Subclasses implement the hooks:
  - _reset(options) -> (observation, info)
  - _step(action) -> (observation, reward, terminated, truncated, info)
  - _render() -> frame            (only if the env supports a render mode)
  - _close()                      (release external resources)

The public reset()/step()/render()/close() validate the call, keep the
episode bookkeeping, and then delegate to the hooks. Validation failures
raise before any state changes, so the caller can correct the call and retry.

Stepping after an episode has already ended is tolerated: the env keeps
running, the reward is reported as 0.0 and a one-time warning is logged.
Training loops that over-step by a frame rely on this.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Generic, SupportsFloat, TypeVar

from gymnasium import logger

from gymkit.src.error import (
    ClosedEnvironmentError,
    InvalidAction,
    ResetNeeded,
    UnsupportedMode,
)
from gymkit.src.seeding import RNG
from gymkit.src.spaces import Space

if TYPE_CHECKING:
    from gymkit.src.registration import EnvSpec

ObsType = TypeVar("ObsType")
ActType = TypeVar("ActType")

# Auxiliary diagnostics returned by reset() and step(). Must be JSON-friendly.
Info = dict[str, Any]

# Whatever the env's render mode produces (text, pixel buffer, window handle).
RenderFrame = Any


class EnvStatus(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    TERMINATED = "terminated"
    TRUNCATED = "truncated"
    CLOSED = "closed"


class Env(Generic[ObsType, ActType]):
    """Base class for reinforcement learning environments.

    Concrete envs call super().__init__() and then set `action_space` and
    `observation_space`. They declare supported render modes in `metadata`.

    Args:
        render_mode: One of metadata["render_modes"], or None for no rendering.
        rng: RNG used for resets and env-internal randomness. A fresh
            clock-seeded RNG is created when omitted.

    Raises:
        UnsupportedMode: If render_mode is not listed in metadata.
    """

    metadata: dict[str, Any] = {"render_modes": []}

    # Set by make() to the spec this env was built from.
    spec: EnvSpec | None = None

    action_space: Space[ActType]
    observation_space: Space[ObsType]

    def __init__(self, render_mode: str | None = None, rng: RNG | None = None):
        if render_mode is not None and render_mode not in self.metadata.get(
            "render_modes", []
        ):
            raise UnsupportedMode(
                f"render_mode '{render_mode}' is not one of "
                f"{self.metadata.get('render_modes', [])}"
            )
        self.render_mode = render_mode
        self._rng = rng if rng is not None else RNG()
        self._status = EnvStatus.UNINITIALIZED
        self._steps_beyond_done: int | None = None

    # --- Lifecycle ---

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[ObsType, Info]:
        """Start a new episode.

        Args:
            seed: None keeps the current RNG state. Any integer (0 included,
                which derives a clock seed) re-seeds the env's RNG first.
            options: Env-specific reset options.

        Returns:
            (observation, info) for the first state of the episode.

        A reset that raises (e.g. on invalid options) leaves the RNG and the
        episode state as they were.
        """
        self._check_open()
        saved_rng = self._rng.get_state()
        try:
            if seed is not None:
                self._rng.seed(seed)
            observation, info = self._reset(options)
        except Exception:
            self._rng.set_state(saved_rng)
            raise
        self._steps_beyond_done = None
        self._status = EnvStatus.READY
        return observation, info

    def step(
        self, action: ActType
    ) -> tuple[ObsType, SupportsFloat, bool, bool, Info]:
        """Advance the env by one timestep.

        Returns:
            (observation, reward, terminated, truncated, info).

        Raises:
            InvalidAction: If action is not in the action space.
            ResetNeeded: If reset() has not been called yet.
        """
        self._check_open()
        if not self.action_space.contains(action):
            raise InvalidAction(f"invalid action {action!r} for {self.action_space}")
        if self._status is EnvStatus.UNINITIALIZED:
            raise ResetNeeded("call reset() before using step()")

        already_done = self._status in (EnvStatus.TERMINATED, EnvStatus.TRUNCATED)
        observation, reward, terminated, truncated, info = self._step(action)

        if already_done:
            if self._steps_beyond_done == 0:
                logger.warn(
                    "You are calling 'step()' even though this environment has "
                    "already returned terminated = True or truncated = True. "
                    "You should always call 'reset()' once you receive "
                    "'terminated = True' or 'truncated = True' -- any further "
                    "steps are undefined behavior."
                )
            self._steps_beyond_done += 1
            reward = 0.0
        elif terminated or truncated:
            self._steps_beyond_done = 0
            self._status = EnvStatus.TERMINATED if terminated else EnvStatus.TRUNCATED

        return observation, reward, terminated, truncated, info

    def render(self) -> RenderFrame:
        """Produce a frame in the configured render mode.

        Raises:
            UnsupportedMode: If the env was created without a render mode.
            ResetNeeded: If reset() has not been called yet.
        """
        self._check_open()
        if self.render_mode is None:
            spec_id = self.spec.id if self.spec is not None else type(self).__name__
            raise UnsupportedMode(
                "no render mode specified. You can specify the render_mode at "
                f'initialization, e.g. make("{spec_id}", render_mode="ansi")'
            )
        if self._status is EnvStatus.UNINITIALIZED:
            raise ResetNeeded("call reset() before using render()")
        return self._render()

    def close(self) -> None:
        """Release resources. Safe to call more than once."""
        if self._status is EnvStatus.CLOSED:
            return
        self._close()
        self._status = EnvStatus.CLOSED

    # --- Hooks for subclasses ---

    def _reset(self, options: dict[str, Any] | None) -> tuple[ObsType, Info]:
        raise NotImplementedError

    def _step(
        self, action: ActType
    ) -> tuple[ObsType, SupportsFloat, bool, bool, Info]:
        raise NotImplementedError

    def _render(self) -> RenderFrame:
        raise NotImplementedError

    def _close(self) -> None:
        pass

    # --- Accessors ---

    @property
    def rng(self) -> RNG:
        return self._rng

    @property
    def status(self) -> EnvStatus:
        return self._status

    @property
    def steps_beyond_done(self) -> int | None:
        """Steps taken since the episode ended, or None while it is running."""
        return self._steps_beyond_done

    @property
    def unwrapped(self) -> Env[ObsType, ActType]:
        return self

    def _check_open(self) -> None:
        if self._status is EnvStatus.CLOSED:
            raise ClosedEnvironmentError(f"{self} has been closed")

    def __str__(self) -> str:
        if self.spec is None:
            return f"<{type(self).__name__} instance>"
        return f"<{type(self).__name__}<{self.spec.id}>>"

    def __enter__(self) -> Env[ObsType, ActType]:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class Wrapper(Env[ObsType, ActType]):
    """Transparent pass-through around another env.

    Subclasses override reset()/step() (or any accessor) to change
    behaviour. Everything not overridden is forwarded to the wrapped env,
    including its lifecycle status and RNG.
    """

    def __init__(self, env: Env[ObsType, ActType]):
        # No super().__init__(): all state lives in the wrapped env.
        self.env = env

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[ObsType, Info]:
        return self.env.reset(seed=seed, options=options)

    def step(
        self, action: ActType
    ) -> tuple[ObsType, SupportsFloat, bool, bool, Info]:
        return self.env.step(action)

    def render(self) -> RenderFrame:
        return self.env.render()

    def close(self) -> None:
        self.env.close()

    @property
    def action_space(self) -> Space[ActType]:
        return self.env.action_space

    @property
    def observation_space(self) -> Space[ObsType]:
        return self.env.observation_space

    @property
    def metadata(self) -> dict[str, Any]:
        return self.env.metadata

    @property
    def render_mode(self) -> str | None:
        return self.env.render_mode

    @property
    def spec(self) -> EnvSpec | None:
        return self.env.spec

    @property
    def rng(self) -> RNG:
        return self.env.rng

    @property
    def status(self) -> EnvStatus:
        return self.env.status

    @property
    def steps_beyond_done(self) -> int | None:
        return self.env.steps_beyond_done

    @property
    def unwrapped(self) -> Env[ObsType, ActType]:
        return self.env.unwrapped

    def __str__(self) -> str:
        return f"<{type(self).__name__}{self.env}>"

    def __repr__(self) -> str:
        return str(self)
