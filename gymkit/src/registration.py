"""Environment registry: string IDs -> environment factories.

Environments are registered under IDs of the form

    [namespace/]name[-v<version>]      e.g. "CartPole-v1", "acme/Maze:small-v3"

together with the observation and action types they produce. make() checks
the caller's requested types against the registered ones *before* calling
the factory, so a mismatch never builds the wrong environment:

    register("CartPole-v1", CartPoleEnv, obs_type=np.ndarray, act_type=int)
    env = make("CartPole-v1", obs_type=np.ndarray, act_type=int)   # typed
    env = make_untyped("CartPole-v1")                              # any types

Config precedence when building an env (later wins):
  1. kwargs stored on the spec (with_kwargs() at registration)
  2. each override mapping passed to make(), in order
  3. keyword arguments passed to make()

Registering an ID that already exists replaces the old spec.
"""

from __future__ import annotations

import dataclasses
import importlib
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Union

from gymnasium import logger

from gymkit.src.core import Env
from gymkit.src.error import (
    EnvCreationError,
    InvalidArgument,
    MalformedEnvID,
    TypeMismatch,
    UnregisteredEnv,
)
from gymkit.src.wrappers import OrderEnforcing, TimeLimit

ENV_ID_RE = re.compile(
    r"^(?:(?P<namespace>[\w:-]+)/)?(?:(?P<name>[\w:.-]+?))(?:-v(?P<version>\d+))?$"
)

# A factory is called with the merged config as keyword arguments.
EnvCreator = Callable[..., Env]
EntryPoint = Union[EnvCreator, str]

# An option returns an updated copy of the spec being registered.
SpecOption = Callable[["EnvSpec"], "EnvSpec"]


def parse_env_id(env_id: str) -> tuple[str | None, str, int | None]:
    """Split an environment ID into (namespace, name, version).

    Raises:
        MalformedEnvID: If env_id does not follow `[namespace/]name[-vN]`.
    """
    match = ENV_ID_RE.fullmatch(env_id) if isinstance(env_id, str) else None
    if match is None:
        raise MalformedEnvID(f"malformed environment ID: {env_id!r}")
    namespace, name, version = match.group("namespace", "name", "version")
    if version is not None:
        version = int(version)
    return namespace, name, version


def get_env_id(namespace: str | None, name: str, version: int | None) -> str:
    """Inverse of parse_env_id()."""
    full_name = name
    if namespace is not None:
        full_name = f"{namespace}/{name}"
    if version is not None:
        full_name = f"{full_name}-v{version}"
    return full_name


@dataclass(frozen=True)
class EnvSpec:
    """Registration record for one environment ID.

    Attributes:
        id: Canonical ID, rebuilt from the parsed components.
        entry_point: Factory callable, or "module:attr" imported on make().
        obs_type: Type of observations the env produces.
        act_type: Type of actions the env accepts.
        reward_threshold: Return at which the task is considered solved.
        max_episode_steps: If set, make() wraps the env in TimeLimit.
        nondeterministic: True if the env is not reproducible from a seed.
        order_enforce: If True, make() wraps the env in OrderEnforcing.
        kwargs: Default config passed to the factory. Stored as a read-only
            mapping; make() passes the factory a fresh dict.
    """

    id: str
    entry_point: EntryPoint
    obs_type: type = object
    act_type: type = object
    reward_threshold: float | None = None
    max_episode_steps: int | None = None
    nondeterministic: bool = False
    order_enforce: bool = True
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    namespace: str | None = field(init=False)
    name: str = field(init=False)
    version: int | None = field(init=False)

    def __post_init__(self):
        namespace, name, version = parse_env_id(self.id)
        object.__setattr__(self, "namespace", namespace)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "version", version)
        object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))

    @property
    def type_tag(self) -> tuple[type, type]:
        """Runtime discriminator compared by make()."""
        return (self.obs_type, self.act_type)

    def load_entry_point(self) -> EnvCreator:
        if callable(self.entry_point):
            return self.entry_point
        module_name, _, attr = self.entry_point.partition(":")
        if not attr:
            raise EnvCreationError(
                f"entry point for {self.id} must look like 'module:attr', "
                f"got '{self.entry_point}'"
            )
        module = importlib.import_module(module_name)
        return getattr(module, attr)


# --- Registration options ---


def with_reward_threshold(threshold: float) -> SpecOption:
    threshold = float(threshold)
    return lambda spec: dataclasses.replace(spec, reward_threshold=threshold)


def with_max_episode_steps(steps: int) -> SpecOption:
    if not isinstance(steps, int) or isinstance(steps, bool) or steps <= 0:
        raise InvalidArgument(f"max_episode_steps must be a positive integer, got {steps!r}")
    return lambda spec: dataclasses.replace(spec, max_episode_steps=steps)


def with_nondeterministic(nondeterministic: bool) -> SpecOption:
    nondeterministic = bool(nondeterministic)
    return lambda spec: dataclasses.replace(spec, nondeterministic=nondeterministic)


def with_order_enforce(order_enforce: bool) -> SpecOption:
    order_enforce = bool(order_enforce)
    return lambda spec: dataclasses.replace(spec, order_enforce=order_enforce)


def with_kwargs(kwargs: Mapping[str, Any]) -> SpecOption:
    """Merge kwargs into the spec's defaults; repeated keys overwrite."""
    kwargs = dict(kwargs)
    return lambda spec: dataclasses.replace(spec, kwargs={**spec.kwargs, **kwargs})


class _ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers are preferred: once a writer is waiting, new readers queue
    behind it, so a steady stream of lookups cannot starve register().
    Not reentrant; a thread holding read() must not call read() again.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writing = False

    @contextmanager
    def read(self):
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class Registry:
    """Thread-safe mapping from environment IDs to EnvSpecs."""

    def __init__(self):
        self._lock = _ReadWriteLock()
        self._specs: dict[str, EnvSpec] = {}

    def register(
        self,
        env_id: str,
        entry_point: EntryPoint,
        *options: SpecOption,
        obs_type: type = object,
        act_type: type = object,
    ) -> EnvSpec:
        """Register a factory under env_id.

        Args:
            env_id: ID following `[namespace/]name[-vN]`.
            entry_point: Factory callable or "module:attr" string.
            *options: with_*() options, applied in order.
            obs_type: Observation type, checked by make().
            act_type: Action type, checked by make().

        Returns:
            The stored spec.

        Raises:
            MalformedEnvID: If env_id is malformed.
        """
        namespace, name, version = parse_env_id(env_id)
        spec = EnvSpec(
            id=get_env_id(namespace, name, version),
            entry_point=entry_point,
            obs_type=obs_type,
            act_type=act_type,
        )
        for option in options:
            spec = option(spec)

        with self._lock.write():
            if spec.id in self._specs:
                logger.warn(f"Overriding environment {spec.id} already in registry.")
            self._specs[spec.id] = spec
        return spec

    def spec(self, env_id: str) -> EnvSpec:
        """Look up the spec for env_id.

        Raises:
            MalformedEnvID: If env_id is malformed.
            UnregisteredEnv: If nothing is registered under env_id.
        """
        key = get_env_id(*parse_env_id(env_id))
        with self._lock.read():
            spec = self._specs.get(key)
        if spec is None:
            raise UnregisteredEnv(f"no registered environment with id: {env_id}")
        return spec

    def make(
        self,
        env_id: str,
        *overrides: Mapping[str, Any],
        obs_type: type,
        act_type: type,
        **kwargs: Any,
    ) -> Env:
        """Build a registered env whose types match obs_type and act_type.

        Raises:
            UnregisteredEnv: If env_id is not registered.
            TypeMismatch: If the registered types differ from the requested ones.
            EnvCreationError: If the factory fails.
        """
        spec = self.spec(env_id)
        if spec.type_tag != (obs_type, act_type):
            raise TypeMismatch(
                f"environment {spec.id} has incompatible types: registered "
                f"{_type_names(spec.type_tag)}, requested "
                f"{_type_names((obs_type, act_type))}"
            )
        return self._create(spec, overrides, kwargs)

    def make_untyped(
        self, env_id: str, *overrides: Mapping[str, Any], **kwargs: Any
    ) -> Env:
        """Like make() but without the observation/action type check."""
        return self._create(self.spec(env_id), overrides, kwargs)

    def _create(
        self,
        spec: EnvSpec,
        overrides: tuple[Mapping[str, Any], ...],
        kwargs: Mapping[str, Any],
    ) -> Env:
        config = dict(spec.kwargs)
        for override in overrides:
            config.update(override)
        config.update(kwargs)

        try:
            creator = spec.load_entry_point()
            env = creator(**config)
        except EnvCreationError:
            raise
        except Exception as e:
            raise EnvCreationError(
                f"failed to create environment {spec.id}: {e}"
            ) from e
        if not isinstance(env, Env):
            raise EnvCreationError(
                f"entry point for {spec.id} returned {type(env).__name__}, not an Env"
            )

        env.unwrapped.spec = dataclasses.replace(spec, kwargs=config)
        if spec.order_enforce:
            env = OrderEnforcing(env)
        if spec.max_episode_steps is not None:
            env = TimeLimit(env, max_episode_steps=spec.max_episode_steps)
        return env

    def list_registered(self) -> set[str]:
        with self._lock.read():
            return set(self._specs)

    def pprint(self) -> str:
        """Return (and print) a listing of registered IDs grouped by namespace."""
        with self._lock.read():
            specs = list(self._specs.values())

        by_namespace: dict[str, list[str]] = {}
        for spec in specs:
            by_namespace.setdefault(spec.namespace or "", []).append(spec.id)

        lines = ["Registered Environments:", "========================"]
        for namespace in sorted(by_namespace):
            if namespace:
                lines.append(f"===== {namespace} =====")
            lines.extend(f"- {env_id}" for env_id in sorted(by_namespace[namespace]))
        text = "\n".join(lines)
        print(text)
        return text

    def __contains__(self, env_id: str) -> bool:
        try:
            self.spec(env_id)
        except (MalformedEnvID, UnregisteredEnv):
            return False
        return True

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._specs)


def _type_names(types: tuple[type, type]) -> str:
    return "(" + ", ".join(getattr(t, "__name__", repr(t)) for t in types) + ")"


# Process-wide registry used by the module-level helpers below.
registry = Registry()


def register(
    env_id: str,
    entry_point: EntryPoint,
    *options: SpecOption,
    obs_type: type = object,
    act_type: type = object,
) -> EnvSpec:
    return registry.register(
        env_id, entry_point, *options, obs_type=obs_type, act_type=act_type
    )


def make(
    env_id: str,
    *overrides: Mapping[str, Any],
    obs_type: type,
    act_type: type,
    **kwargs: Any,
) -> Env:
    return registry.make(
        env_id, *overrides, obs_type=obs_type, act_type=act_type, **kwargs
    )


def make_untyped(env_id: str, *overrides: Mapping[str, Any], **kwargs: Any) -> Env:
    return registry.make_untyped(env_id, *overrides, **kwargs)


def spec(env_id: str) -> EnvSpec:
    return registry.spec(env_id)


def list_registered() -> set[str]:
    return registry.list_registered()


def pprint_registry() -> str:
    return registry.pprint()
