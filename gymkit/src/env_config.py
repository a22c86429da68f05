"""YAML make-config loader.

A make-config names a registered environment and the keyword arguments to
build it with, so an experiment's env setup can live in a version-controlled
file instead of code:

    # gymkit/configs/cartpole-sutton.yaml
    id: CartPole-v1
    kwargs:
      sutton_barto_reward: true
    seed: 7
    episodes: 3

Resolution order for scripts (highest -> lowest):
  1. CLI args (--env-id, --seed, ...)
  2. YAML config (--config)
  3. MAKE_DEFAULTS (below)

Usage:
    config = load_make_config("cartpole-default")       # builtin name
    config = load_make_config("path/to/custom.yaml")    # file path
    env = make_from_config("cartpole-default")
"""

from pathlib import Path

import yaml

from gymkit.src import registration
from gymkit.src.core import Env

# Builtin config directory: gymkit/src/ -> gymkit/configs/
_CONFIGS_DIR = Path(__file__).parent.parent / "configs"

# Every key a make-config may set. None = REQUIRED.
MAKE_DEFAULTS = {
    "id": None,  # REQUIRED: registered environment ID
    "kwargs": {},  # passed to the env factory
    "seed": None,  # None = keep the env's clock-seeded RNG
    "episodes": 1,
}


def _resolve_path(name_or_path: str) -> Path:
    """Resolve a builtin config name or a file path to a YAML file.

    Raises:
        FileNotFoundError: If neither a file nor a builtin exists. The message
            lists the available builtins.
    """
    path = Path(name_or_path)

    if path.is_absolute() or path.suffix in (".yaml", ".yml"):
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return path

    builtin_path = _CONFIGS_DIR / f"{name_or_path}.yaml"
    if builtin_path.exists():
        return builtin_path

    available = (
        [
            str(p.relative_to(_CONFIGS_DIR).with_suffix(""))
            for p in sorted(_CONFIGS_DIR.rglob("*.yaml"))
        ]
        if _CONFIGS_DIR.exists()
        else []
    )
    raise FileNotFoundError(f"No builtin config '{name_or_path}'. Available: {available}")


def load_make_config(name_or_path: str) -> dict:
    """Load a make-config and fill in MAKE_DEFAULTS.

    Unknown keys are ignored so older loaders accept newer files.

    Raises:
        FileNotFoundError: If the config cannot be found.
        ValueError: If the document is not a mapping, 'id' is missing,
            'kwargs' is not a mapping, 'seed' is not a non-negative int or
            null, or 'episodes' is not a positive int.
    """
    path = _resolve_path(name_or_path)

    with open(path) as f:
        yaml_data = yaml.safe_load(f)
    if yaml_data is None:
        yaml_data = {}
    if not isinstance(yaml_data, dict):
        raise ValueError(
            f"Config {path} must be a mapping at the top level, "
            f"got {type(yaml_data).__name__}"
        )

    config = {key: (dict(v) if isinstance(v, dict) else v) for key, v in MAKE_DEFAULTS.items()}
    for key, value in yaml_data.items():
        if key in config:
            config[key] = value

    if not config["id"]:
        raise ValueError(f"Config {path} must set 'id'")
    if config["kwargs"] is None:
        config["kwargs"] = {}
    if not isinstance(config["kwargs"], dict):
        raise ValueError(f"'kwargs' in {path} must be a mapping, got {config['kwargs']!r}")

    seed = config["seed"]
    if seed is not None and (not _is_int(seed) or seed < 0):
        raise ValueError(f"'seed' in {path} must be a non-negative int or null, got {seed!r}")
    episodes = config["episodes"]
    if not _is_int(episodes) or episodes < 1:
        raise ValueError(f"'episodes' in {path} must be a positive int, got {episodes!r}")

    return config


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def make_from_config(
    name_or_path: str, registry: registration.Registry | None = None
) -> Env:
    """Build the env described by a make-config (without a type check)."""
    config = load_make_config(name_or_path)
    if registry is None:
        registry = registration.registry
    return registry.make_untyped(config["id"], config["kwargs"])
