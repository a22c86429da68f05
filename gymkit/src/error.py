"""Exception taxonomy for gymkit.

Every error derives from `Error`, which itself extends Gymnasium's base error
so code already catching `gymnasium.error.Error` keeps working. Each class
also inherits the closest builtin exception, so callers can write plain
`except ValueError` without importing this module.

Three families:
  - Validation errors: bad seeds, sizes, bounds, sampling arguments.
  - Protocol errors: stepping or rendering an env in the wrong state.
  - Lookup errors: registry IDs that are malformed, unknown, or typed wrong.
"""

from gymnasium import error as gym_error


class Error(gym_error.Error):
    """Base class for all gymkit errors."""


# --- Validation ---


class InvalidArgument(Error, ValueError):
    """An argument is outside the domain accepted by the call."""


class InvalidSeed(InvalidArgument):
    """Seed is negative or not an integer."""


class InvalidBound(InvalidArgument):
    """Box bounds are inverted, NaN, or infinite on the wrong side."""


class UnimplementedFeature(Error, NotImplementedError):
    """Raised for masked or probability-weighted sampling."""


class InvalidJSONable(Error, TypeError):
    """A JSON element cannot be coerced to a sample of the space."""


# --- Protocol ---


class InvalidAction(Error, ValueError):
    """Action is not contained in the env's action space."""


class ResetNeeded(Error, RuntimeError):
    """step() or render() was called before the first reset()."""


class UnsupportedMode(Error, ValueError):
    """Render mode is missing or not listed in the env metadata."""


class ClosedEnvironmentError(Error, RuntimeError):
    """The env has been closed and can no longer be used."""


# --- Lookup ---


class MalformedEnvID(Error, ValueError):
    """Environment ID does not match `[namespace/]name[-vN]`."""


class UnregisteredEnv(Error, LookupError):
    """No environment is registered under the requested ID."""


class TypeMismatch(Error, TypeError):
    """Requested observation/action types differ from the registered ones."""


class EnvCreationError(Error, RuntimeError):
    """The registered entry point failed to build an environment."""
