"""Seeded, thread-safe random number generation.

Every source of randomness in gymkit (space sampling, env resets) goes
through an `RNG`. An RNG wraps a NumPy PCG64 `Generator` plus the seed it
was built from, and serialises every call behind its own lock so one
instance can be shared between threads.

Seeding rules (shared by `RNG()`, `RNG.seed()` and `new_rng()`):
  - seed must be a non-negative integer, otherwise InvalidSeed.
  - seed == 0 means "derive from the clock": the effective seed becomes
    time.time_ns(). The effective seed is returned so runs can be replayed.

Usage:
    rng, seed = new_rng(42)
    rng.int_n(6)          # 0..5
    rng.float64(size=3)   # array of 3 uniform draws
"""

from __future__ import annotations

import threading
import time
from typing import Callable

import numpy as np

from gymkit.src.error import InvalidArgument, InvalidSeed

# Upper bound for int64_n and integer(). PCG64 draws are exact up to this value.
MAX_INT64 = np.iinfo(np.int64).max


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _effective_seed(seed) -> int:
    """Validate a seed and substitute a clock-derived value for 0."""
    if not _is_int(seed):
        raise InvalidSeed(f"seed must be an integer, got {type(seed).__name__}")
    if seed < 0:
        raise InvalidSeed(f"seed must be non-negative, got: {seed}")
    if seed == 0:
        return time.time_ns()
    return int(seed)


def _check_size(name: str, n, minimum: int) -> int:
    if not _is_int(n):
        raise InvalidArgument(f"invalid argument to {name}: {n!r}")
    if n < minimum:
        raise InvalidArgument(f"invalid argument to {name}: {n}")
    return int(n)


class RNG:
    """Lock-protected random generator with a replayable seed.

    Args:
        seed: Non-negative seed. 0 (default) derives the seed from the clock.

    Raises:
        InvalidSeed: If seed is negative or not an integer.
    """

    def __init__(self, seed: int = 0):
        self._lock = threading.Lock()
        self._seed = _effective_seed(seed)
        self._generator = np.random.default_rng(self._seed)

    def __repr__(self) -> str:
        return f"RNG(seed={self._seed})"

    def seed(self, seed: int) -> int:
        """Re-initialise the generator in place, discarding all prior state.

        Returns:
            The effective seed (clock-derived when seed == 0).
        """
        effective = _effective_seed(seed)
        with self._lock:
            self._generator = np.random.default_rng(effective)
            self._seed = effective
        return effective

    def get_seed(self) -> int:
        with self._lock:
            return self._seed

    def get_state(self) -> tuple[int, dict]:
        """Snapshot of (seed, generator state) for set_state()."""
        with self._lock:
            return self._seed, self._generator.bit_generator.state

    def set_state(self, state: tuple[int, dict]) -> None:
        """Restore a snapshot taken by get_state()."""
        seed, generator_state = state
        with self._lock:
            self._generator.bit_generator.state = generator_state
            self._seed = seed

    # --- Integers ---

    def integer(self) -> int:
        """Non-negative pseudo-random 63-bit integer."""
        with self._lock:
            return int(self._generator.integers(0, MAX_INT64, endpoint=True))

    def int_n(self, n: int) -> int:
        """Uniform integer in [0, n). Requires n > 0."""
        n = _check_size("int_n", n, 1)
        with self._lock:
            return int(self._generator.integers(n))

    def int64_n(self, n: int) -> int:
        """Uniform integer in [0, n) for n up to the int64 range. Requires n > 0."""
        n = _check_size("int64_n", n, 1)
        if n > MAX_INT64:
            raise InvalidArgument(f"invalid argument to int64_n: {n} exceeds int64")
        with self._lock:
            return int(self._generator.integers(n, dtype=np.int64))

    # --- Floats ---
    # With size=None these return a Python float; otherwise a float array.

    def float64(self, size=None):
        """Uniform draw(s) in [0.0, 1.0)."""
        with self._lock:
            value = self._generator.random(size=size)
        return float(value) if size is None else value

    def float32(self, size=None):
        """Uniform float32 draw(s) in [0.0, 1.0)."""
        with self._lock:
            value = self._generator.random(size=size, dtype=np.float32)
        return np.float32(value) if size is None else value

    def norm_float64(self, size=None):
        """Standard normal draw(s), mean 0 and stddev 1."""
        with self._lock:
            value = self._generator.standard_normal(size=size)
        return float(value) if size is None else value

    def exp_float64(self, size=None):
        """Exponential draw(s) with rate 1."""
        with self._lock:
            value = self._generator.standard_exponential(size=size)
        return float(value) if size is None else value

    # --- Permutations ---

    def perm(self, n: int) -> list[int]:
        """Random permutation of range(n). Requires n >= 0."""
        n = _check_size("perm", n, 0)
        with self._lock:
            return self._generator.permutation(n).tolist()

    def shuffle(self, n: int, swap: Callable[[int, int], None]) -> None:
        """Fisher-Yates shuffle of n elements through a caller-supplied swap.

        swap(i, j) runs while this RNG's lock is held, so it must not call
        back into the same RNG.
        """
        n = _check_size("shuffle", n, 0)
        with self._lock:
            for i in range(n - 1, 0, -1):
                j = int(self._generator.integers(i + 1))
                swap(i, j)


def new_rng(seed: int = 0) -> tuple[RNG, int]:
    """Create an RNG and report its effective seed.

    Raises:
        InvalidSeed: If seed is negative or not an integer.
    """
    rng = RNG(seed)
    return rng, rng.get_seed()


_default_rng: RNG | None = None
_default_rng_lock = threading.Lock()


def get_default_rng() -> RNG:
    """Return the process-wide default RNG, creating it on first use.

    The default is clock-seeded and built at most once. Components should
    prefer an RNG passed in explicitly; this exists for callers that do
    not care about reproducibility.
    """
    global _default_rng
    if _default_rng is None:
        with _default_rng_lock:
            if _default_rng is None:
                _default_rng = RNG(0)
    return _default_rng
