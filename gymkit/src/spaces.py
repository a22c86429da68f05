"""Observation and action spaces.

A Space describes the set of legal values for an env's observations or
actions. Every space can:

  - sample() a random element using its own RNG,
  - contains() check membership (also available as `x in space`),
  - to_jsonable() / from_jsonable() a batch of samples losslessly.

Two concrete spaces are provided:

  - Discrete(n, start=0): the integers {start, ..., start + n - 1}.
    Samples are Python ints.
  - Box(low, high, shape=None): a product of closed intervals, each possibly
    unbounded on either side. Samples are float64 numpy arrays.

Each space owns its RNG. Pass `rng=` to share one explicitly or to make
sampling reproducible; otherwise a fresh clock-seeded RNG is created.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Generic, Sequence, TypeVar

import numpy as np

from gymkit.src.error import (
    InvalidArgument,
    InvalidBound,
    InvalidJSONable,
    UnimplementedFeature,
)
from gymkit.src.seeding import RNG

T = TypeVar("T")

# Accepted values for Box.is_bounded(manner=...).
BOUNDED_MANNERS = ("both", "below", "above")


class Space(ABC, Generic[T]):
    """Base class for all spaces, parameterized by the sample type T."""

    def __init__(self, rng: RNG | None = None):
        self._rng = rng if rng is not None else RNG()

    @property
    def rng(self) -> RNG:
        return self._rng

    def seed(self, seed: int) -> int:
        """Re-seed this space's RNG. Returns the effective seed."""
        return self._rng.seed(seed)

    @staticmethod
    def _check_sample_args(mask, probability) -> None:
        if mask is not None or probability is not None:
            raise UnimplementedFeature(
                "mask and probability sampling not yet implemented"
            )

    @abstractmethod
    def sample(self, mask: Any = None, probability: Any = None) -> T:
        """Draw a random element. mask and probability must be None."""

    @abstractmethod
    def contains(self, x: Any) -> bool:
        """Return True if x is a member of this space."""

    def __contains__(self, x: Any) -> bool:
        return self.contains(x)

    @property
    @abstractmethod
    def shape(self) -> tuple[int, ...] | None:
        """Shape of a sample, or None for scalar spaces."""

    @property
    @abstractmethod
    def dtype(self) -> str:
        """Element type tag, for introspection only."""

    @property
    def is_flattenable(self) -> bool:
        return True

    @abstractmethod
    def to_jsonable(self, samples: Sequence[T]) -> list:
        """Convert a batch of samples to plain JSON-compatible values."""

    @abstractmethod
    def from_jsonable(self, data: Sequence[Any]) -> list[T]:
        """Inverse of to_jsonable()."""


def _is_integer(x) -> bool:
    return isinstance(x, (int, np.integer)) and not isinstance(x, (bool, np.bool_))


class Discrete(Space[int]):
    """A finite set of consecutive integers.

    Discrete(2) is {0, 1}; Discrete(3, start=-1) is {-1, 0, 1}.

    Args:
        n: Number of elements. Must be positive.
        start: Smallest element.
        rng: Optional RNG to sample from.

    Raises:
        InvalidArgument: If n is not a positive integer or start not an integer.
    """

    def __init__(self, n: int, start: int = 0, rng: RNG | None = None):
        if not _is_integer(n) or n <= 0:
            raise InvalidArgument(f"n (counts) have to be positive, got {n!r}")
        if not _is_integer(start):
            raise InvalidArgument(f"start must be an integer, got {start!r}")
        super().__init__(rng)
        self._n = int(n)
        self._start = int(start)

    @property
    def n(self) -> int:
        return self._n

    @property
    def start(self) -> int:
        return self._start

    def sample(self, mask: Any = None, probability: Any = None) -> int:
        self._check_sample_args(mask, probability)
        return self._start + self._rng.int64_n(self._n)

    def contains(self, x: Any) -> bool:
        if not _is_integer(x):
            return False
        return self._start <= int(x) < self._start + self._n

    @property
    def shape(self) -> None:
        return None

    @property
    def dtype(self) -> str:
        return "int64"

    def to_jsonable(self, samples: Sequence[int]) -> list[int]:
        return [int(s) for s in samples]

    def from_jsonable(self, data: Sequence[Any]) -> list[int]:
        result = []
        for value in data:
            if _is_integer(value):
                result.append(int(value))
            elif isinstance(value, (float, np.floating)) and float(value).is_integer():
                # JSON decoders may hand integers back as floats.
                result.append(int(value))
            else:
                raise InvalidJSONable(f"expected int-like value, got {value!r}")
        return result

    def __repr__(self) -> str:
        if self._start != 0:
            return f"Discrete({self._n}, start={self._start})"
        return f"Discrete({self._n})"

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Discrete)
            and self._n == other._n
            and self._start == other._start
        )

    def __hash__(self) -> int:
        return hash((Discrete, self._n, self._start))


def _as_bound(name: str, value, shape: tuple[int, ...] | None) -> np.ndarray:
    """Turn a scalar or array-like bound into a float64 array of `shape`.

    Scalars broadcast to `shape`; arrays are reshaped to it when their size
    matches. When shape is None the array's own shape is kept.
    """
    try:
        array = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"{name} must be a number or numeric array: {e}") from e

    if array.ndim == 0:
        if shape is None:
            raise InvalidArgument(f"shape must be provided when {name} is scalar")
        return np.full(shape, float(array), dtype=np.float64)

    if shape is None:
        return array.copy()
    if array.size != math.prod(shape):
        raise InvalidArgument(
            f"{name} has {array.size} elements, which does not fit shape {shape}"
        )
    return array.reshape(shape).copy()


class Box(Space[np.ndarray]):
    """A (possibly unbounded) box in R^n.

    The space is the product of intervals [low[i], high[i]], where each
    interval may be [a, b], [a, inf), (-inf, b] or (-inf, inf).

    Two common forms:
      Box(low=-1.0, high=2.0, shape=(3, 4))       # identical bounds per axis
      Box(low=[-1.0, -2.0], high=[2.0, 4.0])      # per-axis bounds, shape (2,)

    Args:
        low: Scalar or array of lower bounds. Use -np.inf for unbounded.
        high: Scalar or array of upper bounds. Use np.inf for unbounded.
        shape: Sample shape. Required when both bounds are scalars;
            otherwise inferred from whichever bound is an array.
        rng: Optional RNG to sample from.

    Raises:
        InvalidArgument: If the shape cannot be resolved or bounds differ in size.
        InvalidBound: If any low > high, a bound is NaN, low is +inf or high is -inf.
    """

    def __init__(
        self,
        low,
        high,
        shape: Sequence[int] | None = None,
        rng: RNG | None = None,
    ):
        if shape is not None:
            shape = tuple(int(dim) for dim in shape)
            if any(dim < 0 for dim in shape):
                raise InvalidArgument(f"shape dimensions must be >= 0, got {shape}")
        elif np.ndim(low) > 0:
            shape = np.shape(low)
        elif np.ndim(high) > 0:
            shape = np.shape(high)

        low_arr = _as_bound("low", low, shape)
        high_arr = _as_bound("high", high, shape)
        if low_arr.shape != high_arr.shape:
            raise InvalidArgument(
                f"low and high must have same length, got {low_arr.size} and {high_arr.size}"
            )

        if np.isnan(low_arr).any() or np.isnan(high_arr).any():
            raise InvalidBound("low and high must not contain NaN")
        if np.isposinf(low_arr).any():
            raise InvalidBound("low must not contain +inf")
        if np.isneginf(high_arr).any():
            raise InvalidBound("high must not contain -inf")
        inverted = np.argwhere(low_arr > high_arr)
        if inverted.size:
            idx = tuple(int(i) for i in inverted[0])
            raise InvalidBound(
                f"low[{idx}] ({low_arr[idx]}) must be <= high[{idx}] ({high_arr[idx]})"
            )

        super().__init__(rng)
        self._shape = tuple(low_arr.shape)
        self._low = low_arr
        self._high = high_arr
        self.bounded_below = ~np.isneginf(low_arr)
        self.bounded_above = ~np.isposinf(high_arr)

    @property
    def low(self) -> np.ndarray:
        return self._low.copy()

    @property
    def high(self) -> np.ndarray:
        return self._high.copy()

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> str:
        return "float64"

    def is_bounded(self, manner: str = "both") -> bool:
        """Check whether every axis is bounded in the given manner.

        Args:
            manner: "both", "below" or "above".

        Raises:
            InvalidArgument: For any other manner.
        """
        if manner == "both":
            return bool(np.all(self.bounded_below & self.bounded_above))
        if manner == "below":
            return bool(np.all(self.bounded_below))
        if manner == "above":
            return bool(np.all(self.bounded_above))
        raise InvalidArgument(
            f"manner must be one of {BOUNDED_MANNERS}, got '{manner}'"
        )

    def sample(self, mask: Any = None, probability: Any = None) -> np.ndarray:
        """Sample each coordinate independently by the form of its interval.

          [a, b]    : uniform on [a, b)
          [a, inf)  : a + Exp(1)
          (-inf, b] : b - Exp(1)
          (-inf, inf): standard normal
        """
        self._check_sample_args(mask, probability)

        bounded = self.bounded_below & self.bounded_above
        low_only = self.bounded_below & ~self.bounded_above
        high_only = ~self.bounded_below & self.bounded_above
        unbounded = ~self.bounded_below & ~self.bounded_above

        sample = np.empty(self._shape, dtype=np.float64)
        if bounded.any():
            width = self._high[bounded] - self._low[bounded]
            u = self._rng.float64(size=int(bounded.sum()))
            sample[bounded] = self._low[bounded] + u * width
        if low_only.any():
            sample[low_only] = self._low[low_only] + self._rng.exp_float64(
                size=int(low_only.sum())
            )
        if high_only.any():
            sample[high_only] = self._high[high_only] - self._rng.exp_float64(
                size=int(high_only.sum())
            )
        if unbounded.any():
            sample[unbounded] = self._rng.norm_float64(size=int(unbounded.sum()))
        return sample

    def _coerce(self, x: Any) -> np.ndarray | None:
        """Convert x to a float64 array of this Box's shape, or None."""
        try:
            array = np.asarray(x)
        except (TypeError, ValueError):
            return None
        if array.dtype.kind not in "iuf":
            return None
        if array.shape != self._shape:
            return None
        return array.astype(np.float64)

    def contains(self, x: Any) -> bool:
        # Upper bound is inclusive here even though uniform sampling is half-open.
        array = self._coerce(x)
        if array is None:
            return False
        return bool(np.all(array >= self._low) and np.all(array <= self._high))

    def to_jsonable(self, samples: Sequence[np.ndarray]) -> list:
        return [np.asarray(s, dtype=np.float64).tolist() for s in samples]

    def from_jsonable(self, data: Sequence[Any]) -> list[np.ndarray]:
        result = []
        for value in data:
            array = self._coerce(value)
            if array is None:
                raise InvalidJSONable(
                    f"expected numeric array of shape {self._shape}, got {value!r}"
                )
            result.append(array)
        return result

    def __repr__(self) -> str:
        return (
            f"Box(low={self._low.tolist()}, high={self._high.tolist()}, "
            f"shape={self._shape}, dtype=float64)"
        )

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Box)
            and self._shape == other._shape
            and np.array_equal(self._low, other._low)
            and np.array_equal(self._high, other._high)
        )

    def __hash__(self) -> int:
        return hash((Box, self._shape))
