"""Tests for Discrete and Box spaces."""

import json

import numpy as np
import pytest

from gymkit.src.error import (
    InvalidArgument,
    InvalidBound,
    InvalidJSONable,
    UnimplementedFeature,
)
from gymkit.src.seeding import RNG
from gymkit.src.spaces import Box, Discrete


class TestDiscrete:
    """Discrete(n, start) sampling, membership and serialisation."""

    def test_samples_in_range(self, rng):
        space = Discrete(5, start=-2, rng=rng)
        samples = [space.sample() for _ in range(1000)]
        assert all(-2 <= s <= 2 for s in samples)
        assert set(samples) == {-2, -1, 0, 1, 2}

    def test_contains_boundaries(self):
        space = Discrete(3, start=4)
        assert space.contains(4)
        assert 6 in space
        assert not space.contains(3)
        assert not space.contains(7)

    def test_contains_rejects_non_integers(self):
        space = Discrete(2)
        assert not space.contains(1.0)
        assert not space.contains("1")
        assert not space.contains(True)
        assert space.contains(np.int64(1))

    @pytest.mark.parametrize("n", [0, -3, 2.0])
    def test_invalid_n(self, n):
        with pytest.raises(InvalidArgument):
            Discrete(n)

    def test_sample_is_reproducible(self):
        a = Discrete(10, rng=RNG(3))
        b = Discrete(10, rng=RNG(3))
        assert [a.sample() for _ in range(20)] == [b.sample() for _ in range(20)]

    def test_seed_resets_sampling(self):
        space = Discrete(100)
        space.seed(5)
        first = [space.sample() for _ in range(10)]
        space.seed(5)
        assert [space.sample() for _ in range(10)] == first

    def test_mask_not_supported(self):
        space = Discrete(2)
        with pytest.raises(UnimplementedFeature):
            space.sample(mask=[1, 0])
        with pytest.raises(NotImplementedError):
            space.sample(probability=[0.5, 0.5])

    def test_jsonable_round_trip(self, rng):
        space = Discrete(7, start=1, rng=rng)
        samples = [space.sample() for _ in range(10)]
        encoded = json.loads(json.dumps(space.to_jsonable(samples)))
        assert space.from_jsonable(encoded) == samples

    def test_from_jsonable_accepts_integral_floats(self):
        assert Discrete(3).from_jsonable([0.0, 2.0]) == [0, 2]

    def test_from_jsonable_rejects_garbage(self):
        with pytest.raises(InvalidJSONable):
            Discrete(3).from_jsonable(["x"])
        with pytest.raises(TypeError):
            Discrete(3).from_jsonable([1.5])

    def test_introspection(self):
        space = Discrete(4)
        assert space.shape is None
        assert space.dtype == "int64"
        assert space.is_flattenable
        assert repr(space) == "Discrete(4)"
        assert repr(Discrete(3, start=-1)) == "Discrete(3, start=-1)"
        assert Discrete(4) == Discrete(4)
        assert Discrete(4) != Discrete(4, start=1)


class TestBoxConstruction:
    """Bound and shape validation."""

    def test_scalar_bounds_with_shape(self):
        space = Box(-1.0, 2.0, shape=(3, 4))
        assert space.shape == (3, 4)
        assert np.all(space.low == -1.0)
        assert np.all(space.high == 2.0)

    def test_shape_inferred_from_array(self):
        space = Box([-1.0, -2.0], [2.0, 4.0])
        assert space.shape == (2,)

    def test_scalar_bounds_without_shape(self):
        with pytest.raises(InvalidArgument):
            Box(0.0, 1.0)

    def test_mismatched_lengths(self):
        with pytest.raises(InvalidArgument):
            Box([0.0, 0.0], [1.0, 1.0, 1.0])

    def test_inverted_bounds(self):
        with pytest.raises(InvalidBound, match=r"low\[\(1,\)\]"):
            Box([0.0, 2.0], [1.0, 1.0])

    @pytest.mark.parametrize(
        "low,high",
        [
            ([np.nan], [1.0]),
            ([0.0], [np.nan]),
            ([np.inf], [np.inf]),
            ([-np.inf], [-np.inf]),
        ],
    )
    def test_invalid_infinities_and_nan(self, low, high):
        with pytest.raises(InvalidBound):
            Box(low, high)

    def test_bounds_are_copies(self):
        space = Box([0.0], [1.0])
        space.low[0] = 5.0
        assert space.low[0] == 0.0

    def test_is_bounded(self):
        space = Box([0.0, -np.inf], [1.0, 3.0])
        assert space.is_bounded("above")
        assert not space.is_bounded("below")
        assert not space.is_bounded()
        assert Box(0.0, 1.0, shape=(2,)).is_bounded("both")

    def test_is_bounded_rejects_unknown_manner(self):
        with pytest.raises(InvalidArgument):
            Box(0.0, 1.0, shape=(1,)).is_bounded("sideways")


class TestBoxSampling:
    """Sampling respects each coordinate's interval form."""

    def test_bounded_samples_within_bounds(self, rng):
        space = Box([-1.0, 0.0, 10.0], [1.0, 0.5, 20.0], rng=rng)
        for _ in range(10000):
            sample = space.sample()
            assert sample.shape == (3,)
            assert sample.dtype == np.float64
            assert space.contains(sample)

    def test_one_sided_bounds_never_violated(self, rng):
        space = Box([2.0, -np.inf], [np.inf, -3.0], rng=rng)
        samples = np.array([space.sample() for _ in range(2000)])
        assert np.all(samples[:, 0] >= 2.0)
        assert np.all(samples[:, 1] <= -3.0)

    def test_unbounded_is_roughly_standard_normal(self, rng):
        space = Box(-np.inf, np.inf, shape=(5000,), rng=rng)
        sample = space.sample()
        assert abs(sample.mean()) < 0.1
        assert abs(sample.std() - 1.0) < 0.1

    def test_degenerate_interval(self, rng):
        space = Box([1.5], [1.5], rng=rng)
        assert space.sample()[0] == 1.5

    def test_mask_not_supported(self):
        with pytest.raises(UnimplementedFeature):
            Box(0.0, 1.0, shape=(1,)).sample(mask=[True])


class TestBoxMembership:
    """contains() and JSON conversion."""

    def test_contains_is_inclusive(self):
        space = Box([0.0, 0.0], [1.0, 1.0])
        assert space.contains(np.array([0.0, 1.0]))
        assert space.contains([1, 0])
        assert not space.contains([1.0001, 0.5])
        assert not space.contains([-0.0001, 0.5])

    def test_contains_rejects_wrong_shape_or_type(self):
        space = Box([0.0, 0.0], [1.0, 1.0])
        assert not space.contains([0.5])
        assert not space.contains([[0.5, 0.5]])
        assert not space.contains(["a", "b"])
        assert not space.contains(None)

    def test_jsonable_round_trip(self, rng):
        space = Box(-1.0, 1.0, shape=(2, 2), rng=rng)
        samples = [space.sample() for _ in range(5)]
        encoded = json.loads(json.dumps(space.to_jsonable(samples)))
        decoded = space.from_jsonable(encoded)
        assert len(decoded) == 5
        for original, restored in zip(samples, decoded):
            np.testing.assert_array_equal(original, restored)

    def test_from_jsonable_rejects_wrong_shape(self):
        space = Box(0.0, 1.0, shape=(2,))
        with pytest.raises(InvalidJSONable):
            space.from_jsonable([[0.1, 0.2, 0.3]])

    def test_introspection(self):
        space = Box(0.0, 1.0, shape=(2,))
        assert space.dtype == "float64"
        assert "Box(" in repr(space)
        assert space == Box([0.0, 0.0], [1.0, 1.0])
        assert space != Box(0.0, 2.0, shape=(2,))
