"""Tests for the seeded, lock-protected RNG."""

import threading

import numpy as np
import pytest

from gymkit.src import seeding
from gymkit.src.error import InvalidArgument, InvalidSeed
from gymkit.src.seeding import MAX_INT64, RNG, get_default_rng, new_rng


class TestSeeding:
    """Seed validation and reproducibility."""

    def test_same_seed_same_sequence(self):
        a, b = RNG(42), RNG(42)
        assert [a.integer() for _ in range(20)] == [b.integer() for _ in range(20)]
        assert a.float64() == b.float64()
        assert a.perm(10) == b.perm(10)

    def test_different_seeds_differ(self):
        a, b = RNG(1), RNG(2)
        assert [a.integer() for _ in range(5)] != [b.integer() for _ in range(5)]

    def test_zero_seed_uses_clock(self):
        rng, seed = new_rng(0)
        assert seed > 0
        assert rng.get_seed() == seed

    def test_new_rng_reports_seed(self):
        rng, seed = new_rng(99)
        assert seed == 99
        assert repr(rng) == "RNG(seed=99)"

    @pytest.mark.parametrize("bad", [-1, 1.5, "7", None, True])
    def test_invalid_seed_rejected(self, bad):
        with pytest.raises(InvalidSeed):
            RNG(bad)

    def test_invalid_seed_is_value_error(self):
        with pytest.raises(ValueError):
            new_rng(-5)

    def test_reseed_replays_sequence(self, rng):
        first = [rng.int_n(100) for _ in range(10)]
        assert rng.seed(1234) == 1234
        assert [rng.int_n(100) for _ in range(10)] == first

    def test_reseed_zero_returns_effective_seed(self, rng):
        effective = rng.seed(0)
        assert effective > 0
        assert rng.get_seed() == effective

    def test_numpy_integer_seed_accepted(self):
        assert RNG(np.int64(5)).get_seed() == 5

    def test_state_snapshot_restores_stream(self, rng):
        rng.int_n(10)
        snapshot = rng.get_state()
        expected = [rng.float64() for _ in range(5)]
        rng.seed(777)
        rng.set_state(snapshot)
        assert rng.get_seed() == 1234
        assert [rng.float64() for _ in range(5)] == expected


class TestDraws:
    """Ranges and argument validation of each draw."""

    def test_int_n_range(self, rng):
        values = {rng.int_n(3) for _ in range(300)}
        assert values == {0, 1, 2}

    def test_int64_n_large_bound(self, rng):
        for _ in range(100):
            assert 0 <= rng.int64_n(MAX_INT64) < MAX_INT64

    def test_integer_non_negative(self, rng):
        for _ in range(100):
            assert 0 <= rng.integer() <= MAX_INT64

    @pytest.mark.parametrize("n", [0, -1])
    def test_int_n_rejects_non_positive(self, rng, n):
        with pytest.raises(InvalidArgument):
            rng.int_n(n)
        with pytest.raises(InvalidArgument):
            rng.int64_n(n)

    def test_int64_n_rejects_overflow(self, rng):
        with pytest.raises(InvalidArgument):
            rng.int64_n(MAX_INT64 + 1)

    def test_float_ranges(self, rng):
        for _ in range(200):
            assert 0.0 <= rng.float64() < 1.0
            assert 0.0 <= rng.float32() < 1.0
            assert rng.exp_float64() >= 0.0

    def test_scalar_and_array_forms(self, rng):
        assert isinstance(rng.float64(), float)
        assert isinstance(rng.norm_float64(), float)
        assert isinstance(rng.float32(), np.float32)
        arr = rng.float64(size=5)
        assert arr.shape == (5,)

    def test_normal_moments(self, rng):
        draws = rng.norm_float64(size=20000)
        assert abs(draws.mean()) < 0.05
        assert abs(draws.std() - 1.0) < 0.05

    def test_perm_is_permutation(self, rng):
        assert sorted(rng.perm(50)) == list(range(50))
        assert rng.perm(0) == []

    def test_perm_rejects_negative(self, rng):
        with pytest.raises(InvalidArgument):
            rng.perm(-1)

    def test_shuffle_permutes_through_swap(self, rng):
        items = list(range(20))

        def swap(i, j):
            items[i], items[j] = items[j], items[i]

        rng.shuffle(len(items), swap)
        assert sorted(items) == list(range(20))

    def test_shuffle_reproducible(self):
        results = []
        for _ in range(2):
            items = list("abcdefgh")

            def swap(i, j):
                items[i], items[j] = items[j], items[i]

            RNG(7).shuffle(len(items), swap)
            results.append(items)
        assert results[0] == results[1]


class TestDefaultRng:
    """Process-wide default RNG."""

    def test_default_is_singleton(self):
        assert get_default_rng() is get_default_rng()

    def test_default_created_once_across_threads(self, monkeypatch):
        monkeypatch.setattr(seeding, "_default_rng", None)
        seen = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            seen.append(get_default_rng())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len({id(r) for r in seen}) == 1


class TestThreadSafety:
    """Concurrent draws from one shared RNG."""

    def test_concurrent_draws_match_serial_multiset(self):
        serial = RNG(11)
        expected = sorted(serial.int_n(1000) for _ in range(800))

        shared = RNG(11)
        results = []
        lock = threading.Lock()

        def worker():
            local = [shared.int_n(1000) for _ in range(100)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sorted(results) == expected
