"""
Tests for LutCache memoization, eviction and concurrency.

Builds are stubbed with a counting builder that reuses a prebuilt table, so
these tests exercise cache behavior without paying for real builds.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from flavorlut.algorithms import Algorithm
from flavorlut.errors import JobCancelled
from flavorlut.jobs import CancelToken
from flavorlut.lut import Lut, LutBuilder, LutCache, make_key
from flavorlut.palette import Flavor


class CountingBuilder(LutBuilder):
    """Builder stub that records calls and reuses one table."""

    def __init__(self, table, delay: float = 0.0):
        super().__init__()
        self.table = table
        self.delay = delay
        self.calls = 0
        self._calls_lock = threading.Lock()

    def build(self, palette, algorithm=None, cancel=None):
        with self._calls_lock:
            self.calls += 1
        if cancel is not None:
            cancel.raise_if_cancelled()
        time.sleep(self.delay)
        return Lut(flavor=palette.name, algorithm=Algorithm.from_name(algorithm), table=self.table)


@pytest.fixture
def builder(mocha_nearest):
    return CountingBuilder(mocha_nearest.table)


class TestMakeKey:
    """Test cache key normalization."""

    def test_normalizes_names(self):
        """Names and aliases resolve to enum members."""
        assert make_key("Mocha", "nn") == (Flavor.MOCHA, Algorithm.NEAREST_NEIGHBOR)

    def test_default_algorithm(self):
        """A missing algorithm selects shepards-method."""
        assert make_key(Flavor.LATTE, None) == (Flavor.LATTE, Algorithm.SHEPARDS_METHOD)

    def test_unknown_flavor(self):
        """Unknown flavors are rejected."""
        with pytest.raises(ValueError):
            make_key("espresso", "nn")


class TestLutCache:
    """Test memoization and eviction."""

    def test_same_key_same_instance(self, builder):
        """Repeated lookups return the identical LUT and build once."""
        cache = LutCache(builder=builder)
        first = cache.get_or_build((Flavor.MOCHA, Algorithm.GAUSSIAN_RBF))
        second = cache.lut_for("mocha", "gaussian-rbf")

        assert first is second
        assert builder.calls == 1
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    def test_different_keys(self, builder):
        """Different keys get different entries."""
        cache = LutCache(builder=builder)
        a = cache.lut_for(Flavor.MOCHA, Algorithm.HALD)
        b = cache.lut_for(Flavor.MOCHA, Algorithm.SHEPARDS_METHOD)

        assert a is not b
        assert builder.calls == 2
        assert len(cache) == 2

    def test_get_without_build(self, builder):
        """get() never builds."""
        cache = LutCache(builder=builder)
        assert cache.get((Flavor.LATTE, Algorithm.MEAN)) is None
        assert builder.calls == 0

    def test_cancelled_build_not_cached(self, builder):
        """A cancelled build leaves no entry; the next request builds again."""
        cache = LutCache(builder=builder)
        token = CancelToken("tester")
        token.cancel()

        with pytest.raises(JobCancelled):
            cache.lut_for(Flavor.FRAPPE, Algorithm.STD, cancel=token)
        assert (Flavor.FRAPPE, Algorithm.STD) not in cache

        lut = cache.lut_for(Flavor.FRAPPE, Algorithm.STD)
        assert lut.key == (Flavor.FRAPPE, Algorithm.STD)
        assert builder.calls == 2

    def test_lru_eviction(self, builder):
        """The least recently used entry is evicted past max_entries."""
        cache = LutCache(builder=builder, max_entries=2)
        k1 = (Flavor.LATTE, Algorithm.MEAN)
        k2 = (Flavor.FRAPPE, Algorithm.MEAN)
        k3 = (Flavor.MOCHA, Algorithm.MEAN)

        cache.get_or_build(k1)
        cache.get_or_build(k2)
        cache.get_or_build(k1)  # touch k1
        cache.get_or_build(k3)

        assert cache.keys() == [k1, k3]
        assert cache.stats.evictions == 1

    def test_clear(self, builder):
        """clear() drops every entry."""
        cache = LutCache(builder=builder)
        cache.lut_for(Flavor.MOCHA, Algorithm.MEAN)
        cache.clear()
        assert len(cache) == 0

    def test_invalid_max_entries(self):
        """The cache must hold at least one LUT."""
        with pytest.raises(ValueError):
            LutCache(max_entries=0)


class TestLutCacheConcurrency:
    """Test concurrent access."""

    def test_concurrent_requests_share_one_build(self, mocha_nearest):
        """Simultaneous requests for one key build it once and share it."""
        builder = CountingBuilder(mocha_nearest.table, delay=0.1)
        cache = LutCache(builder=builder)
        key = (Flavor.MACCHIATO, Algorithm.GAUSSIAN_SAMPLING)

        with ThreadPoolExecutor(max_workers=8) as pool:
            luts = list(pool.map(lambda _: cache.get_or_build(key), range(8)))

        assert builder.calls == 1
        assert all(lut is luts[0] for lut in luts)

    def test_distinct_keys_build_in_parallel(self, mocha_nearest):
        """Builds of different keys do not serialize on each other."""
        builder = CountingBuilder(mocha_nearest.table, delay=0.3)
        cache = LutCache(builder=builder)
        keys = [(flavor, Algorithm.MEAN) for flavor in Flavor]

        start = time.perf_counter()
        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(cache.get_or_build, keys))
        elapsed = time.perf_counter() - start

        assert builder.calls == 4
        assert elapsed < 4 * 0.3
