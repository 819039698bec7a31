"""
LutCache: memoized LUTs keyed by (flavor, algorithm).

The cache is an ordinary object owned by whoever constructs it (typically one
per process, handed to every caller). A short-lived lock guards the entry map;
each key also has its own build lock, held for the whole build, so concurrent
requests for the same key wait for and then share a single build while
different keys build in parallel.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass

from flavorlut.algorithms import Algorithm
from flavorlut.constants import DEFAULT_MAX_CACHED_LUTS
from flavorlut.lut.builder import CacheKey, Lut, LutBuilder
from flavorlut.palette import Flavor, get_palette

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Counters for cache behavior."""

    hits: int = 0
    misses: int = 0
    builds: int = 0
    evictions: int = 0


def make_key(flavor: Flavor | str, algorithm: Algorithm | str | None) -> CacheKey:
    """
    Normalize a (flavor, algorithm) request into a cache key.

    Raises:
        ValueError: If the flavor name is unknown
    """
    return (get_palette(flavor).name, Algorithm.from_name(algorithm))


class LutCache:
    """
    Thread-safe, bounded cache of built LUTs.

    Example:
        >>> cache = LutCache()
        >>> lut = cache.get_or_build((Flavor.LATTE, Algorithm.SHEPARDS_METHOD))
        >>> cache.get_or_build((Flavor.LATTE, Algorithm.SHEPARDS_METHOD)) is lut
        True
    """

    def __init__(
        self,
        builder: LutBuilder | None = None,
        max_entries: int = DEFAULT_MAX_CACHED_LUTS,
    ):
        """
        Initialize an empty cache.

        Args:
            builder: LutBuilder used on misses (default: LutBuilder())
            max_entries: Maximum LUTs kept; least recently used are evicted
        """
        if max_entries < 1:
            raise ValueError(f"max_entries={max_entries} must be at least 1")

        self.builder = builder if builder is not None else LutBuilder()
        self.max_entries = max_entries
        self.stats = CacheStats()

        self._luts: OrderedDict[CacheKey, Lut] = OrderedDict()
        self._build_locks: dict[CacheKey, threading.Lock] = {}
        self._lock = threading.Lock()

        logger.info("[LutCache] Initialized with max_entries=%d", max_entries)

    def get(self, key: CacheKey) -> Lut | None:
        """Return the cached LUT for a key without building it."""
        with self._lock:
            lut = self._luts.get(key)
            if lut is not None:
                self._luts.move_to_end(key)
            return lut

    def get_or_build(self, key: CacheKey, cancel=None) -> Lut:
        """
        Return the LUT for a key, building it at most once.

        Args:
            key: (Flavor, Algorithm) pair (names are accepted and normalized)
            cancel: Optional CancelToken forwarded to the build

        Returns:
            Shared read-only Lut

        Raises:
            JobCancelled: If the build was cancelled (nothing is cached)
            ResourceExhausted: If the LUT cannot be allocated
        """
        key = make_key(*key)

        with self._lock:
            lut = self._luts.get(key)
            if lut is not None:
                self._luts.move_to_end(key)
                self.stats.hits += 1
                return lut
            self.stats.misses += 1
            build_lock = self._build_locks.setdefault(key, threading.Lock())

        with build_lock:
            # Another caller may have finished the same build while we waited
            with self._lock:
                lut = self._luts.get(key)
                if lut is not None:
                    self._luts.move_to_end(key)
                    return lut

            flavor, algorithm = key
            lut = self.builder.build(get_palette(flavor), algorithm, cancel=cancel)

            with self._lock:
                self._luts[key] = lut
                self.stats.builds += 1
                self._evict_locked()

        return lut

    def lut_for(
        self, flavor: Flavor | str, algorithm: Algorithm | str | None = None, cancel=None
    ) -> Lut:
        """Shorthand for ``get_or_build((flavor, algorithm))``."""
        return self.get_or_build((flavor, algorithm), cancel=cancel)

    def _evict_locked(self) -> None:
        while len(self._luts) > self.max_entries:
            evicted_key, _ = self._luts.popitem(last=False)
            self.stats.evictions += 1
            logger.info(
                "[LutCache] Evicted %s/%s", evicted_key[0].value, evicted_key[1].label
            )

    def keys(self) -> list[CacheKey]:
        """Cached keys, least recently used first."""
        with self._lock:
            return list(self._luts.keys())

    def clear(self) -> None:
        """Drop every cached LUT."""
        with self._lock:
            self._luts.clear()
        logger.debug("[LutCache] Cleared")

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._luts

    def __len__(self) -> int:
        with self._lock:
            return len(self._luts)
