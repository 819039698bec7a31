"""Dense RGB lookup tables: construction kernels, builder and cache."""

from flavorlut.lut.builder import CacheKey, Lut, LutBuilder
from flavorlut.lut.cache import CacheStats, LutCache, make_key

__all__ = [
    "CacheKey",
    "CacheStats",
    "Lut",
    "LutBuilder",
    "LutCache",
    "make_key",
]
