"""
LutBuilder: dense RGB -> palette lookup table construction.

A LUT covers all 16,777,216 8-bit RGB triples. Building one is pure
computation over a closed domain: it cannot fail except by running out of
memory (48 MiB per table). The cube is filled one red-channel slab at a time
so long builds can be cancelled between slabs.

Example:
    >>> from flavorlut import Algorithm, Flavor, LutBuilder, get_palette
    >>> lut_palette = get_palette(Flavor.MOCHA)
    >>> lut = LutBuilder().build(lut_palette, Algorithm.NEAREST_NEIGHBOR)
    >>> lut.lookup(255, 0, 0) in lut_palette
    True
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TypeAlias

import numpy as np

from flavorlut.algorithms import Algorithm
from flavorlut.colorspace import SRGB_TO_LINEAR
from flavorlut.constants import (
    DEFAULT_LUT_SLAB_SIZE,
    LUT_LEVELS,
    LUT_SHAPE,
    MAX_LUT_SLAB_SIZE,
    MIN_LUT_SLAB_SIZE,
)
from flavorlut.errors import ResourceExhausted
from flavorlut.lut.kernels import build_lut_slab_numba
from flavorlut.palette import Flavor, Palette, get_palette
from flavorlut.validators import validate_range

logger = logging.getLogger(__name__)

CacheKey: TypeAlias = tuple[Flavor, Algorithm]


@dataclass(frozen=True, eq=False)
class Lut:
    """
    Read-only dense lookup table for one (flavor, algorithm) pair.

    The table is a C-contiguous uint8 array of shape [256, 256, 256, 3], so the
    flat byte offset of (r, g, b) is ``(r * 65536 + g * 256 + b) * 3``.

    Attributes:
        flavor: Flavor the table maps onto
        algorithm: Matching algorithm used for the build
        table: Read-only uint8 array [256, 256, 256, 3]
    """

    flavor: Flavor
    algorithm: Algorithm
    table: np.ndarray = field(repr=False)

    def __post_init__(self):
        """Validate shape and freeze the table."""
        if self.table.shape != LUT_SHAPE or self.table.dtype != np.uint8:
            raise ValueError(
                f"LUT table must be uint8 with shape {LUT_SHAPE}, "
                f"got {self.table.dtype} {self.table.shape}"
            )
        self.table.flags.writeable = False

    @property
    def key(self) -> CacheKey:
        """Cache key for this table."""
        return (self.flavor, self.algorithm)

    @property
    def nbytes(self) -> int:
        """Size of the table in bytes."""
        return self.table.nbytes

    def lookup(self, r: int, g: int, b: int) -> tuple[int, int, int]:
        """Return the mapped color for one RGB triple."""
        mapped = self.table[r, g, b]
        return int(mapped[0]), int(mapped[1]), int(mapped[2])

    def flat(self) -> np.ndarray:
        """Read-only flat byte view of the table."""
        return self.table.reshape(-1)


class LutBuilder:
    """
    Builds dense LUTs for (palette, algorithm) pairs.

    Each slab of ``slab_size`` red levels is one parallel kernel call. When a
    cancel token is given, it is checked before every slab.
    """

    __slots__ = ("slab_size",)

    @validate_range(MIN_LUT_SLAB_SIZE, MAX_LUT_SLAB_SIZE, "slab_size")
    def __init__(self, slab_size: int = DEFAULT_LUT_SLAB_SIZE):
        """
        Initialize the builder.

        Args:
            slab_size: Red levels per kernel call (1-256)
        """
        self.slab_size = int(slab_size)

    def build(
        self,
        palette: Palette | Flavor | str,
        algorithm: Algorithm | str | None = None,
        cancel=None,
    ) -> Lut:
        """
        Build the LUT for a palette under a matching algorithm.

        Args:
            palette: Palette instance, Flavor, or flavor name
            algorithm: Algorithm or name (unknown names use shepards-method)
            cancel: Optional CancelToken checked before every slab

        Returns:
            Read-only Lut

        Raises:
            JobCancelled: If the token was cancelled during the build
            ResourceExhausted: If the 48 MiB table cannot be allocated
        """
        if not isinstance(palette, Palette):
            palette = get_palette(palette)
        algorithm = Algorithm.from_name(algorithm)

        try:
            table = np.empty(LUT_SHAPE, dtype=np.uint8)
        except MemoryError as e:
            raise ResourceExhausted(
                f"Cannot allocate LUT for {palette.name.value}/{algorithm.label}"
            ) from e

        logger.info(
            "[LutBuilder] Building %s/%s (power=%.1f, weighted=%s, %d colors)",
            palette.name.value,
            algorithm.label,
            algorithm.power,
            algorithm.weighted,
            len(palette),
        )
        start = time.perf_counter()

        for r_start in range(0, LUT_LEVELS, self.slab_size):
            if cancel is not None:
                cancel.raise_if_cancelled()

            r_stop = min(r_start + self.slab_size, LUT_LEVELS)
            build_lut_slab_numba(
                r_start,
                palette.rgb,
                palette.lab,
                SRGB_TO_LINEAR,
                float(algorithm.power),
                bool(algorithm.weighted),
                table[r_start:r_stop],
            )
            logger.debug("[LutBuilder] Filled red levels %d-%d", r_start, r_stop - 1)

        logger.info(
            "[LutBuilder] Built %s/%s in %.2fs",
            palette.name.value,
            algorithm.label,
            time.perf_counter() - start,
        )
        return Lut(flavor=palette.name, algorithm=algorithm, table=table)
