"""
Engine configuration for recolor jobs.

Provides the tunables shared by the LUT cache, the job gate and the image
pipelines.
"""

from dataclasses import dataclass

from flavorlut.algorithms import Algorithm
from flavorlut.constants import (
    DEFAULT_GIF_DISPOSAL,
    DEFAULT_LUT_SLAB_SIZE,
    DEFAULT_MAX_CACHED_LUTS,
    DEFAULT_MAX_CONCURRENT_JOBS,
    MAX_IMAGE_DIMENSION,
    MAX_INPUT_BYTES,
    MAX_LUT_SLAB_SIZE,
    MIN_LUT_SLAB_SIZE,
)


@dataclass
class EngineConfig:
    """
    Configuration for the recolor engine.

    Attributes:
        max_concurrent_jobs: Heavy transforms allowed in flight at once
        lut_slab_size: Red levels per LUT build slab (cancellation granularity)
        max_cached_luts: LUT cache bound (each entry holds 48 MiB)
        default_algorithm: Algorithm used when a request names none
        max_input_bytes: Largest accepted encoded payload
        max_dimension: Largest accepted width or height in pixels
        gif_disposal: GIF disposal method written for every output frame (0-3)
    """

    max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS
    lut_slab_size: int = DEFAULT_LUT_SLAB_SIZE
    max_cached_luts: int = DEFAULT_MAX_CACHED_LUTS
    default_algorithm: Algorithm = Algorithm.SHEPARDS_METHOD
    max_input_bytes: int = MAX_INPUT_BYTES
    max_dimension: int = MAX_IMAGE_DIMENSION
    gif_disposal: int = DEFAULT_GIF_DISPOSAL

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")

        if not MIN_LUT_SLAB_SIZE <= self.lut_slab_size <= MAX_LUT_SLAB_SIZE:
            raise ValueError(
                f"lut_slab_size must be between {MIN_LUT_SLAB_SIZE} and {MAX_LUT_SLAB_SIZE}"
            )

        if self.max_cached_luts < 1:
            raise ValueError("max_cached_luts must be at least 1")

        if isinstance(self.default_algorithm, str):
            self.default_algorithm = Algorithm.from_name(self.default_algorithm)

        if self.max_input_bytes <= 0:
            raise ValueError("max_input_bytes must be positive")

        if self.max_dimension <= 0:
            raise ValueError("max_dimension must be positive")

        if self.gif_disposal not in (0, 1, 2, 3):
            raise ValueError("gif_disposal must be one of 0, 1, 2, 3")
