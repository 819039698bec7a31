"""
PixelMapper: apply a LUT to RGB(A) pixel buffers.

Every pixel is an independent gather from the dense cube, so the work is
split across threads with no shared mutable state besides the read-only
table. Alpha (and any channel past the third) is copied through unchanged.
"""

from __future__ import annotations

import logging

import numpy as np

from flavorlut.errors import ResourceExhausted
from flavorlut.lut.builder import Lut
from flavorlut.lut.kernels import apply_lut_numba
from flavorlut.validators import validate_type

logger = logging.getLogger(__name__)


class PixelMapper:
    """
    Maps pixel buffers through one LUT.

    Example:
        >>> mapper = PixelMapper(cache.lut_for("mocha", "nearest-neighbor"))
        >>> out = mapper.apply(pixels)            # new buffer
        >>> mapper.apply(pixels, inplace=True)    # overwrite pixels
    """

    __slots__ = ("lut",)

    def __init__(self, lut: Lut):
        """
        Initialize the mapper.

        Args:
            lut: Built LUT to apply
        """
        self.lut = lut

    @validate_type(np.ndarray, "pixels")
    def apply(self, pixels: np.ndarray, inplace: bool = False) -> np.ndarray:
        """
        Map every pixel through the LUT.

        Args:
            pixels: uint8 array [H, W, C] or [N, C] with C = 3 (RGB) or 4 (RGBA)
            inplace: If True, overwrite ``pixels``; if False, return a new buffer

        Returns:
            Mapped buffer with the same shape and dtype as ``pixels``

        Raises:
            TypeError: If pixels is not a uint8 array
            ValueError: If the channel count is not 3 or 4
            ResourceExhausted: If the output buffer cannot be allocated
        """
        if pixels.dtype != np.uint8:
            raise TypeError(f"pixels must be uint8, got {pixels.dtype}")
        if pixels.ndim not in (2, 3) or pixels.shape[-1] not in (3, 4):
            raise ValueError(
                f"pixels must have shape [H, W, 3|4] or [N, 3|4], got {pixels.shape}"
            )

        if inplace and not pixels.flags.writeable:
            raise ValueError("pixels is read-only; use inplace=False")

        channels = pixels.shape[-1]

        if inplace and pixels.flags.c_contiguous:
            flat = pixels.reshape(-1, channels)
            apply_lut_numba(flat, self.lut.table, flat)
            self._log_mapped(flat.shape[0])
            return pixels

        flat = np.ascontiguousarray(pixels).reshape(-1, channels)
        try:
            out = np.empty_like(flat)
        except MemoryError as e:
            raise ResourceExhausted(f"Cannot allocate output buffer for {pixels.shape}") from e

        apply_lut_numba(flat, self.lut.table, out)
        self._log_mapped(flat.shape[0])

        result = out.reshape(pixels.shape)
        if inplace:
            pixels[...] = result
            return pixels
        return result

    def _log_mapped(self, count: int) -> None:
        logger.debug(
            "[PixelMapper] Mapped %d pixels via %s/%s",
            count,
            self.lut.flavor.value,
            self.lut.algorithm.label,
        )

    def map_color(self, color: tuple[int, int, int]) -> tuple[int, int, int]:
        """Map a single RGB triple."""
        r, g, b = color
        return self.lut.lookup(r, g, b)

    def __call__(self, pixels: np.ndarray, inplace: bool = False) -> np.ndarray:
        """Apply the LUT (callable interface)."""
        return self.apply(pixels, inplace=inplace)
