"""
Numba-optimized kernels for LUT construction and application.

The build kernel fills one red-channel slab of the RGB cube per call so the
caller can check for cancellation between slabs; within a slab the (r, g)
rows are processed in parallel. The apply kernel is a direct gather from the
cube, one pixel per iteration.
"""

import numpy as np
from numba import njit, prange

from flavorlut.colorspace import linear_rgb_to_lab
from flavorlut.constants import EXACT_MATCH_WEIGHT

# ============================================================================
# LUT Build Kernels
# ============================================================================


@njit(cache=True, nogil=True)
def _round_channel(value: float) -> np.uint8:
    if value <= 0.0:
        return np.uint8(0)
    if value >= 255.0:
        return np.uint8(255)
    return np.uint8(int(value + 0.5))


@njit(parallel=True, cache=True, nogil=True)
def build_lut_slab_numba(
    r_start: int,
    palette_rgb: np.ndarray,
    palette_lab: np.ndarray,
    linear: np.ndarray,
    power: float,
    weighted: bool,
    out: np.ndarray,
) -> None:
    """
    Fill a slab of the dense RGB -> palette cube.

    Weighted family: inverse-distance blend of every palette color with
    w = 1 / d^power (d = squared Lab distance), or EXACT_MATCH_WEIGHT at d = 0.
    Nearest family: the palette color with minimum d, first one wins on ties.

    Args:
        r_start: Red level of the first slab plane
        palette_rgb: Palette colors [K, 3] uint8
        palette_lab: Palette colors in CIELAB [K, 3] float64
        linear: sRGB -> linear table [256]
        power: Distance-weighting exponent
        weighted: True for blend, False for nearest color
        out: Output slab [n_r, 256, 256, 3] uint8 (plane i holds red r_start + i)
    """
    n_r = out.shape[0]
    K = palette_rgb.shape[0]
    n_rows = n_r * 256

    for row in prange(n_rows):
        ri = row // 256
        g = row % 256
        lr = linear[r_start + ri]
        lg = linear[g]

        for b in range(256):
            L, A, B = linear_rgb_to_lab(lr, lg, linear[b])

            if weighted:
                total_weight = 0.0
                acc_r = 0.0
                acc_g = 0.0
                acc_b = 0.0

                for i in range(K):
                    dl = L - palette_lab[i, 0]
                    da = A - palette_lab[i, 1]
                    db = B - palette_lab[i, 2]
                    d = dl * dl + da * da + db * db

                    if d > 0.0:
                        w = 1.0 / d**power
                    else:
                        w = EXACT_MATCH_WEIGHT

                    acc_r += palette_rgb[i, 0] * w
                    acc_g += palette_rgb[i, 1] * w
                    acc_b += palette_rgb[i, 2] * w
                    total_weight += w

                if total_weight > 0.0:
                    out[ri, g, b, 0] = _round_channel(acc_r / total_weight)
                    out[ri, g, b, 1] = _round_channel(acc_g / total_weight)
                    out[ri, g, b, 2] = _round_channel(acc_b / total_weight)
                else:
                    out[ri, g, b, 0] = palette_rgb[0, 0]
                    out[ri, g, b, 1] = palette_rgb[0, 1]
                    out[ri, g, b, 2] = palette_rgb[0, 2]
            else:
                best = 0
                best_d = np.inf

                for i in range(K):
                    dl = L - palette_lab[i, 0]
                    da = A - palette_lab[i, 1]
                    db = B - palette_lab[i, 2]
                    d = dl * dl + da * da + db * db

                    # Strict < keeps the earliest palette entry on ties
                    if d < best_d:
                        best_d = d
                        best = i

                out[ri, g, b, 0] = palette_rgb[best, 0]
                out[ri, g, b, 1] = palette_rgb[best, 1]
                out[ri, g, b, 2] = palette_rgb[best, 2]


# ============================================================================
# LUT Apply Kernels
# ============================================================================


@njit(parallel=True, fastmath=True, cache=True, nogil=True)
def apply_lut_numba(pixels: np.ndarray, lut: np.ndarray, out: np.ndarray) -> None:
    """
    Map every pixel through the dense cube, carrying extra channels through.

    ``out`` may alias ``pixels``: each iteration reads its pixel before
    writing it.

    Args:
        pixels: Input pixels [N, C] uint8, C >= 3 (RGB or RGBA)
        lut: Dense cube [256, 256, 256, 3] uint8
        out: Output pixels [N, C] uint8
    """
    N = pixels.shape[0]
    C = pixels.shape[1]

    for i in prange(N):
        r = pixels[i, 0]
        g = pixels[i, 1]
        b = pixels[i, 2]

        for c in range(3, C):
            out[i, c] = pixels[i, c]

        out[i, 0] = lut[r, g, b, 0]
        out[i, 1] = lut[r, g, b, 1]
        out[i, 2] = lut[r, g, b, 2]
