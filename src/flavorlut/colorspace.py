"""
sRGB to CIELAB conversion primitives.

All Lab values in flavorlut come from the same scalar kernel
(``linear_rgb_to_lab``) fed by the same 256-entry linearization table, so a
palette color and an identical input pixel always land on the exact same Lab
coordinates. The LUT builder relies on that for zero-distance matches.

Conversion: sRGB (companded) -> linear RGB -> XYZ (D65) -> CIELAB.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange

from flavorlut.constants import D65_WHITE, LAB_EPSILON, LAB_KAPPA, SRGB_LINEAR_THRESHOLD

_XN, _YN, _ZN = D65_WHITE


def build_linear_table() -> np.ndarray:
    """
    Build the sRGB -> linear RGB lookup for all 256 channel values.

    Returns:
        float64 array [256] with linearized intensities in [0, 1]
    """
    c = np.arange(256, dtype=np.float64) / 255.0
    return np.where(
        c <= SRGB_LINEAR_THRESHOLD,
        c / 12.92,
        np.power((c + 0.055) / 1.055, 2.4),
    )


SRGB_TO_LINEAR = build_linear_table()
SRGB_TO_LINEAR.flags.writeable = False


# ============================================================================
# Numba Kernels
# ============================================================================


@njit(cache=True, nogil=True)
def _lab_f(t: float) -> float:
    if t > LAB_EPSILON:
        return t ** (1.0 / 3.0)
    return (LAB_KAPPA * t + 16.0) / 116.0


@njit(cache=True, nogil=True)
def linear_rgb_to_lab(r: float, g: float, b: float) -> tuple[float, float, float]:
    """
    Convert one linear RGB triple to CIELAB (D65).

    Args:
        r, g, b: Linear RGB components in [0, 1]

    Returns:
        (L, a, b) tuple
    """
    x = (0.4124564 * r + 0.3575761 * g + 0.1804375 * b) / _XN
    y = (0.2126729 * r + 0.7151522 * g + 0.0721750 * b) / _YN
    z = (0.0193339 * r + 0.1191920 * g + 0.9503041 * b) / _ZN

    fx = _lab_f(x)
    fy = _lab_f(y)
    fz = _lab_f(z)

    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)


@njit(parallel=True, cache=True, nogil=True)
def srgb_to_lab_numba(rgb: np.ndarray, linear: np.ndarray, out: np.ndarray) -> None:
    """
    Convert 8-bit sRGB colors to CIELAB.

    Args:
        rgb: Input colors [N, 3] uint8
        linear: sRGB -> linear table [256] (``SRGB_TO_LINEAR``)
        out: Output buffer [N, 3] float64
    """
    N = rgb.shape[0]

    for i in prange(N):
        L, A, B = linear_rgb_to_lab(linear[rgb[i, 0]], linear[rgb[i, 1]], linear[rgb[i, 2]])
        out[i, 0] = L
        out[i, 1] = A
        out[i, 2] = B


# ============================================================================
# Public API
# ============================================================================


def srgb_to_lab(rgb) -> np.ndarray:
    """
    Convert 8-bit sRGB colors of any leading shape to CIELAB.

    Args:
        rgb: Array-like [..., 3] of integers in [0, 255]

    Returns:
        float64 array [..., 3] of (L, a, b)

    Example:
        >>> srgb_to_lab([255, 255, 255]).round(2)
        array([100.,   0.,   0.])
    """
    arr = np.asarray(rgb)
    if arr.shape[-1:] != (3,):
        raise ValueError(f"Expected colors with a trailing dimension of 3, got shape {arr.shape}")
    if arr.dtype != np.uint8:
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError("RGB components must be in range [0, 255]")
        arr = arr.astype(np.uint8)

    flat = np.ascontiguousarray(arr.reshape(-1, 3))
    out = np.empty(flat.shape, dtype=np.float64)
    srgb_to_lab_numba(flat, SRGB_TO_LINEAR, out)
    return out.reshape(arr.shape)


def delta_e_squared(lab1: np.ndarray, lab2: np.ndarray) -> np.ndarray:
    """Squared CIE76 distance between Lab colors (broadcasting over leading dims)."""
    diff = np.asarray(lab1, dtype=np.float64) - np.asarray(lab2, dtype=np.float64)
    return np.sum(diff * diff, axis=-1)


def parse_hex_color(value: str) -> tuple[int, int, int] | None:
    """
    Parse ``#rrggbb`` or ``#rgb`` (leading ``#`` optional).

    Returns:
        (r, g, b) tuple, or None if the string is not a valid hex color
    """
    hex_str = value.strip().lstrip("#")
    if len(hex_str) == 3:
        hex_str = "".join(ch * 2 for ch in hex_str)
    if len(hex_str) != 6:
        return None
    try:
        return int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16)
    except ValueError:
        return None


def to_hex(color: tuple[int, int, int]) -> str:
    """Format an RGB triple as ``#rrggbb``."""
    r, g, b = color
    return f"#{r:02x}{g:02x}{b:02x}"
