"""
Tests for Numba LUT kernels.

Kernels are checked against brute-force NumPy references on small slabs.
"""

import numpy as np
import pytest

from flavorlut.colorspace import SRGB_TO_LINEAR, delta_e_squared, srgb_to_lab
from flavorlut.constants import EXACT_MATCH_WEIGHT
from flavorlut.lut.kernels import apply_lut_numba, build_lut_slab_numba
from flavorlut.palette import Flavor, get_palette


def _slab_colors(r_start: int, n_r: int) -> np.ndarray:
    """All RGB triples of a red slab in (r, g, b) order, as [n_r, 256, 256, 3]."""
    r, g, b = np.meshgrid(
        np.arange(r_start, r_start + n_r), np.arange(256), np.arange(256), indexing="ij"
    )
    return np.stack([r, g, b], axis=-1).astype(np.uint8)


def _reference_nearest(colors: np.ndarray, palette) -> np.ndarray:
    lab = srgb_to_lab(colors)
    d = delta_e_squared(lab[..., np.newaxis, :], palette.lab)
    return palette.rgb[np.argmin(d, axis=-1)]


def _reference_weighted(colors: np.ndarray, palette, power: float) -> np.ndarray:
    lab = srgb_to_lab(colors)
    d = delta_e_squared(lab[..., np.newaxis, :], palette.lab)
    with np.errstate(divide="ignore"):
        w = np.where(d > 0, 1.0 / np.power(d, power), EXACT_MATCH_WEIGHT)
    blended = (w[..., np.newaxis] * palette.rgb).sum(axis=-2) / w.sum(axis=-1)[..., np.newaxis]
    return np.clip(np.floor(blended + 0.5), 0, 255).astype(np.uint8)


class TestBuildSlabKernel:
    """Test the slab build kernel."""

    @pytest.mark.parametrize("r_start", [0, 128, 254])
    def test_nearest_matches_reference(self, r_start):
        """Nearest family equals NumPy argmin (first index on ties)."""
        palette = get_palette(Flavor.MOCHA)
        out = np.empty((2, 256, 256, 3), dtype=np.uint8)
        build_lut_slab_numba(
            r_start, palette.rgb, palette.lab, SRGB_TO_LINEAR, 1.0, False, out
        )

        # Subsample the reference to keep memory small
        colors = _slab_colors(r_start, 2)[:, ::8, ::4]
        expected = _reference_nearest(colors, palette)
        np.testing.assert_array_equal(out[:, ::8, ::4], expected)

    @pytest.mark.parametrize("power", [1.5, 2.0, 2.5])
    def test_weighted_matches_reference(self, power):
        """Weighted family equals the NumPy inverse-distance blend (+/-1 for rounding)."""
        palette = get_palette(Flavor.FRAPPE)
        out = np.empty((1, 256, 256, 3), dtype=np.uint8)
        build_lut_slab_numba(64, palette.rgb, palette.lab, SRGB_TO_LINEAR, power, True, out)

        colors = _slab_colors(64, 1)[:, ::8, ::8]
        expected = _reference_weighted(colors, palette, power)
        diff = np.abs(out[:, ::8, ::8].astype(np.int16) - expected.astype(np.int16))
        assert diff.max() <= 1

    def test_exact_palette_color(self):
        """A palette color maps to itself under the weighted blend (+/-1)."""
        palette = get_palette(Flavor.LATTE)
        r, g, b = palette["blue"]
        out = np.empty((1, 256, 256, 3), dtype=np.uint8)
        build_lut_slab_numba(r, palette.rgb, palette.lab, SRGB_TO_LINEAR, 2.0, True, out)

        np.testing.assert_allclose(out[0, g, b], (r, g, b), atol=1)

    def test_single_color_palette(self):
        """With one palette color every entry is that color."""
        palette = get_palette(Flavor.MOCHA)
        rgb = palette.rgb[:1]
        lab = palette.lab[:1]
        out = np.empty((1, 256, 256, 3), dtype=np.uint8)
        build_lut_slab_numba(7, rgb, lab, SRGB_TO_LINEAR, 2.0, True, out)

        assert np.all(out == rgb[0])

    def test_deterministic(self):
        """Repeated builds of the same slab are identical."""
        palette = get_palette(Flavor.MACCHIATO)
        first = np.empty((1, 256, 256, 3), dtype=np.uint8)
        second = np.empty_like(first)
        build_lut_slab_numba(200, palette.rgb, palette.lab, SRGB_TO_LINEAR, 1.5, True, first)
        build_lut_slab_numba(200, palette.rgb, palette.lab, SRGB_TO_LINEAR, 1.5, True, second)

        np.testing.assert_array_equal(first, second)


class TestApplyKernel:
    """Test the LUT gather kernel."""

    def _identity_lut(self) -> np.ndarray:
        levels = np.arange(256, dtype=np.uint8)
        lut = np.empty((256, 256, 256, 3), dtype=np.uint8)
        lut[..., 0] = levels[:, None, None]
        lut[..., 1] = levels[None, :, None]
        lut[..., 2] = levels[None, None, :]
        return lut

    def test_gather_matches_numpy(self):
        """Output equals fancy-indexing the cube."""
        rng = np.random.default_rng(0)
        lut = rng.integers(0, 256, size=(256, 256, 256, 3), dtype=np.uint8)
        pixels = rng.integers(0, 256, size=(1000, 3), dtype=np.uint8)

        out = np.empty_like(pixels)
        apply_lut_numba(pixels, lut, out)

        expected = lut[pixels[:, 0], pixels[:, 1], pixels[:, 2]]
        np.testing.assert_array_equal(out, expected)

    def test_alpha_carried_through(self):
        """The fourth channel is copied unchanged."""
        lut = self._identity_lut()
        pixels = np.array([[1, 2, 3, 0], [4, 5, 6, 128], [7, 8, 9, 255]], dtype=np.uint8)

        out = np.zeros_like(pixels)
        apply_lut_numba(pixels, lut, out)

        np.testing.assert_array_equal(out, pixels)

    def test_in_place(self):
        """Output may alias the input."""
        lut = np.zeros((256, 256, 256, 3), dtype=np.uint8)
        lut[..., 0] = 9
        pixels = np.full((10, 4), 200, dtype=np.uint8)

        apply_lut_numba(pixels, lut, pixels)

        assert np.all(pixels[:, 0] == 9)
        assert np.all(pixels[:, 1:3] == 0)
        assert np.all(pixels[:, 3] == 200)
