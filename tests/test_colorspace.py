"""
Tests for sRGB -> CIELAB conversion and hex color helpers.
"""

import numpy as np
import pytest

from flavorlut.colorspace import (
    SRGB_TO_LINEAR,
    delta_e_squared,
    parse_hex_color,
    srgb_to_lab,
    to_hex,
)


class TestLinearTable:
    """Test the sRGB linearization table."""

    def test_endpoints(self):
        """0 and 255 map to 0 and 1."""
        assert SRGB_TO_LINEAR[0] == 0.0
        assert SRGB_TO_LINEAR[255] == pytest.approx(1.0)

    def test_monotonic(self):
        """Linearization is strictly increasing."""
        assert np.all(np.diff(SRGB_TO_LINEAR) > 0)

    def test_read_only(self):
        """The shared table cannot be modified."""
        with pytest.raises(ValueError):
            SRGB_TO_LINEAR[0] = 1.0


class TestSrgbToLab:
    """Test CIELAB conversion against reference values."""

    def test_white(self):
        """White is L=100 with neutral a/b."""
        np.testing.assert_allclose(srgb_to_lab([255, 255, 255]), [100.0, 0.0, 0.0], atol=1e-2)

    def test_black(self):
        """Black is the origin."""
        np.testing.assert_allclose(srgb_to_lab([0, 0, 0]), [0.0, 0.0, 0.0], atol=1e-9)

    def test_red(self):
        """Pure sRGB red matches the published D65 value."""
        np.testing.assert_allclose(srgb_to_lab([255, 0, 0]), [53.24, 80.09, 67.20], atol=0.05)

    def test_preserves_leading_shape(self):
        """Arbitrary leading dimensions are kept."""
        rgb = np.zeros((4, 5, 3), dtype=np.uint8)
        assert srgb_to_lab(rgb).shape == (4, 5, 3)

    def test_identical_inputs_identical_output(self):
        """Same color anywhere in a batch gives bit-identical Lab values."""
        rgb = np.array([[12, 200, 99], [1, 2, 3], [12, 200, 99]], dtype=np.uint8)
        lab = srgb_to_lab(rgb)
        assert np.array_equal(lab[0], lab[2])

    def test_rejects_bad_shape(self):
        """Trailing dimension must be 3."""
        with pytest.raises(ValueError, match="trailing dimension"):
            srgb_to_lab(np.zeros((2, 4), dtype=np.uint8))

    def test_rejects_out_of_range(self):
        """Non-uint8 input must stay within [0, 255]."""
        with pytest.raises(ValueError, match="range"):
            srgb_to_lab([256, 0, 0])

    def test_delta_e_zero_for_same_color(self):
        """Distance of a color to itself is zero."""
        lab = srgb_to_lab([10, 20, 30])
        assert delta_e_squared(lab, lab) == 0.0


class TestHexColors:
    """Test hex parsing and formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("#f38ba8", (243, 139, 168)),
            ("F38BA8", (243, 139, 168)),
            ("#fff", (255, 255, 255)),
            ("  #000000 ", (0, 0, 0)),
        ],
    )
    def test_parse_valid(self, value, expected):
        """Long, short and unprefixed forms are accepted."""
        assert parse_hex_color(value) == expected

    @pytest.mark.parametrize("value", ["", "#12", "#12345", "#gggggg", "not a color"])
    def test_parse_invalid(self, value):
        """Malformed strings return None."""
        assert parse_hex_color(value) is None

    def test_to_hex(self):
        """Formatting is lowercase and zero padded."""
        assert to_hex((1, 171, 255)) == "#01abff"
