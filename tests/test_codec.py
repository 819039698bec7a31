"""
Tests for still-image decoding and encoding.
"""

import io

import numpy as np
import pytest
from PIL import Image

from flavorlut.codec import (
    decode_image,
    encode_image,
    is_gif,
    parse_format,
)
from flavorlut.errors import DecodeError, EncodeError, ImageTooLarge


class TestFormats:
    """Test format name handling."""

    @pytest.mark.parametrize(
        "name,expected",
        [("png", "png"), ("PNG", "png"), ("jpg", "jpeg"), ("jpeg", "jpeg"), ("webp", "webp"), ("gif", "gif")],
    )
    def test_parse_format(self, name, expected):
        """Names are normalized; jpg is an alias of jpeg."""
        assert parse_format(name) == expected

    def test_parse_unknown_format(self):
        """Unsupported names return None."""
        assert parse_format("tiff") is None

    def test_is_gif(self, red_green_gif, png_bytes):
        """GIF streams are recognized by signature."""
        assert is_gif(red_green_gif)
        assert not is_gif(png_bytes)
        assert not is_gif(b"")


class TestDecodeImage:
    """Test decoding encoded bytes into RGBA buffers."""

    def test_png_round_trip(self, rgba_image, png_bytes):
        """PNG decoding is lossless and yields a writable RGBA buffer."""
        pixels = decode_image(png_bytes)

        assert pixels.dtype == np.uint8
        assert pixels.flags.writeable
        np.testing.assert_array_equal(pixels, rgba_image)

    def test_rgb_gains_opaque_alpha(self, png_factory):
        """RGB inputs decode with alpha 255."""
        pixels = decode_image(png_factory(np.zeros((3, 5, 3), dtype=np.uint8)))

        assert pixels.shape == (3, 5, 4)
        assert np.all(pixels[..., 3] == 255)

    def test_garbage(self):
        """Undecodable bytes raise DecodeError."""
        with pytest.raises(DecodeError):
            decode_image(b"\x00\x01\x02 not an image")

    def test_payload_limit(self, png_bytes):
        """Oversized payloads are refused before decoding."""
        with pytest.raises(ImageTooLarge, match="bytes"):
            decode_image(png_bytes, max_bytes=16)

    def test_dimension_limit(self, png_bytes):
        """Images wider or taller than the limit are refused."""
        with pytest.raises(ImageTooLarge, match="16x12"):
            decode_image(png_bytes, max_dimension=15)


class TestEncodeImage:
    """Test encoding pixel buffers."""

    def test_png(self, rgba_image):
        """PNG output keeps alpha."""
        data = encode_image(rgba_image, "png")
        with Image.open(io.BytesIO(data)) as im:
            assert im.format == "PNG"
            assert im.mode == "RGBA"

    @pytest.mark.parametrize("fmt", ["jpg", "JPEG"])
    def test_jpeg_drops_alpha(self, rgba_image, fmt):
        """JPEG output is RGB."""
        data = encode_image(rgba_image, fmt)
        with Image.open(io.BytesIO(data)) as im:
            assert im.format == "JPEG"
            assert im.mode == "RGB"

    def test_unsupported(self, rgba_image):
        """Unknown formats raise EncodeError listing the options."""
        with pytest.raises(EncodeError, match="Valid options"):
            encode_image(rgba_image, "tiff")
