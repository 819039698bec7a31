"""
Shared fixtures.

Full LUT builds cost a few seconds each, so the tables used across test
modules are built once per session through one shared cache.
"""

import io

import numpy as np
import pytest
from PIL import Image

from flavorlut import Algorithm, Flavor, LutCache


@pytest.fixture(scope="session")
def lut_cache():
    """Session-wide LUT cache."""
    return LutCache()


@pytest.fixture(scope="session")
def mocha_nearest(lut_cache):
    """Mocha / nearest-neighbor LUT."""
    return lut_cache.lut_for(Flavor.MOCHA, Algorithm.NEAREST_NEIGHBOR)


@pytest.fixture(scope="session")
def latte_shepards(lut_cache):
    """Latte / shepards-method LUT."""
    return lut_cache.lut_for(Flavor.LATTE, Algorithm.SHEPARDS_METHOD)


@pytest.fixture
def rgba_image():
    """Random 16x12 RGBA image with varied alpha."""
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=(12, 16, 4), dtype=np.uint8)


def make_png(pixels: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


def make_gif(colors, durations) -> bytes:
    """Animated GIF with one solid 1x1 frame per color."""
    frames = [Image.new("RGB", (1, 1), color) for color in colors]
    buffer = io.BytesIO()
    frames[0].save(
        buffer,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=list(durations),
        loop=0,
    )
    return buffer.getvalue()


@pytest.fixture
def png_bytes(rgba_image):
    """PNG encoding of ``rgba_image``."""
    return make_png(rgba_image)


@pytest.fixture
def red_green_gif():
    """Two-frame 1x1 GIF: red for 100 ms, then green for 200 ms."""
    return make_gif([(255, 0, 0), (0, 255, 0)], [100, 200])


@pytest.fixture
def gif_factory():
    """Builder for solid-color animated GIFs: ``gif_factory(colors, durations)``."""
    return make_gif


@pytest.fixture
def png_factory():
    """Builder for PNG bytes from a uint8 array."""
    return make_png
