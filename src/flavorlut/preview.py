"""
Palette previews and image analysis helpers.

Swatch sheets for one or all flavors, a side-by-side comparison of an image
before and after recoloring, dominant-color analysis with a suggested flavor,
and closest-palette-color lookup for hex strings. All images are RGBA uint8
arrays; encoding them is left to ``flavorlut.codec``.
"""

from __future__ import annotations

import logging

import numpy as np

from flavorlut.colorspace import delta_e_squared, parse_hex_color, srgb_to_lab, to_hex
from flavorlut.constants import (
    ALL_PREVIEW_COLORS_PER_FLAVOR,
    ALL_PREVIEW_GRID_COLS,
    ALL_PREVIEW_HEADER,
    ALL_PREVIEW_MARGIN,
    ALL_PREVIEW_SWATCH_SIZE,
    COMPARISON_BACKGROUND,
    COMPARISON_GAP,
    DOMINANT_COLOR_COUNT,
    FRAPPE_BRIGHTNESS,
    LATTE_BRIGHTNESS,
    MACCHIATO_BRIGHTNESS,
    PREVIEW_GRID_SIZE,
    PREVIEW_MARGIN,
    PREVIEW_SWATCH_SIZE,
)
from flavorlut.palette import Flavor, Palette, get_palette
from flavorlut.validators import validate_range

logger = logging.getLogger(__name__)


def _fill(img: np.ndarray, x: int, y: int, size: int, rgb) -> None:
    img[y : y + size, x : x + size, :3] = rgb
    img[y : y + size, x : x + size, 3] = 255


@validate_range(1, 512, "swatch_size", param_index=1)
@validate_range(1, 16, "grid_size", param_index=2)
@validate_range(0, 512, "margin", param_index=3)
def palette_preview(
    palette: Palette | Flavor | str,
    swatch_size: int = PREVIEW_SWATCH_SIZE,
    grid_size: int = PREVIEW_GRID_SIZE,
    margin: int = PREVIEW_MARGIN,
) -> np.ndarray:
    """
    Render a square swatch grid for one flavor.

    Only the first ``grid_size ** 2`` colors fit; the rest are skipped.
    Background pixels are fully transparent.

    Args:
        palette: Palette, Flavor, or flavor name
        swatch_size: Swatch edge in pixels
        grid_size: Swatches per row and column
        margin: Gap around swatches in pixels

    Returns:
        uint8 array [S, S, 4] with S = grid_size * swatch_size + (grid_size + 1) * margin
    """
    if not isinstance(palette, Palette):
        palette = get_palette(palette)

    total = grid_size * swatch_size + (grid_size + 1) * margin
    img = np.zeros((total, total, 4), dtype=np.uint8)

    for i, rgb in enumerate(palette.rgb[: grid_size * grid_size]):
        row, col = divmod(i, grid_size)
        x = margin + col * (swatch_size + margin)
        y = margin + row * (swatch_size + margin)
        _fill(img, x, y, swatch_size, rgb)

    return img


@validate_range(1, 512, "swatch_size", param_index=0)
@validate_range(0, 512, "margin", param_index=1)
def all_palettes_preview(
    swatch_size: int = ALL_PREVIEW_SWATCH_SIZE,
    margin: int = ALL_PREVIEW_MARGIN,
) -> np.ndarray:
    """
    Render the accent colors of every flavor side by side.

    Each flavor gets a column block with a white header strip followed by a
    4-wide grid of its first 16 colors, in flavor order latte -> mocha.

    Returns:
        uint8 RGBA array
    """
    cols = ALL_PREVIEW_GRID_COLS
    rows = -(-ALL_PREVIEW_COLORS_PER_FLAVOR // cols)
    flavor_width = cols * swatch_size + (cols + 1) * margin
    flavor_height = rows * swatch_size + (rows + 1) * margin + ALL_PREVIEW_HEADER
    n_flavors = len(Flavor)

    total_width = flavor_width * n_flavors + margin * (n_flavors + 1)
    img = np.zeros((flavor_height, total_width, 4), dtype=np.uint8)

    for flavor_idx, flavor in enumerate(Flavor):
        flavor_x = margin + flavor_idx * (flavor_width + margin)
        img[:ALL_PREVIEW_HEADER, flavor_x : flavor_x + flavor_width] = 255

        colors = get_palette(flavor).rgb[:ALL_PREVIEW_COLORS_PER_FLAVOR]
        for i, rgb in enumerate(colors):
            row, col = divmod(i, cols)
            x = flavor_x + margin + col * (swatch_size + margin)
            y = ALL_PREVIEW_HEADER + margin + row * (swatch_size + margin)
            _fill(img, x, y, swatch_size, rgb)

    return img


def comparison_image(original: np.ndarray, processed: np.ndarray) -> np.ndarray:
    """
    Place two RGBA images side by side on a light gray canvas.

    Args:
        original: uint8 array [H1, W1, 4]
        processed: uint8 array [H2, W2, 4]

    Returns:
        uint8 array [max(H1, H2), 2 * max(W1, W2) + gap, 4]; the processed
        image starts at column max(W1, W2) + gap
    """
    for name, arr in (("original", original), ("processed", processed)):
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"{name} must have shape [H, W, 4], got {arr.shape}")

    max_h = max(original.shape[0], processed.shape[0])
    max_w = max(original.shape[1], processed.shape[1])

    canvas = np.empty((max_h, max_w * 2 + COMPARISON_GAP, 4), dtype=np.uint8)
    canvas[...] = COMPARISON_BACKGROUND

    h, w = original.shape[:2]
    canvas[:h, :w] = original
    h, w = processed.shape[:2]
    x0 = max_w + COMPARISON_GAP
    canvas[:h, x0 : x0 + w] = processed

    return canvas


def suggest_flavor(brightness: float) -> Flavor:
    """Pick a flavor for a mean brightness in [0, 255]: light images -> latte, dark -> mocha."""
    if brightness > LATTE_BRIGHTNESS:
        return Flavor.LATTE
    if brightness > FRAPPE_BRIGHTNESS:
        return Flavor.FRAPPE
    if brightness > MACCHIATO_BRIGHTNESS:
        return Flavor.MACCHIATO
    return Flavor.MOCHA


def analyze_colors(
    pixels: np.ndarray, top: int = DOMINANT_COLOR_COUNT
) -> tuple[list[tuple[int, int, int, int]], Flavor]:
    """
    Find the most frequent colors and suggest a flavor.

    The suggestion uses the mean brightness ((r + g + b) / 3) of the dominant
    colors, unweighted by their counts.

    Args:
        pixels: uint8 array [H, W, C] with C >= 3 (alpha ignored)
        top: Number of dominant colors to report

    Returns:
        ([(r, g, b, count), ...] most frequent first, suggested Flavor)
    """
    rgb = np.ascontiguousarray(pixels[..., :3]).reshape(-1, 3)
    if rgb.shape[0] == 0:
        raise ValueError("Cannot analyze an empty image")

    packed = (
        (rgb[:, 0].astype(np.uint32) << 16)
        | (rgb[:, 1].astype(np.uint32) << 8)
        | rgb[:, 2].astype(np.uint32)
    )
    values, counts = np.unique(packed, return_counts=True)
    # Stable sort keeps ties in ascending color order
    order = np.argsort(-counts, kind="stable")[:top]

    dominant = [
        (
            int(values[i] >> 16) & 0xFF,
            int(values[i] >> 8) & 0xFF,
            int(values[i]) & 0xFF,
            int(counts[i]),
        )
        for i in order
    ]

    brightness = float(np.mean([(r + g + b) / 3.0 for r, g, b, _ in dominant]))
    flavor = suggest_flavor(brightness)
    logger.debug("[Preview] Mean dominant brightness %.1f -> %s", brightness, flavor.value)
    return dominant, flavor


def closest_palette_color(
    hex_color: str, palette: Palette | Flavor | str
) -> tuple[str, str] | None:
    """
    Find the palette color nearest (CIELAB) to a hex color.

    Args:
        hex_color: "#rrggbb" or "#rgb"
        palette: Palette, Flavor, or flavor name

    Returns:
        (color_name, "#rrggbb") of the nearest palette color, or None if
        ``hex_color`` is not a valid hex color
    """
    rgb = parse_hex_color(hex_color)
    if rgb is None:
        return None
    if not isinstance(palette, Palette):
        palette = get_palette(palette)

    lab = srgb_to_lab(np.array(rgb, dtype=np.uint8))
    distances = delta_e_squared(palette.lab, lab)
    # argmin returns the first minimum, matching LUT tie-breaking
    best = int(np.argmin(distances))
    name, value = palette.colors[best]
    return name, to_hex(value)
