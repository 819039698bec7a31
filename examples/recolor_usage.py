"""
Example: recoloring images onto Catppuccin flavors.

Demonstrates how to use flavorlut for:
- Building and caching LUTs
- Mapping pixel buffers directly
- Recoloring encoded images and GIFs through the async engine
- Palette previews and color analysis
"""

import asyncio
import io
import logging

import numpy as np
from PIL import Image

from flavorlut import (
    Algorithm,
    EngineConfig,
    Flavor,
    LutCache,
    PixelMapper,
    Recolorizer,
    analyze_colors,
    closest_palette_color,
    encode_image,
    palette_preview,
)

# Configure logging to see build and job events
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def generate_sample_image(width: int = 128, height: int = 96) -> np.ndarray:
    """Generate an RGBA gradient image for demonstration."""
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)
    xx, yy = np.meshgrid(x, y)

    img = np.empty((height, width, 4), dtype=np.uint8)
    img[..., 0] = xx.astype(np.uint8)
    img[..., 1] = yy.astype(np.uint8)
    img[..., 2] = (255 - xx).astype(np.uint8)
    img[..., 3] = 255
    return img


def generate_sample_gif() -> bytes:
    """Generate a three-frame animated GIF."""
    frames = [Image.new("RGB", (32, 32), color) for color in ((200, 40, 40), (40, 200, 40), (40, 40, 200))]
    buffer = io.BytesIO()
    frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:], duration=[120, 80, 200], loop=0)
    return buffer.getvalue()


def example_1_direct_mapping(cache: LutCache):
    """Example 1: Map a pixel buffer with a cached LUT."""
    print("\n" + "=" * 70)
    print("EXAMPLE 1: Direct mapping")
    print("=" * 70)

    img = generate_sample_image()
    lut = cache.lut_for(Flavor.MOCHA, Algorithm.NEAREST_NEIGHBOR)
    out = PixelMapper(lut).apply(img)

    colors = {tuple(c) for c in out[..., :3].reshape(-1, 3)}
    print(f"Input:  {img.shape}, {len(np.unique(img[..., :3].reshape(-1, 3), axis=0))} colors")
    print(f"Output: {out.shape}, {len(colors)} colors (all from mocha)")

    # Second request for the same key is a cache hit
    assert cache.lut_for("mocha", "nn") is lut
    print(f"Cache:  {cache.stats}")


async def example_2_engine(cache: LutCache):
    """Example 2: Recolor encoded images through the async engine."""
    print("\n" + "=" * 70)
    print("EXAMPLE 2: Async engine")
    print("=" * 70)

    engine = Recolorizer(EngineConfig(max_concurrent_jobs=2, default_algorithm="nn"), cache=cache)
    png = encode_image(generate_sample_image(), "png")
    gif = generate_sample_gif()

    results = await asyncio.gather(
        engine.recolor_bytes("alice", png, "mocha", output_format="webp"),
        engine.recolor_bytes("bob", gif, "mocha"),
        engine.recolor_bytes("carol", png, "latte", on_wait=lambda owner: print(f"{owner} is queued")),
    )

    for owner, result in zip(("alice", "bob", "carol"), results):
        size = len(result.output) if result.ok else 0
        print(f"{owner:>6}: {result.status.value:<9} {result.output_format or '-':<5} {size:,} bytes")


def example_3_previews():
    """Example 3: Palette previews and color analysis."""
    print("\n" + "=" * 70)
    print("EXAMPLE 3: Previews and analysis")
    print("=" * 70)

    preview = palette_preview(Flavor.FRAPPE)
    print(f"Frappé swatch sheet: {preview.shape}")

    dominant, flavor = analyze_colors(generate_sample_image(), top=3)
    for r, g, b, count in dominant:
        print(f"  rgb({r:3d}, {g:3d}, {b:3d}) x {count}")
    print(f"Suggested flavor: {flavor.display_name}")

    print(f"Closest mocha color to #ff8800: {closest_palette_color('#ff8800', Flavor.MOCHA)}")


def main():
    cache = LutCache()
    example_1_direct_mapping(cache)
    asyncio.run(example_2_engine(cache))
    example_3_previews()


if __name__ == "__main__":
    main()
