"""
flavorlut - Catppuccin recoloring via dense lookup tables

Maps arbitrary images onto the Catppuccin flavors, including:
- Palette matching in CIELAB with nine named algorithms
- Dense 256^3 RGB LUTs built in parallel and cached per (flavor, algorithm)
- Still-image and animated GIF recoloring
- Bounded-concurrency job admission with cooperative cancellation

Performance optimized with Numba parallel kernels.
"""

__version__ = "0.1.0"

# Palettes and algorithms
from flavorlut.algorithms import Algorithm

# Codecs
from flavorlut.codec import decode_image, encode_image, is_gif, parse_format

# Color conversions
from flavorlut.colorspace import parse_hex_color, srgb_to_lab, to_hex

# Configuration
from flavorlut.config import EngineConfig

# Errors
from flavorlut.errors import (
    DecodeError,
    EncodeError,
    FlavorLutError,
    ImageTooLarge,
    JobCancelled,
    JobStatus,
    ResourceExhausted,
)

# GIF pipeline
from flavorlut.gif import GifFrame, GifPipeline, decode_gif, encode_gif, resolve_indexed_frame

# Job admission
from flavorlut.jobs import CancelToken, Job, JobGate

# Core LUT classes
from flavorlut.lut import CacheStats, Lut, LutBuilder, LutCache, make_key
from flavorlut.mapper import PixelMapper
from flavorlut.palette import PALETTES, Flavor, Palette, get_palette

# Previews and analysis
from flavorlut.preview import (
    all_palettes_preview,
    analyze_colors,
    closest_palette_color,
    comparison_image,
    palette_preview,
    suggest_flavor,
)

# Engine
from flavorlut.service import JobResult, Recolorizer

__all__ = [
    # Version
    "__version__",
    # Palettes and algorithms
    "Algorithm",
    "Flavor",
    "Palette",
    "PALETTES",
    "get_palette",
    # Core classes
    "Lut",
    "LutBuilder",
    "LutCache",
    "CacheStats",
    "make_key",
    "PixelMapper",
    # GIF
    "GifPipeline",
    "GifFrame",
    "decode_gif",
    "encode_gif",
    "resolve_indexed_frame",
    # Jobs
    "JobGate",
    "Job",
    "CancelToken",
    # Engine
    "Recolorizer",
    "JobResult",
    "JobStatus",
    "EngineConfig",
    # Errors
    "FlavorLutError",
    "DecodeError",
    "EncodeError",
    "ResourceExhausted",
    "ImageTooLarge",
    "JobCancelled",
    # Conversions
    "srgb_to_lab",
    "parse_hex_color",
    "to_hex",
    # Codecs
    "decode_image",
    "encode_image",
    "is_gif",
    "parse_format",
    # Previews
    "palette_preview",
    "all_palettes_preview",
    "comparison_image",
    "analyze_colors",
    "suggest_flavor",
    "closest_palette_color",
]
