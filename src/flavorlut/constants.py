"""
Constants and default values for flavorlut.

Centralizes magic numbers and configuration defaults for better maintainability.
"""

from __future__ import annotations

# =============================================================================
# LUT Constants
# =============================================================================

# Dense RGB cube: one entry per 8-bit triple
LUT_LEVELS = 256
LUT_CHANNELS = 3
LUT_SHAPE = (LUT_LEVELS, LUT_LEVELS, LUT_LEVELS, LUT_CHANNELS)
LUT_NBYTES = LUT_LEVELS**3 * LUT_CHANNELS  # 48 MiB

# Weight given to a palette color at zero Lab distance (effectively selects it)
EXACT_MATCH_WEIGHT = 1e6

# Red-channel slab size for LUT builds (cancellation checkpoint granularity)
DEFAULT_LUT_SLAB_SIZE = 16
MIN_LUT_SLAB_SIZE = 1
MAX_LUT_SLAB_SIZE = LUT_LEVELS

# At most 4 flavors x 9 algorithms
DEFAULT_MAX_CACHED_LUTS = 36

# =============================================================================
# Color Space Constants (sRGB, D65 white point)
# =============================================================================

SRGB_LINEAR_THRESHOLD = 0.04045
D65_WHITE = (0.95047, 1.00000, 1.08883)
LAB_EPSILON = 216.0 / 24389.0  # (6/29)^3
LAB_KAPPA = 24389.0 / 27.0

# =============================================================================
# Job Constants
# =============================================================================

DEFAULT_MAX_CONCURRENT_JOBS = 2

# =============================================================================
# Input Limits
# =============================================================================

MAX_INPUT_BYTES = 8 * 1024 * 1024  # 8 MB
MAX_IMAGE_DIMENSION = 4096

# =============================================================================
# GIF Constants
# =============================================================================

GIF_LOOP_FOREVER = 0
DEFAULT_GIF_DISPOSAL = 2  # Restore to background between frames

# GIF alpha is binary; alpha below the threshold is written as transparent
GIF_ALPHA_THRESHOLD = 128
GIF_TRANSPARENT_INDEX = 255

# =============================================================================
# Preview Constants
# =============================================================================

PREVIEW_SWATCH_SIZE = 60
PREVIEW_GRID_SIZE = 5
PREVIEW_MARGIN = 10

ALL_PREVIEW_SWATCH_SIZE = 40
ALL_PREVIEW_MARGIN = 5
ALL_PREVIEW_COLORS_PER_FLAVOR = 16
ALL_PREVIEW_GRID_COLS = 4
ALL_PREVIEW_HEADER = 30

COMPARISON_GAP = 20
COMPARISON_BACKGROUND = (240, 240, 240, 255)

DOMINANT_COLOR_COUNT = 5

# Mean brightness thresholds for flavor suggestion (light -> dark)
LATTE_BRIGHTNESS = 180.0
FRAPPE_BRIGHTNESS = 120.0
MACCHIATO_BRIGHTNESS = 80.0

# =============================================================================
# Formats
# =============================================================================

VALID_OUTPUT_FORMATS = {"png", "jpg", "jpeg", "webp", "gif"}
