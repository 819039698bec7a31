"""
Still-image decoding and encoding.

Thin Pillow wrappers that turn encoded bytes into RGBA pixel buffers for the
mapper and back, with the size limits applied to untrusted input.
"""

from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from flavorlut.constants import MAX_IMAGE_DIMENSION, MAX_INPUT_BYTES, VALID_OUTPUT_FORMATS
from flavorlut.errors import DecodeError, EncodeError, ImageTooLarge

logger = logging.getLogger(__name__)

# Accepted format names -> Pillow format identifiers
_FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "webp": "WEBP",
    "gif": "GIF",
}

_GIF_SIGNATURES = (b"GIF87a", b"GIF89a")


def parse_format(name: str) -> str | None:
    """
    Normalize an output format name.

    Args:
        name: "png", "jpg", "jpeg", "webp" or "gif" (case-insensitive)

    Returns:
        Canonical lowercase name ("jpg" becomes "jpeg"), or None if unsupported
    """
    pil_format = _FORMATS.get(name.strip().lower())
    return pil_format.lower() if pil_format is not None else None


def is_gif(data: bytes) -> bool:
    """True if ``data`` starts with a GIF signature."""
    return data[:6] in _GIF_SIGNATURES


def check_payload_size(data: bytes, max_bytes: int = MAX_INPUT_BYTES) -> None:
    """
    Raises:
        ImageTooLarge: If the payload exceeds ``max_bytes``
    """
    if len(data) > max_bytes:
        raise ImageTooLarge(
            f"Image is {len(data)} bytes; the maximum allowed is {max_bytes} bytes"
        )


def check_dimensions(width: int, height: int, max_dimension: int = MAX_IMAGE_DIMENSION) -> None:
    """
    Raises:
        ImageTooLarge: If either side exceeds ``max_dimension``
    """
    if width > max_dimension or height > max_dimension:
        raise ImageTooLarge(
            f"Image is {width}x{height}; the maximum allowed is "
            f"{max_dimension}x{max_dimension} pixels"
        )


def decode_image(
    data: bytes,
    max_bytes: int = MAX_INPUT_BYTES,
    max_dimension: int = MAX_IMAGE_DIMENSION,
) -> np.ndarray:
    """
    Decode encoded image bytes into an RGBA buffer.

    Animated inputs decode to their first frame (use GifPipeline for all frames).

    Args:
        data: Encoded image (PNG, JPEG, WebP, GIF, BMP, ...)
        max_bytes: Payload size limit
        max_dimension: Width/height limit

    Returns:
        Writable uint8 array [H, W, 4]

    Raises:
        ImageTooLarge: If a size limit is exceeded
        DecodeError: If the bytes are not a decodable image
    """
    check_payload_size(data, max_bytes)

    try:
        with Image.open(io.BytesIO(data)) as im:
            check_dimensions(im.width, im.height, max_dimension)
            rgba = im.convert("RGBA")
    except Image.DecompressionBombError as e:
        raise ImageTooLarge(str(e)) from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Cannot decode image: {e}") from e

    logger.debug("[Codec] Decoded %dx%d image", rgba.width, rgba.height)
    return np.array(rgba, dtype=np.uint8)


def encode_image(pixels: np.ndarray, fmt: str = "png") -> bytes:
    """
    Encode an RGB(A) buffer.

    JPEG has no alpha channel, so alpha is dropped for "jpeg"/"jpg".

    Args:
        pixels: uint8 array [H, W, 3|4]
        fmt: Output format name

    Returns:
        Encoded bytes

    Raises:
        EncodeError: If the format is unsupported or the encoder fails
    """
    pil_format = _FORMATS.get(fmt.strip().lower())
    if pil_format is None:
        valid = ", ".join(sorted(VALID_OUTPUT_FORMATS))
        raise EncodeError(f"Unsupported output format '{fmt}'. Valid options are: {valid}")

    try:
        image = Image.fromarray(np.ascontiguousarray(pixels))
        if pil_format == "JPEG" and image.mode != "RGB":
            image = image.convert("RGB")
        buffer = io.BytesIO()
        image.save(buffer, format=pil_format)
    except (OSError, ValueError, TypeError) as e:
        raise EncodeError(f"Cannot encode {pil_format}: {e}") from e

    logger.debug("[Codec] Encoded %s (%d bytes)", pil_format, buffer.tell())
    return buffer.getvalue()
