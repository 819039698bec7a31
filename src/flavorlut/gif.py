"""
GifPipeline: recolor every frame of an animated GIF.

Frames are decoded with Pillow and resolved to RGBA: palette-indexed frames
use their local palette, else the stream's global palette, else the index is
read as a grayscale intensity. Frames Pillow has already composited to RGB(A)
are used as-is. Each frame is mapped through the LUT and the animation is
re-encoded with the original per-frame delays, looping forever.

Frames are written one image block at a time through GifImagePlugin rather
than ``Image.save``, which would fold pixel-identical consecutive frames into
one and change the frame count.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from PIL import GifImagePlugin, Image, ImageSequence, UnidentifiedImageError

from flavorlut.codec import check_dimensions, check_payload_size
from flavorlut.constants import (
    DEFAULT_GIF_DISPOSAL,
    GIF_ALPHA_THRESHOLD,
    GIF_LOOP_FOREVER,
    GIF_TRANSPARENT_INDEX,
    MAX_IMAGE_DIMENSION,
    MAX_INPUT_BYTES,
)
from flavorlut.errors import DecodeError, EncodeError, ImageTooLarge, ResourceExhausted
from flavorlut.lut.builder import Lut
from flavorlut.mapper import PixelMapper
from flavorlut.validators import validate_type

logger = logging.getLogger(__name__)


@dataclass
class GifFrame:
    """
    One decoded animation frame.

    Attributes:
        rgba: uint8 array [H, W, 4]
        duration: Display delay in milliseconds
    """

    rgba: np.ndarray
    duration: int = 0


# ============================================================================
# Palette Resolution
# ============================================================================


def _palette_table(palette) -> np.ndarray:
    """Flat RGB palette (bytes, list or array) -> zero-padded [256, 3] table."""
    if isinstance(palette, (bytes, bytearray)):
        flat = np.frombuffer(palette, dtype=np.uint8)
    else:
        flat = np.asarray(palette, dtype=np.uint8).reshape(-1)

    n_colors = min(len(flat) // 3, 256)
    table = np.zeros((256, 3), dtype=np.uint8)
    table[:n_colors] = flat[: n_colors * 3].reshape(n_colors, 3)
    return table


def resolve_indexed_frame(
    indices: np.ndarray,
    local_palette=None,
    global_palette=None,
    transparency: int | None = None,
) -> np.ndarray:
    """
    Resolve palette indices to RGBA.

    Args:
        indices: Palette indices [H, W]
        local_palette: Frame palette as flat RGB values, or None
        global_palette: Stream palette as flat RGB values, or None
        transparency: Index rendered with alpha 0, or None

    Returns:
        uint8 array [H, W, 4]. With no palette at all, each index is used as a
        gray level (r = g = b = index).
    """
    indices = np.asarray(indices, dtype=np.uint8)
    palette = local_palette if local_palette is not None else global_palette

    if palette is None:
        rgb = np.repeat(indices[..., np.newaxis], 3, axis=-1)
    else:
        rgb = _palette_table(palette)[indices]

    alpha = np.full(indices.shape + (1,), 255, dtype=np.uint8)
    if transparency is not None:
        alpha[indices == transparency] = 0

    return np.concatenate([rgb, alpha], axis=-1)


def _global_palette(im: Image.Image) -> bytes | None:
    palette = getattr(im, "global_palette", None)
    if palette is None:
        return None
    return bytes(palette.palette)


def _frame_to_rgba(frame: Image.Image, global_palette: bytes | None, index: int) -> np.ndarray:
    transparency = frame.info.get("transparency")
    if not isinstance(transparency, int):
        transparency = None

    if frame.mode == "P":
        local_palette = frame.getpalette()
        if local_palette is None and global_palette is None:
            logger.debug("[GifPipeline] Frame %d has no palette, using grayscale", index)
        return resolve_indexed_frame(np.asarray(frame), local_palette, global_palette, transparency)

    if frame.mode == "L":
        # Pillow decodes palette-less (or gray-ramp) GIF frames as luminance
        logger.debug("[GifPipeline] Frame %d decoded without palette, using grayscale", index)
        return resolve_indexed_frame(np.asarray(frame), None, None, transparency)

    return np.array(frame.convert("RGBA"), dtype=np.uint8)


# ============================================================================
# Decode / Encode
# ============================================================================


def decode_gif(
    data: bytes,
    max_bytes: int = MAX_INPUT_BYTES,
    max_dimension: int = MAX_IMAGE_DIMENSION,
) -> list[GifFrame]:
    """
    Decode a GIF stream into RGBA frames.

    Args:
        data: GIF bytes
        max_bytes: Payload size limit
        max_dimension: Width/height limit

    Returns:
        Frames in display order

    Raises:
        DecodeError: If the stream is not a well-formed GIF
        ImageTooLarge: If a size limit is exceeded
        ResourceExhausted: If the frames cannot be held in memory
    """
    check_payload_size(data, max_bytes)

    frames: list[GifFrame] = []
    try:
        with Image.open(io.BytesIO(data)) as im:
            if im.format != "GIF":
                raise DecodeError(f"Expected a GIF stream, got {im.format}")
            check_dimensions(im.width, im.height, max_dimension)

            global_palette = _global_palette(im)
            for index, frame in enumerate(ImageSequence.Iterator(im)):
                frames.append(
                    GifFrame(
                        rgba=_frame_to_rgba(frame, global_palette, index),
                        duration=int(frame.info.get("duration", 0)),
                    )
                )
    except MemoryError as e:
        raise ResourceExhausted("Cannot hold decoded GIF frames in memory") from e
    except Image.DecompressionBombError as e:
        raise ImageTooLarge(str(e)) from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, EOFError) as e:
        raise DecodeError(f"Cannot decode GIF: {e}") from e

    if not frames:
        raise DecodeError("GIF stream contains no frames")

    logger.debug("[GifPipeline] Decoded %d frames", len(frames))
    return frames


def _paletted_frame(rgba: np.ndarray) -> tuple[Image.Image, int | None]:
    """
    Quantize one RGBA frame to a palette image.

    GIF alpha is binary: pixels below GIF_ALPHA_THRESHOLD become the reserved
    transparent index and the rest are quantized into the remaining entries.

    Returns:
        (mode "P" image, transparent index or None)
    """
    rgb = Image.fromarray(np.ascontiguousarray(rgba[..., :3]))
    transparent = rgba[..., 3] < GIF_ALPHA_THRESHOLD

    if not transparent.any():
        # Adaptive quantization keeps up to 256 distinct colors exact
        return rgb.convert("P", palette=Image.Palette.ADAPTIVE, colors=256), None

    quantized = rgb.convert("P", palette=Image.Palette.ADAPTIVE, colors=GIF_TRANSPARENT_INDEX)
    indices = np.array(quantized, dtype=np.uint8)
    indices[transparent] = GIF_TRANSPARENT_INDEX

    palette = quantized.getpalette()[: GIF_TRANSPARENT_INDEX * 3]
    palette += [0] * (768 - len(palette))

    image = Image.frombytes("P", quantized.size, indices.tobytes())
    image.putpalette(palette)
    return image, GIF_TRANSPARENT_INDEX


def encode_gif(
    frames: Sequence[GifFrame],
    loop: int = GIF_LOOP_FOREVER,
    disposal: int = DEFAULT_GIF_DISPOSAL,
) -> bytes:
    """
    Encode RGBA frames as an animated GIF.

    Every frame is written with its own color table and delay, one image
    block per input frame, so identical consecutive frames are never merged.

    Args:
        frames: Frames in display order (all the same size)
        loop: Loop count (0 = forever)
        disposal: GIF disposal method for every frame

    Returns:
        GIF bytes

    Raises:
        EncodeError: If there are no frames, sizes differ or the encoder fails
        ResourceExhausted: If encoder buffers cannot be allocated
    """
    if not frames:
        raise EncodeError("Cannot encode a GIF without frames")

    size = frames[0].rgba.shape[:2]
    if any(frame.rgba.shape[:2] != size for frame in frames):
        raise EncodeError("All GIF frames must have the same size")

    buffer = io.BytesIO()
    try:
        paletted = [_paletted_frame(frame.rgba) for frame in frames]

        header, _ = GifImagePlugin.getheader(paletted[0][0], info={"loop": loop})
        for chunk in header:
            buffer.write(chunk)

        for (image, transparency), frame in zip(paletted, frames, strict=True):
            params = {
                "duration": frame.duration,
                "disposal": disposal,
                "include_color_table": True,
            }
            if transparency is not None:
                params["transparency"] = transparency
            for chunk in GifImagePlugin.getdata(image, **params):
                buffer.write(chunk)

        buffer.write(b";")  # trailer
    except MemoryError as e:
        raise ResourceExhausted("Cannot allocate GIF encoder buffers") from e
    except (OSError, ValueError, TypeError) as e:
        raise EncodeError(f"Cannot encode GIF: {e}") from e

    logger.debug("[GifPipeline] Encoded %d frames (%d bytes)", len(frames), buffer.tell())
    return buffer.getvalue()


# ============================================================================
# Pipeline
# ============================================================================


class GifPipeline:
    """
    Recolors animated GIFs frame by frame with one LUT.

    Example:
        >>> pipeline = GifPipeline(cache.lut_for("macchiato", "gaussian-rbf"))
        >>> out_bytes = pipeline.process(gif_bytes, cancel=job.cancel)
    """

    def __init__(
        self,
        lut: Lut,
        max_bytes: int = MAX_INPUT_BYTES,
        max_dimension: int = MAX_IMAGE_DIMENSION,
        disposal: int = DEFAULT_GIF_DISPOSAL,
    ):
        """
        Initialize the pipeline.

        Args:
            lut: LUT applied to every frame
            max_bytes: Input payload limit
            max_dimension: Input width/height limit
            disposal: GIF disposal method for output frames
        """
        self.mapper = PixelMapper(lut)
        self.max_bytes = max_bytes
        self.max_dimension = max_dimension
        self.disposal = disposal

    def process_frames(self, frames: Sequence[GifFrame], cancel=None) -> list[GifFrame]:
        """
        Map every frame in place, checking ``cancel`` at the start of each frame.

        Args:
            frames: Decoded frames (their buffers are overwritten)
            cancel: Optional CancelToken

        Returns:
            The same frames, recolored

        Raises:
            JobCancelled: If cancellation is observed between frames
        """
        for index, frame in enumerate(frames):
            if cancel is not None:
                cancel.raise_if_cancelled()
            self.mapper.apply(frame.rgba, inplace=True)
            logger.debug("[GifPipeline] Mapped frame %d (%d ms)", index, frame.duration)
        return list(frames)

    @validate_type((bytes, bytearray, memoryview), "data")
    def process(self, data: bytes, cancel=None) -> bytes:
        """
        Decode, recolor and re-encode an animated GIF.

        Args:
            data: Source GIF bytes
            cancel: Optional CancelToken checked before every frame and before encoding

        Returns:
            Recolored GIF bytes with the same frame delays, looping forever

        Raises:
            DecodeError: If the source is not a well-formed GIF
            EncodeError: If re-encoding fails
            JobCancelled: If cancellation is observed at a checkpoint
        """
        frames = decode_gif(bytes(data), self.max_bytes, self.max_dimension)
        logger.info(
            "[GifPipeline] Recoloring %d frames via %s/%s",
            len(frames),
            self.mapper.lut.flavor.value,
            self.mapper.lut.algorithm.label,
        )

        self.process_frames(frames, cancel=cancel)

        if cancel is not None:
            cancel.raise_if_cancelled()
        return encode_gif(frames, loop=GIF_LOOP_FOREVER, disposal=self.disposal)
