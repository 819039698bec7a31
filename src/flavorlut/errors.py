"""
Exception taxonomy and job outcomes for flavorlut.

Pure computation (LUT build, pixel mapping) does not raise under valid input.
Decoding, encoding and allocation can fail; those failures propagate as the
exceptions below. Cancellation is reported through ``JobCancelled`` and is not
a failure.
"""

from __future__ import annotations

from enum import Enum


class FlavorLutError(Exception):
    """Base class for all flavorlut errors."""


class DecodeError(FlavorLutError):
    """The input bytes are not a well-formed image or GIF stream."""


class EncodeError(FlavorLutError):
    """Writing the transformed image failed (e.g. unsupported target format)."""


class ResourceExhausted(FlavorLutError):
    """LUT or pixel-buffer allocation failed."""


class ImageTooLarge(FlavorLutError):
    """The input payload or image dimensions exceed the configured limits."""


class JobCancelled(FlavorLutError):
    """The job's cancel token was observed at a checkpoint."""

    def __init__(self, owner: object | None = None):
        self.owner = owner
        message = "Job cancelled" if owner is None else f"Job for {owner!r} cancelled"
        super().__init__(message)


class JobStatus(Enum):
    """Tagged outcome of a recolor job."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
