"""
Recolorizer: async entry point tying the engine together.

A request flows through: JobGate admission -> LUT lookup or build ->
PixelMapper / GifPipeline -> encode. CPU-bound stages run in worker threads
so the event loop stays responsive; every stage boundary is a cancellation
checkpoint. Outcomes come back as a tagged JobResult so callers can tell a
cancelled job from a failed one.

Example:
    >>> engine = Recolorizer()
    >>> result = await engine.recolor_bytes(user_id, png_bytes, "mocha", "nn")
    >>> if result.status is JobStatus.COMPLETED:
    ...     send(result.output)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass

import numpy as np

from flavorlut.algorithms import Algorithm
from flavorlut.codec import decode_image, encode_image, is_gif, parse_format
from flavorlut.config import EngineConfig
from flavorlut.errors import EncodeError, FlavorLutError, JobCancelled, JobStatus
from flavorlut.gif import GifPipeline
from flavorlut.jobs import CancelToken, Job, JobGate
from flavorlut.lut.builder import CacheKey, LutBuilder
from flavorlut.lut.cache import LutCache, make_key
from flavorlut.mapper import PixelMapper
from flavorlut.palette import Flavor

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """
    Tagged outcome of one recolor job.

    Attributes:
        status: COMPLETED, CANCELLED or FAILED
        output: Recolored pixels (ndarray) or encoded bytes when COMPLETED
        error: The failure when FAILED
        output_format: Format of ``output`` when it is encoded bytes
    """

    status: JobStatus
    output: np.ndarray | bytes | None = None
    error: FlavorLutError | None = None
    output_format: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is JobStatus.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.status is JobStatus.CANCELLED


class Recolorizer:
    """
    Owns the LUT cache and job gate shared by all recolor requests.

    Attributes:
        config: Engine configuration
        cache: LUT cache (one per engine)
        gate: Concurrency gate (one per engine)
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        cache: LutCache | None = None,
        gate: JobGate | None = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (default: EngineConfig())
            cache: Existing LUT cache to share (default: new cache from config)
            gate: Existing job gate to share (default: new gate from config)
        """
        self.config = config if config is not None else EngineConfig()
        self.cache = (
            cache
            if cache is not None
            else LutCache(
                builder=LutBuilder(slab_size=self.config.lut_slab_size),
                max_entries=self.config.max_cached_luts,
            )
        )
        self.gate = gate if gate is not None else JobGate(max_jobs=self.config.max_concurrent_jobs)

    def resolve(self, flavor: Flavor | str, algorithm: Algorithm | str | None = None) -> CacheKey:
        """
        Resolve request parameters to a cache key.

        Raises:
            ValueError: If the flavor is unknown
        """
        if algorithm is None:
            algorithm = self.config.default_algorithm
        return make_key(flavor, algorithm)

    def request_cancel(self, owner: Hashable) -> bool:
        """Cancel ``owner``'s queued or running job. Returns True if one was found."""
        return self.gate.request_cancel(owner)

    # ========================================================================
    # Requests
    # ========================================================================

    async def recolor_pixels(
        self,
        owner: Hashable,
        pixels: np.ndarray,
        flavor: Flavor | str,
        algorithm: Algorithm | str | None = None,
        on_wait: Callable[[Hashable], object] | None = None,
    ) -> JobResult:
        """
        Recolor a decoded RGB(A) buffer.

        Args:
            owner: Owner identifier for cancellation
            pixels: uint8 array [H, W, 3|4] (left unchanged)
            flavor: Target flavor
            algorithm: Matching algorithm (default from config)
            on_wait: Called once if the job has to queue for a permit

        Returns:
            JobResult with the recolored buffer as ``output``
        """
        key = self.resolve(flavor, algorithm)

        def work(cancel: CancelToken) -> np.ndarray:
            lut = self.cache.get_or_build(key, cancel=cancel)
            cancel.raise_if_cancelled()
            return PixelMapper(lut).apply(pixels)

        return await self._run(owner, key, work, on_wait)

    async def recolor_bytes(
        self,
        owner: Hashable,
        data: bytes,
        flavor: Flavor | str,
        algorithm: Algorithm | str | None = None,
        output_format: str = "png",
        on_wait: Callable[[Hashable], object] | None = None,
    ) -> JobResult:
        """
        Recolor an encoded image. GIF input always produces an animated GIF.

        Args:
            owner: Owner identifier for cancellation
            data: Encoded image bytes
            flavor: Target flavor
            algorithm: Matching algorithm (default from config)
            output_format: png, jpg/jpeg, webp or gif (ignored for GIF input)
            on_wait: Called once if the job has to queue for a permit

        Returns:
            JobResult with encoded bytes as ``output``
        """
        key = self.resolve(flavor, algorithm)
        animated = is_gif(data)

        if animated:
            fmt = "gif"
        else:
            fmt = parse_format(output_format)
            if fmt is None:
                error = EncodeError(f"Unsupported output format '{output_format}'")
                logger.warning("[Recolorizer] Rejected job for %r: %s", owner, error)
                return JobResult(status=JobStatus.FAILED, error=error)

        config = self.config

        def work(cancel: CancelToken) -> bytes:
            if animated:
                lut = self.cache.get_or_build(key, cancel=cancel)
                pipeline = GifPipeline(
                    lut,
                    max_bytes=config.max_input_bytes,
                    max_dimension=config.max_dimension,
                    disposal=config.gif_disposal,
                )
                return pipeline.process(data, cancel=cancel)

            pixels = decode_image(data, config.max_input_bytes, config.max_dimension)
            cancel.raise_if_cancelled()
            lut = self.cache.get_or_build(key, cancel=cancel)
            cancel.raise_if_cancelled()
            PixelMapper(lut).apply(pixels, inplace=True)
            cancel.raise_if_cancelled()
            return encode_image(pixels, fmt)

        result = await self._run(owner, key, work, on_wait)
        if result.ok:
            result.output_format = fmt
        return result

    # ========================================================================
    # Execution
    # ========================================================================

    async def _run(
        self,
        owner: Hashable,
        key: CacheKey,
        work: Callable[[CancelToken], np.ndarray | bytes],
        on_wait: Callable[[Hashable], object] | None,
    ) -> JobResult:
        flavor, algorithm = key
        try:
            async with self.gate.admit(owner, on_wait=on_wait) as job:
                job.cancel.raise_if_cancelled()
                logger.info(
                    "[Recolorizer] Job %d for %r: %s/%s",
                    job.id,
                    owner,
                    flavor.value,
                    algorithm.label,
                )
                output = await self._run_worker(job, work)
        except JobCancelled:
            logger.info("[Recolorizer] Job for %r cancelled", owner)
            return JobResult(status=JobStatus.CANCELLED)
        except FlavorLutError as e:
            logger.exception("[Recolorizer] Job for %r failed", owner)
            return JobResult(status=JobStatus.FAILED, error=e)

        return JobResult(status=JobStatus.COMPLETED, output=output)

    async def _run_worker(
        self, job: Job, work: Callable[[CancelToken], np.ndarray | bytes]
    ) -> np.ndarray | bytes:
        """
        Run ``work`` in a worker thread on behalf of an admitted job.

        If the awaiting task is cancelled (the caller abandoned the job), the
        job's token is set and the permit stays held until the thread reaches
        a checkpoint and exits; the cancellation is then re-raised.
        """
        worker = asyncio.ensure_future(asyncio.to_thread(work, job.cancel))
        try:
            return await asyncio.shield(worker)
        except asyncio.CancelledError:
            job.cancel.cancel()
            logger.info(
                "[Recolorizer] Job %d for %r abandoned, waiting for its worker to stop",
                job.id,
                job.owner,
            )
            await asyncio.wait({worker})
            if not worker.cancelled() and worker.exception() is not None:
                logger.debug(
                    "[Recolorizer] Abandoned job %d stopped with %r", job.id, worker.exception()
                )
            raise
