"""
JobGate: bounded concurrency and cooperative cancellation for heavy jobs.

Admission suspends (never busy-waits) until fewer than ``max_jobs`` jobs are
in flight. Each admitted job carries a CancelToken; ``request_cancel(owner)``
sets it and the job notices at its next checkpoint. Only the most recent job
per owner is tracked. Queueing several requests from the same owner is left
to the caller.

Example:
    >>> gate = JobGate(max_jobs=2)
    >>> async with gate.admit(user_id, on_wait=notify_queued) as job:
    ...     job.cancel.raise_if_cancelled()
    ...     result = await asyncio.to_thread(work, job.cancel)
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections.abc import AsyncIterator, Callable, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from flavorlut.constants import DEFAULT_MAX_CONCURRENT_JOBS
from flavorlut.errors import JobCancelled
from flavorlut.validators import validate_positive

logger = logging.getLogger(__name__)

_job_ids = itertools.count(1)


class CancelToken:
    """
    Shared cancellation flag, safe to read from worker threads.

    The gate sets it; the running job only reads it at checkpoints.
    """

    __slots__ = ("owner", "_event")

    def __init__(self, owner: Hashable | None = None):
        self.owner = owner
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """True once cancellation was requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """
        Checkpoint: raise if cancellation was requested.

        Raises:
            JobCancelled: If the token is set
        """
        if self._event.is_set():
            raise JobCancelled(self.owner)

    def __repr__(self) -> str:
        return f"CancelToken(owner={self.owner!r}, cancelled={self.cancelled})"


@dataclass
class Job:
    """One admitted transform request."""

    owner: Hashable
    cancel: CancelToken
    id: int = field(default_factory=lambda: next(_job_ids))


class JobGate:
    """
    Limits concurrently running jobs and tracks per-owner cancel tokens.

    Attributes:
        max_jobs: Maximum number of jobs holding a permit at once
    """

    @validate_positive("max_jobs")
    def __init__(self, max_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS):
        """
        Initialize the gate.

        Args:
            max_jobs: Concurrent job limit (default 2)
        """
        self.max_jobs = int(max_jobs)
        self._semaphore = asyncio.Semaphore(self.max_jobs)
        self._tokens: dict[Hashable, CancelToken] = {}
        self._tokens_lock = threading.Lock()
        self._in_flight = 0

        logger.info("[JobGate] Initialized with max_jobs=%d", self.max_jobs)

    @property
    def in_flight(self) -> int:
        """Number of jobs currently holding a permit."""
        return self._in_flight

    @property
    def available(self) -> int:
        """Number of free permits."""
        return self.max_jobs - self._in_flight

    @property
    def would_wait(self) -> bool:
        """True if a new admission would have to wait for a permit."""
        return self._semaphore.locked()

    @asynccontextmanager
    async def admit(
        self,
        owner: Hashable,
        on_wait: Callable[[Hashable], object] | None = None,
    ) -> AsyncIterator[Job]:
        """
        Admit a job for ``owner``, waiting for a free permit if needed.

        The owner's token is registered before waiting, so a cancellation
        requested while queued is seen at the job's first checkpoint. The
        permit and the token registration are released when the scope exits,
        whatever the outcome.

        Args:
            owner: Owner identifier used for cancellation
            on_wait: Called once with ``owner`` if the job has to wait

        Yields:
            The admitted Job
        """
        token = CancelToken(owner)
        with self._tokens_lock:
            self._tokens[owner] = token

        try:
            if self._semaphore.locked():
                logger.info("[JobGate] %r queued (%d in flight)", owner, self._in_flight)
                if on_wait is not None:
                    on_wait(owner)

            async with self._semaphore:
                self._in_flight += 1
                job = Job(owner=owner, cancel=token)
                logger.info("[JobGate] Admitted job %d for %r", job.id, owner)
                try:
                    yield job
                finally:
                    self._in_flight -= 1
                    logger.debug("[JobGate] Released job %d for %r", job.id, owner)
        finally:
            with self._tokens_lock:
                if self._tokens.get(owner) is token:
                    del self._tokens[owner]

    def request_cancel(self, owner: Hashable) -> bool:
        """
        Cancel the tracked job of ``owner``.

        Args:
            owner: Owner identifier

        Returns:
            True if a job (running or queued) was found and flagged
        """
        with self._tokens_lock:
            token = self._tokens.get(owner)

        if token is None:
            logger.debug("[JobGate] No job to cancel for %r", owner)
            return False

        token.cancel()
        logger.info("[JobGate] Cancellation requested for %r", owner)
        return True

    def is_tracked(self, owner: Hashable) -> bool:
        """True if ``owner`` has a queued or running job."""
        with self._tokens_lock:
            return owner in self._tokens
