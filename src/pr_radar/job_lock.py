"""Named, TTL'd mutual exclusion for scheduled batch jobs."""

from __future__ import annotations

import logging
import os
import socket
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from pr_radar.exceptions import JobLockedError
from pr_radar.store import Store

logger = logging.getLogger(__name__)

STALE_PR_ALERTS_JOB = "stale_pr_alerts"

DEFAULT_TTL = timedelta(minutes=60)


def _default_owner() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


class JobLock:
    """A lease on a single row of the ``job_locks`` table.

    A lease older than *ttl* counts as abandoned: :meth:`is_locked` clears
    it before answering, and :meth:`acquire` takes it over, so a crashed
    worker cannot wedge the schedule.
    """

    def __init__(
        self,
        store: Store,
        job_name: str,
        ttl: timedelta = DEFAULT_TTL,
        owner: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not job_name:
            raise ValueError("job_name must not be empty")
        self.store = store
        self.job_name = job_name
        self.ttl = ttl
        self.owner = owner or _default_owner()
        self._clock = clock or (lambda: datetime.now(UTC))

    def is_locked(self) -> bool:
        """Return True if a live lease exists, releasing an expired one first."""
        now = self._clock()
        if self.store.release_expired_lock(self.job_name, now, self.ttl):
            logger.warning("Released expired lock for job %s", self.job_name)
            return False
        state = self.store.get_lock(self.job_name)
        return state is not None and state.is_locked

    def acquire(self) -> bool:
        """Try to take the lease. Returns False if another holder owns it."""
        acquired = self.store.try_acquire_lock(
            self.job_name, self.owner, self._clock(), self.ttl
        )
        if acquired:
            logger.info("Acquired lock for job %s as %s", self.job_name, self.owner)
        else:
            logger.info("Lock for job %s is held elsewhere", self.job_name)
        return acquired

    def release(self) -> bool:
        """Release the lease if this instance still owns it."""
        released = self.store.release_lock(self.job_name, self._clock(), owner=self.owner)
        if not released:
            logger.warning(
                "Lock for job %s was not held by %s at release", self.job_name, self.owner
            )
        return released

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[JobLock]:
        """Hold the lease for the duration of the block.

        Raises:
            JobLockedError: If the lease is held by someone else.
        """
        if not self.acquire():
            raise JobLockedError(self.job_name)
        try:
            yield self
        finally:
            self.release()
