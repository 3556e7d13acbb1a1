"""Crawl status poller.

A crawl job is followed by requesting its status once per tick until it
reaches a terminal status.  The cadence and the budget come from a
:class:`PollPolicy`; the default is a fixed 5-second interval capped at
30 minutes of waiting, and :meth:`PollPolicy.unbounded` polls forever.

State machine::

    POLLING --completed--> COMPLETED
    POLLING --failed-----> FAILED
    POLLING --bad reply--> ERRORED
    POLLING --budget-----> TIMED_OUT
    POLLING --cancel()---> CANCELLED
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from supacrawl.config import Settings
from supacrawl.errors import (
    CrawlFailed,
    CrawlTimedOut,
    ParseError,
    RequestFailed,
    SupacrawlError,
)
from supacrawl.extraction.client import ExtractionClient
from supacrawl.extraction.models import CrawlStatus

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[CrawlStatus], None]


class PollState(str, enum.Enum):
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    ERRORED = "errored"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PollPolicy:
    """When to poll and when to give up.

    ``timeout`` bounds the total scheduled wait in seconds and
    ``max_attempts`` the number of status requests; ``None`` disables either
    bound.  Each wait is the previous one times ``backoff``, capped at
    ``max_interval``.
    """

    interval: float = 5.0
    backoff: float = 1.0
    max_interval: float = 60.0
    timeout: Optional[float] = 1800.0
    max_attempts: Optional[int] = None

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {self.interval:g}")
        if self.backoff < 1:
            raise ValueError(f"Poll backoff must be at least 1, got {self.backoff:g}")
        if self.timeout is not None and self.timeout < self.interval:
            raise ValueError(
                f"Poll timeout ({self.timeout:g}s) is shorter than the first "
                f"interval ({self.interval:g}s)"
            )
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"Poll max_attempts must be at least 1, got {self.max_attempts}")

    @classmethod
    def unbounded(cls, interval: float = 5.0) -> PollPolicy:
        """Poll at a fixed cadence until the job ends, however long that takes."""
        return cls(interval=interval, timeout=None, max_attempts=None)

    @classmethod
    def from_settings(cls, settings: Settings) -> PollPolicy:
        return cls(
            interval=settings.crawl_poll_interval,
            backoff=settings.crawl_poll_backoff,
            max_interval=settings.crawl_poll_max_interval,
            timeout=settings.crawl_poll_timeout,
            max_attempts=settings.crawl_poll_max_attempts,
        )

    def next_interval(self, current: float) -> float:
        return min(current * self.backoff, max(self.max_interval, self.interval))


@dataclass
class PollOutcome:
    state: PollState
    status: Optional[CrawlStatus] = None
    error: Optional[SupacrawlError] = None
    attempts: int = 0


class CrawlPoller:
    """Follow one crawl job to a terminal state.

    One poller instance follows one job at a time.  ``wait`` is called with
    the delay before each request and returns ``True`` when the poller was
    cancelled during the wait; the default waits on an internal event that
    :meth:`cancel` sets.
    """

    def __init__(
        self,
        client: ExtractionClient,
        policy: PollPolicy | None = None,
        wait: Callable[[float], bool] | None = None,
    ) -> None:
        self._client = client
        self.policy = policy or PollPolicy()
        self._cancelled = threading.Event()
        self._wait = wait or self._cancelled.wait
        self.state: PollState | None = None

    def cancel(self) -> None:
        """Stop polling; the running :meth:`run` returns ``CANCELLED``."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self, job_id: str, on_progress: ProgressCallback | None = None) -> PollOutcome:
        """Poll *job_id* until it completes, fails, errors, times out or is cancelled."""
        policy = self.policy
        self.state = PollState.POLLING
        delay = policy.interval
        waited = 0.0
        attempts = 0

        while True:
            if policy.max_attempts is not None and attempts >= policy.max_attempts:
                return self._finish(
                    PollState.TIMED_OUT,
                    attempts,
                    error=CrawlTimedOut(
                        f"Crawl {job_id} did not finish after {attempts} status checks"
                    ),
                )
            if policy.timeout is not None and waited + delay > policy.timeout:
                return self._finish(
                    PollState.TIMED_OUT,
                    attempts,
                    error=CrawlTimedOut(
                        f"Crawl {job_id} did not finish within {policy.timeout:g} seconds"
                    ),
                )

            if self._wait(delay) or self.cancelled:
                return self._finish(PollState.CANCELLED, attempts)
            waited += delay
            attempts += 1

            try:
                status = self._client.crawl_status(job_id)
            except (ParseError, RequestFailed) as exc:
                logger.warning("Polling crawl %s failed: %s", job_id, exc)
                return self._finish(PollState.ERRORED, attempts, error=exc)

            logger.debug(
                "Crawl %s: %s (%d/%d pages)",
                job_id, status.status, status.completed, status.total,
            )
            if status.status == "completed":
                return self._finish(PollState.COMPLETED, attempts, status=status)
            if status.status == "failed":
                return self._finish(
                    PollState.FAILED, attempts, status=status, error=CrawlFailed()
                )

            if on_progress is not None:
                on_progress(status)
            delay = policy.next_interval(delay)

    def _finish(
        self,
        state: PollState,
        attempts: int,
        status: CrawlStatus | None = None,
        error: SupacrawlError | None = None,
    ) -> PollOutcome:
        self.state = state
        logger.info("Crawl polling ended: %s after %d request(s)", state.value, attempts)
        return PollOutcome(state=state, status=status, error=error, attempts=attempts)
