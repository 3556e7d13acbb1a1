"""Tests for the crawl status poller.

The extraction client is a ``MagicMock`` whose ``crawl_status`` side effect
replays a scripted sequence of snapshots.  Waiting is replaced by a recorder
so no test sleeps; the recorded delays are the poll schedule.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from supacrawl.errors import (
    CrawlFailed,
    CrawlTimedOut,
    ParseError,
    RequestFailed,
)
from supacrawl.extraction.models import CrawlStatus
from supacrawl.extraction.poller import CrawlPoller, PollPolicy, PollState


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(status: str, **extra) -> CrawlStatus:
    return CrawlStatus.model_validate({"status": status, **extra})


class _Recorder:
    """Stand-in for the poller's wait: records delays, never sleeps."""

    def __init__(self, cancel_after: int | None = None) -> None:
        self.delays: list[float] = []
        self.cancel_after = cancel_after

    def __call__(self, delay: float) -> bool:
        self.delays.append(delay)
        return self.cancel_after is not None and len(self.delays) > self.cancel_after


def _poller(responses, policy: PollPolicy | None = None, wait=None):
    client = MagicMock()
    client.crawl_status.side_effect = list(responses)
    wait = wait or _Recorder()
    return CrawlPoller(client, policy or PollPolicy(), wait=wait), client, wait


# ---------------------------------------------------------------------------
# Terminal states
# ---------------------------------------------------------------------------

class TestTerminalStates:
    def test_completed_after_non_terminal_ticks(self) -> None:
        final = _status("completed", data=[{"metadata": {"description": "hi"}}])
        poller, client, wait = _poller([_status("scraping"), final])

        outcome = poller.run("job-1")

        assert outcome.state is PollState.COMPLETED
        assert outcome.status is final
        assert outcome.error is None
        assert outcome.attempts == 2
        assert poller.state is PollState.COMPLETED
        assert wait.delays == [5.0, 5.0]
        client.crawl_status.assert_called_with("job-1")

    def test_failed_status_surfaces_crawl_failed(self) -> None:
        poller, _, _ = _poller([_status("failed")])

        outcome = poller.run("job-1")

        assert outcome.state is PollState.FAILED
        assert isinstance(outcome.error, CrawlFailed)
        assert str(outcome.error) == "Crawl failed"

    def test_parse_error_stops_polling(self) -> None:
        poller, client, _ = _poller([_status("scraping"), ParseError("Invalid JSON response: x")])

        outcome = poller.run("job-1")

        assert outcome.state is PollState.ERRORED
        assert isinstance(outcome.error, ParseError)
        assert client.crawl_status.call_count == 2

    def test_request_failure_stops_polling(self) -> None:
        poller, client, _ = _poller([RequestFailed("Job not found", status=404)])

        outcome = poller.run("job-1")

        assert outcome.state is PollState.ERRORED
        assert str(outcome.error) == "Job not found"
        assert client.crawl_status.call_count == 1


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

class TestSchedule:
    def test_waits_before_first_request(self) -> None:
        """The first status request happens one interval after the crawl starts."""
        order: list[str] = []
        client = MagicMock()
        client.crawl_status.side_effect = lambda job_id: order.append("request") or _status("completed")

        def wait(delay: float) -> bool:
            order.append(f"wait {delay}")
            return False

        CrawlPoller(client, PollPolicy(interval=5.0), wait=wait).run("job-1")

        assert order == ["wait 5.0", "request"]

    def test_progress_reported_for_each_non_terminal_snapshot(self) -> None:
        snapshots = [
            _status("scraping", total=10, completed=1),
            _status("scraping", total=10, completed=6),
            _status("completed", total=10, completed=10),
        ]
        poller, _, _ = _poller(snapshots)
        seen: list[int] = []

        poller.run("job-1", on_progress=lambda s: seen.append(s.completed))

        assert seen == [1, 6]

    def test_backoff_grows_interval_up_to_cap(self) -> None:
        policy = PollPolicy(interval=2.0, backoff=2.0, max_interval=5.0, timeout=None)
        responses = [_status("scraping")] * 4 + [_status("completed")]
        poller, _, wait = _poller(responses, policy)

        poller.run("job-1")

        assert wait.delays == [2.0, 4.0, 5.0, 5.0, 5.0]

    def test_fixed_cadence_by_default(self) -> None:
        responses = [_status("scraping")] * 3 + [_status("completed")]
        poller, _, wait = _poller(responses)

        poller.run("job-1")

        assert wait.delays == [5.0] * 4


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------

class TestBudgets:
    def test_timeout_transitions_to_timed_out(self) -> None:
        policy = PollPolicy(interval=5.0, timeout=12.0)
        poller, client, wait = _poller([_status("scraping")] * 5, policy)

        outcome = poller.run("job-1")

        assert outcome.state is PollState.TIMED_OUT
        assert isinstance(outcome.error, CrawlTimedOut)
        assert client.crawl_status.call_count == 2
        assert sum(wait.delays) <= 12.0

    def test_max_attempts_transitions_to_timed_out(self) -> None:
        policy = PollPolicy(interval=1.0, timeout=None, max_attempts=3)
        poller, client, _ = _poller([_status("scraping")] * 5, policy)

        outcome = poller.run("job-1")

        assert outcome.state is PollState.TIMED_OUT
        assert outcome.attempts == 3
        assert client.crawl_status.call_count == 3

    def test_unbounded_policy_keeps_polling(self) -> None:
        policy = PollPolicy.unbounded(interval=5.0)
        responses = [_status("scraping")] * 500 + [_status("completed")]
        poller, client, _ = _poller(responses, policy)

        outcome = poller.run("job-1")

        assert policy.timeout is None and policy.max_attempts is None
        assert outcome.state is PollState.COMPLETED
        assert client.crawl_status.call_count == 501


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class TestCancellation:
    def test_cancel_during_wait(self) -> None:
        wait = _Recorder(cancel_after=1)
        poller, client, _ = _poller([_status("scraping")] * 3, wait=wait)

        outcome = poller.run("job-1")

        assert outcome.state is PollState.CANCELLED
        assert outcome.error is None
        assert client.crawl_status.call_count == 1

    def test_cancel_before_run_issues_no_request(self) -> None:
        poller, client, _ = _poller([_status("completed")])
        poller.cancel()

        outcome = poller.run("job-1")

        assert outcome.state is PollState.CANCELLED
        client.crawl_status.assert_not_called()

    def test_default_wait_returns_immediately_once_cancelled(self) -> None:
        client = MagicMock()
        poller = CrawlPoller(client, PollPolicy(interval=3600.0, timeout=None))
        poller.cancel()

        outcome = poller.run("job-1")

        assert outcome.state is PollState.CANCELLED
        client.crawl_status.assert_not_called()


class TestPolicyFromSettings:
    def test_reads_poll_settings(self) -> None:
        from supacrawl.config import Settings

        s = Settings()
        s.crawl_poll_interval = 2.0
        s.crawl_poll_backoff = 1.5
        s.crawl_poll_max_interval = 10.0
        s.crawl_poll_timeout = None
        s.crawl_poll_max_attempts = 7

        policy = PollPolicy.from_settings(s)

        assert policy == PollPolicy(
            interval=2.0, backoff=1.5, max_interval=10.0, timeout=None, max_attempts=7
        )


class TestPolicyValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"interval": 0.0},
            {"interval": -1.0},
            {"backoff": 0.5},
            {"interval": 5.0, "timeout": 3.0},
            {"max_attempts": 0},
        ],
    )
    def test_rejects_invalid_policy(self, kwargs) -> None:
        with pytest.raises(ValueError):
            PollPolicy(**kwargs)

    def test_timeout_equal_to_interval_allows_one_request(self) -> None:
        policy = PollPolicy(interval=5.0, timeout=5.0)
        poller, client, wait = _poller([_status("scraping")] * 3, policy)

        outcome = poller.run("job-1")

        assert outcome.state is PollState.TIMED_OUT
        assert client.crawl_status.call_count == 1
        assert wait.delays == [5.0]


@pytest.mark.parametrize("status", ["scraping", "queued", "waiting"])
def test_any_non_terminal_status_keeps_polling(status: str) -> None:
    poller, client, _ = _poller([_status(status), _status("completed")])

    outcome = poller.run("job-1")

    assert outcome.state is PollState.COMPLETED
    assert client.crawl_status.call_count == 2
