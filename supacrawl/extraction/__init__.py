"""Extraction package: scrape/crawl API client and crawl status poller."""

from supacrawl.extraction.client import ExtractionClient
from supacrawl.extraction.models import (
    CrawlJob,
    CrawlStatus,
    Metadata,
    PageData,
    ScrapeResult,
    SessionResult,
)
from supacrawl.extraction.poller import CrawlPoller, PollOutcome, PollPolicy, PollState

__all__ = [
    "ExtractionClient",
    "CrawlJob",
    "CrawlStatus",
    "Metadata",
    "PageData",
    "ScrapeResult",
    "SessionResult",
    "CrawlPoller",
    "PollOutcome",
    "PollPolicy",
    "PollState",
]
