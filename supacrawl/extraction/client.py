"""HTTP client for the remote scrape/crawl API.

Three calls share one response-handling contract (see :meth:`ExtractionClient._handle`):
the body must be JSON, the status must be 2xx, and the JSON must match the
declared model.  Nothing is retried or cached.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Type, TypeVar

import httpx
from pydantic import ValidationError

from supacrawl.errors import ParseError, RequestFailed
from supacrawl.extraction.models import (
    DEFAULT_FORMATS,
    CrawlJob,
    CrawlStatus,
    ExtractionRequest,
    ScrapeResult,
    WireModel,
)

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=WireModel)


def _error_message(body: Any, default: str) -> str:
    """Pick the human-readable message out of an error body."""
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class ExtractionClient:
    """Scrape one page or start and follow a crawl job.

    Args:
        base_url: API root, e.g. ``https://api.firecrawl.dev/v1``.
        api_key: Bearer token sent with every request.
        timeout: Per-request timeout in seconds.
        http_client: Optional pre-built ``httpx.Client``.  When given, the
            caller owns it and :meth:`close` leaves it open.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ExtractionClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scrape_one(
        self, url: str, formats: Iterable[str] = DEFAULT_FORMATS
    ) -> ScrapeResult:
        """Scrape a single page synchronously."""
        request = ExtractionRequest(url=url, formats=list(formats))
        response = self._send("POST", "/scrape", json=request.model_dump())
        return self._handle(response, ScrapeResult, "Failed to scrape URL")

    def start_crawl(
        self,
        url: str,
        limit: int = 100,
        formats: Iterable[str] = DEFAULT_FORMATS,
    ) -> CrawlJob:
        """Start an asynchronous crawl of at most *limit* pages and return its job."""
        request = ExtractionRequest(url=url, formats=list(formats))
        payload = {
            "url": request.url,
            "limit": limit,
            "scrapeOptions": {"formats": request.formats},
        }
        response = self._send("POST", "/crawl", json=payload)
        job = self._handle(response, CrawlJob, "Failed to start crawl")
        logger.info("Started crawl %s for %s (limit=%d)", job.id, url, limit)
        return job

    def crawl_status(self, job_id: str) -> CrawlStatus:
        """Fetch the current status snapshot of crawl *job_id*."""
        response = self._send("GET", f"/crawl/{job_id}")
        return self._handle(response, CrawlStatus, "Failed to fetch crawl status")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            return self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            raise RequestFailed(f"Request to {url} failed: {exc}") from exc
        except RuntimeError as exc:
            # httpx raises RuntimeError once the client has been closed.
            if not self._client.is_closed:
                raise
            raise RequestFailed(f"Request to {url} failed: client is closed") from exc

    @staticmethod
    def _handle(
        response: httpx.Response, model: Type[_ModelT], default_message: str
    ) -> _ModelT:
        text = response.text
        try:
            body = response.json()
        except ValueError as exc:
            raise ParseError(f"Invalid JSON response: {text}") from exc

        if not response.is_success:
            raise RequestFailed(
                _error_message(body, default_message), status=response.status_code
            )

        try:
            return model.from_wire(body)
        except ValidationError as exc:
            raise ParseError(f"Unexpected response shape: {exc}") from exc
