"""Wire models for the content-extraction API.

Every model keeps unknown keys (``extra="allow"``) so a result dumped back to
JSON is the body the API returned.  ``ScrapeResult`` and ``CrawlStatus`` carry
a class-level ``kind`` tag that is neither read from nor written to the body;
callers branch on it instead of probing the shape of ``data``.
"""

from __future__ import annotations

from typing import Any, ClassVar, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

DEFAULT_FORMATS: tuple[str, ...] = ("markdown", "html")

TERMINAL_STATUSES = frozenset({"completed", "failed"})


class WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    _raw: Optional[dict[str, Any]] = PrivateAttr(default=None)

    @classmethod
    def from_wire(cls, body: Any):  # type: ignore[no-untyped-def]
        """Validate a decoded response body and remember it verbatim."""
        model = cls.model_validate(body)
        model._raw = body
        return model

    def to_wire(self) -> dict[str, Any]:
        """Return the body as received, or a dump with the API's key names."""
        if self._raw is not None:
            return self._raw
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Metadata(WireModel):
    """Page metadata; ``title`` and ``description`` are conventionally present."""

    title: Optional[str] = None
    description: Optional[str] = None


class PageData(WireModel):
    markdown: Optional[str] = None
    html: Optional[str] = None
    metadata: Optional[Metadata] = None

    @property
    def description(self) -> str:
        if self.metadata is None:
            return ""
        return self.metadata.description or ""


class ExtractionRequest(BaseModel):
    url: str
    formats: List[Literal["markdown", "html"]] = Field(
        default_factory=lambda: list(DEFAULT_FORMATS)
    )


class ScrapeResult(WireModel):
    kind: ClassVar[Literal["scrape"]] = "scrape"
    success: bool
    data: PageData


class CrawlJob(WireModel):
    id: str


class CrawlStatus(WireModel):
    kind: ClassVar[Literal["crawl"]] = "crawl"
    status: str
    total: int = 0
    completed: int = 0
    credits_used: int = Field(default=0, alias="creditsUsed")
    data: List[PageData] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _null_data_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


SessionResult = Union[ScrapeResult, CrawlStatus]


def result_description(result: SessionResult) -> str:
    """Return the text to read aloud for *result*, or ``""`` if there is none.

    For a crawl this is the description of the first page; for a scrape, the
    description of the scraped page.
    """
    if result.kind == "crawl":
        return result.data[0].description if result.data else ""
    return result.data.description
