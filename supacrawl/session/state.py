"""Immutable snapshots of the session owned by :class:`SessionController`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from supacrawl.extraction.models import CrawlStatus, SessionResult
from supacrawl.speech.audio import AudioHandle


@dataclass(frozen=True)
class SessionState:
    url: str = ""
    busy: bool = False
    result: Optional[SessionResult] = None
    error: Optional[str] = None
    is_playing: bool = False
    audio: Optional[AudioHandle] = None
    # Latest non-terminal snapshot while a crawl is being polled.
    crawl_status: Optional[CrawlStatus] = None

    @property
    def result_kind(self) -> str | None:
        return self.result.kind if self.result is not None else None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view used by the web surface."""
        progress = None
        if self.crawl_status is not None:
            progress = {
                "status": self.crawl_status.status,
                "total": self.crawl_status.total,
                "completed": self.crawl_status.completed,
            }
        return {
            "url": self.url,
            "busy": self.busy,
            "error": self.error,
            "is_playing": self.is_playing,
            "audio_url": self.audio.url if self.audio is not None else None,
            "result_kind": self.result_kind,
            "result": self.result.to_wire() if self.result is not None else None,
            "progress": progress,
        }
