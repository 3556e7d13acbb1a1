"""Error taxonomy shared by the extraction client, poller, synthesizer and session.

Every error is terminal to the action that raised it.  The session controller
catches :class:`SupacrawlError` at the action boundary and stores ``str(exc)``
as the session's error message, so the message of each class is what the user
reads.
"""

from __future__ import annotations


class SupacrawlError(Exception):
    """Base class for all errors surfaced to the user."""


class ParseError(SupacrawlError):
    """A response body was not valid JSON or did not have the expected shape."""


# The extraction client's name for a malformed response.
InvalidResponse = ParseError


class RequestFailed(SupacrawlError):
    """A request returned a non-success HTTP status or never completed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class CrawlFailed(SupacrawlError):
    """The remote crawl job reached the ``failed`` terminal status."""

    def __init__(self, message: str = "Crawl failed") -> None:
        super().__init__(message)


class CrawlTimedOut(SupacrawlError):
    """The poll policy's time or attempt budget ran out before a terminal status."""


class NoTextAvailable(SupacrawlError):
    def __init__(self, message: str = "No text available to convert to speech") -> None:
        super().__init__(message)


class SynthesisFailed(SupacrawlError):
    """The text-to-speech endpoint did not return playable audio."""

    def __init__(self, status: int | None, message: str = "Failed to generate speech") -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class Unauthorized(SynthesisFailed):
    def __init__(self, message: str = "Text-to-speech API rejected the API key") -> None:
        super().__init__(401, message)


class EmptyAudio(SynthesisFailed):
    def __init__(self, status: int | None = 200, message: str = "Received empty audio data") -> None:
        super().__init__(status, message)


class SessionBusy(SupacrawlError):
    """An action was requested while another one is in flight."""
