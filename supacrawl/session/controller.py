"""Session controller: the single owner of the user's session.

The controller holds the URL, the busy flag, the last result and error, and
the audio handle.  It runs the two extraction actions (scrape, crawl) and the
speech side-flow, catching every :class:`~supacrawl.errors.SupacrawlError` at
the action boundary and storing its message as the session error.

Methods block on network calls and are safe to call from worker threads: each
state transition happens under one lock, network calls happen outside it.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from supacrawl.config import Settings
from supacrawl.errors import NoTextAvailable, SessionBusy, SupacrawlError
from supacrawl.extraction.client import ExtractionClient
from supacrawl.extraction.models import (
    CrawlJob,
    CrawlStatus,
    SessionResult,
    result_description,
)
from supacrawl.extraction.poller import (
    CrawlPoller,
    PollOutcome,
    PollPolicy,
    PollState,
    ProgressCallback,
)
from supacrawl.session.state import SessionState
from supacrawl.speech.audio import AudioHandle, AudioPlayer, BrowserPlayer
from supacrawl.speech.synthesizer import SpeechSynthesizer

logger = logging.getLogger(__name__)

PLAYBACK_ERROR = "Error playing audio"


def truncate_text(text: str, limit: int) -> str:
    """Return *text* cut to at most *limit* characters."""
    return text if len(text) <= limit else text[:limit]


class SessionController:
    def __init__(
        self,
        client: ExtractionClient,
        synthesizer: SpeechSynthesizer,
        player: AudioPlayer | None = None,
        poll_policy: PollPolicy | None = None,
        poll_wait: Callable[[float], bool] | None = None,
        crawl_limit: int = 100,
        max_speech_chars: int = 2500,
    ) -> None:
        self._client = client
        self._synthesizer = synthesizer
        self._player: AudioPlayer = player or BrowserPlayer()
        self.poll_policy = poll_policy or PollPolicy()
        self._poll_wait = poll_wait
        self.crawl_limit = crawl_limit
        self.max_speech_chars = max_speech_chars

        self._lock = threading.RLock()
        self._url = ""
        self._busy = False
        self._result: Optional[SessionResult] = None
        self._error: Optional[str] = None
        self._is_playing = False
        self._audio: Optional[AudioHandle] = None
        self._crawl_status: Optional[CrawlStatus] = None
        self._poller: Optional[CrawlPoller] = None

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionState:
        with self._lock:
            return SessionState(
                url=self._url,
                busy=self._busy,
                result=self._result,
                error=self._error,
                is_playing=self._is_playing,
                audio=self._audio,
                crawl_status=self._crawl_status,
            )

    @property
    def busy(self) -> bool:
        return self._busy

    def set_url(self, url: str) -> None:
        with self._lock:
            self._url = url

    def audio(self, handle_id: str) -> AudioHandle | None:
        """Return the held audio handle if its id is *handle_id*."""
        with self._lock:
            if self._audio is not None and self._audio.id == handle_id:
                return self._audio
            return None

    # ------------------------------------------------------------------
    # Scrape
    # ------------------------------------------------------------------

    def run_scrape(self, url: str | None = None) -> SessionState:
        """Scrape *url* (default: the session URL) and store the result.

        On failure the error message is stored and the previous result kept.

        Raises:
            SessionBusy: Another action is in flight.
            ValueError: No URL was given.
        """
        url = self._begin(url)
        try:
            result = self._client.scrape_one(url)
        except SupacrawlError as exc:
            self._store_error("Scrape", exc)
        else:
            with self._lock:
                self._result = result
                self._error = None
        finally:
            with self._lock:
                self._busy = False
        return self.snapshot()

    # ------------------------------------------------------------------
    # Crawl
    # ------------------------------------------------------------------

    def run_crawl(
        self, url: str | None = None, on_progress: ProgressCallback | None = None
    ) -> PollOutcome | None:
        """Start a crawl and block until polling ends.

        Returns the poll outcome, or ``None`` if the crawl could not be started.
        """
        job = self.begin_crawl(url)
        if job is None:
            return None
        return self.follow_crawl(job, on_progress)

    def begin_crawl(self, url: str | None = None) -> CrawlJob | None:
        """Start a crawl job; the session stays busy until :meth:`follow_crawl` ends."""
        url = self._begin(url)
        try:
            job = self._client.start_crawl(url, limit=self.crawl_limit)
        except SupacrawlError as exc:
            self._store_error("Crawl start", exc)
            with self._lock:
                self._busy = False
            return None

        with self._lock:
            self._poller = CrawlPoller(self._client, self.poll_policy, wait=self._poll_wait)
        return job

    def follow_crawl(
        self, job: CrawlJob, on_progress: ProgressCallback | None = None
    ) -> PollOutcome:
        """Poll *job* to a terminal state and store its result or error."""
        with self._lock:
            poller = self._poller
            if poller is None:
                poller = self._poller = CrawlPoller(
                    self._client, self.poll_policy, wait=self._poll_wait
                )

        def _progress(status: CrawlStatus) -> None:
            with self._lock:
                self._crawl_status = status
            if on_progress is not None:
                on_progress(status)

        outcome: PollOutcome | None = None
        try:
            outcome = poller.run(job.id, _progress)
        finally:
            with self._lock:
                if outcome is not None:
                    if outcome.state is PollState.COMPLETED:
                        self._result = outcome.status
                        self._error = None
                    elif outcome.state is not PollState.CANCELLED:
                        self._error = str(outcome.error)
                self._busy = False
                self._poller = None
                self._crawl_status = None
        return outcome

    def cancel_crawl(self) -> bool:
        """Cancel the active crawl poll.  Returns ``False`` if none is running."""
        with self._lock:
            if self._poller is None:
                return False
            self._poller.cancel()
            return True

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------

    def speak(self) -> AudioHandle | None:
        """Read the current result's description aloud.

        Does nothing when there is no result.  Any held audio is released
        before new audio is requested, so at most one handle is ever held.
        Returns the new handle, or ``None`` if nothing was synthesized.

        Raises:
            SessionBusy: Another action is in flight.
        """
        with self._lock:
            result = self._result
            if result is None:
                return None
            if self._busy:
                raise SessionBusy("Another action is in progress")
            text = result_description(result)
            if not text:
                self._store_error("Speech", NoTextAvailable())
                return None
            self._release_audio()
            self._busy = True

        text = truncate_text(text, self.max_speech_chars)
        try:
            handle = self._synthesizer.synthesize(text)
        except SupacrawlError as exc:
            self._store_error("Speech", exc)
            with self._lock:
                self._is_playing = False
                self._busy = False
            return None

        with self._lock:
            self._audio = handle
            self._is_playing = True
            self._busy = False

        self._player.play(
            handle,
            on_ended=lambda: self.playback_ended(handle.id),
            on_error=lambda message: self.playback_failed(handle.id, message),
        )
        return handle

    def stop(self) -> None:
        """Stop playback and release the held audio, if any."""
        with self._lock:
            self._release_audio()

    def playback_ended(self, handle_id: str | None = None) -> None:
        """Playback of *handle_id* reached its natural end."""
        with self._lock:
            if self._is_current(handle_id):
                self._release_audio()

    def playback_failed(self, handle_id: str | None = None, message: str = PLAYBACK_ERROR) -> None:
        with self._lock:
            if self._is_current(handle_id):
                self._error = message or PLAYBACK_ERROR
                self._release_audio()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel any crawl poll, release held audio and close HTTP clients."""
        self.cancel_crawl()
        self.stop()
        self._client.close()
        self._synthesizer.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _begin(self, url: str | None) -> str:
        with self._lock:
            if self._busy:
                raise SessionBusy("Another action is in progress")
            if url is not None:
                self._url = url
            if not self._url.strip():
                raise ValueError("A URL is required")
            self._busy = True
            self._error = None
            return self._url

    def _store_error(self, action: str, exc: SupacrawlError) -> None:
        logger.info("%s failed: %s", action, exc)
        with self._lock:
            self._error = str(exc)

    def _is_current(self, handle_id: str | None) -> bool:
        if self._audio is None:
            return False
        return handle_id is None or self._audio.id == handle_id

    def _release_audio(self) -> None:
        # Caller holds the lock.
        if self._audio is not None:
            self._player.stop(self._audio)
            self._audio.release()
        self._audio = None
        self._is_playing = False


def build_controller(settings: Settings, player: AudioPlayer | None = None) -> SessionController:
    """Wire a controller from *settings*."""
    client = ExtractionClient(
        settings.api_base_url,
        settings.crawler_api_key,
        timeout=settings.request_timeout,
    )
    synthesizer = SpeechSynthesizer(
        settings.elevenlabs_api_key,
        voice_id=settings.elevenlabs_voice_id,
        model_id=settings.elevenlabs_model_id,
        base_url=settings.elevenlabs_base_url,
        stream=settings.tts_stream,
        timeout=settings.request_timeout,
    )
    return SessionController(
        client,
        synthesizer,
        player=player,
        poll_policy=PollPolicy.from_settings(settings),
        crawl_limit=settings.crawl_limit,
        max_speech_chars=settings.tts_max_chars,
    )
