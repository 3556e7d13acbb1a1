"""ElevenLabs text-to-speech adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from supacrawl.errors import EmptyAudio, SynthesisFailed, Unauthorized
from supacrawl.speech.audio import AudioHandle

logger = logging.getLogger(__name__)

STABILITY = 0.5
SIMILARITY_BOOST = 0.5


def _detail_message(response: httpx.Response) -> str | None:
    """Return ElevenLabs' ``detail.message`` (or a plain ``detail``) if present."""
    try:
        body: Any = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    detail = body.get("detail")
    if isinstance(detail, dict):
        message = detail.get("message")
        return message if isinstance(message, str) and message else None
    if isinstance(detail, str) and detail:
        return detail
    return None


class SpeechSynthesizer:
    """Turn text into a playable :class:`AudioHandle` with one API call."""

    def __init__(
        self,
        api_key: str,
        voice_id: str = "21m00Tcm4TlvDq8ikWAM",
        model_id: str = "eleven_monolingual_v1",
        base_url: str = "https://api.elevenlabs.io/v1",
        stream: bool = True,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self.stream = stream
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    @property
    def endpoint(self) -> str:
        url = f"{self.base_url}/text-to-speech/{self.voice_id}"
        return f"{url}/stream" if self.stream else url

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def synthesize(self, text: str) -> AudioHandle:
        """Synthesize *text* and return the audio.

        Raises:
            Unauthorized: The API key was rejected (HTTP 401).
            SynthesisFailed: Any other non-success response or transport error.
            EmptyAudio: The response carried no audio bytes.
        """
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": STABILITY,
                "similarity_boost": SIMILARITY_BOOST,
            },
        }
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }
        logger.debug("Requesting speech for %d characters", len(text))
        try:
            response = self._client.post(self.endpoint, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise SynthesisFailed(None, f"Text-to-speech request failed: {exc}") from exc

        if response.status_code == 401:
            raise Unauthorized(
                _detail_message(response) or "Text-to-speech API rejected the API key"
            )
        if not response.is_success:
            raise SynthesisFailed(
                response.status_code,
                _detail_message(response) or "Failed to generate speech",
            )

        audio = response.content
        if not audio:
            raise EmptyAudio(response.status_code)

        media_type = response.headers.get("content-type", "audio/mpeg").split(";")[0]
        return AudioHandle(data=audio, media_type=media_type)
