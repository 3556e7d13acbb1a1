"""Centralised settings for Supacrawl.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).  Settings are read once
and injected into the extraction client, the crawl poller and the speech
synthesizer; nothing else reads the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_float(name: str, default: str) -> float | None:
    """Parse a float where ``0`` (or a negative number) means "no limit"."""
    value = float(os.environ.get(name, default))
    return value if value > 0 else None


def _env_optional_int(name: str, default: str) -> int | None:
    value = int(os.environ.get(name, default))
    return value if value > 0 else None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Extraction API
    # ------------------------------------------------------------------
    crawler_api_key: str = field(
        default_factory=lambda: os.environ.get("CRAWLER_API_KEY", "")
    )
    api_base_url: str = field(
        default_factory=lambda: os.environ.get("API_BASE_URL", "https://api.firecrawl.dev/v1")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    crawl_limit: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_LIMIT", "100"))
    )

    # ------------------------------------------------------------------
    # Crawl polling
    # ------------------------------------------------------------------
    crawl_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_POLL_INTERVAL", "5.0"))
    )
    crawl_poll_backoff: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_POLL_BACKOFF", "1.0"))
    )
    crawl_poll_max_interval: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_POLL_MAX_INTERVAL", "60.0"))
    )
    crawl_poll_timeout: float | None = field(
        default_factory=lambda: _env_optional_float("CRAWL_POLL_TIMEOUT", "1800")
    )
    crawl_poll_max_attempts: int | None = field(
        default_factory=lambda: _env_optional_int("CRAWL_POLL_MAX_ATTEMPTS", "0")
    )

    # ------------------------------------------------------------------
    # Text-to-speech (ElevenLabs)
    # ------------------------------------------------------------------
    elevenlabs_api_key: str = field(
        default_factory=lambda: os.environ.get("ELEVENLABS_API_KEY", "")
    )
    elevenlabs_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1"
        )
    )
    elevenlabs_voice_id: str = field(
        # Rachel
        default_factory=lambda: os.environ.get("ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM")
    )
    elevenlabs_model_id: str = field(
        default_factory=lambda: os.environ.get("ELEVENLABS_MODEL_ID", "eleven_monolingual_v1")
    )
    tts_stream: bool = field(default_factory=lambda: _env_bool("TTS_STREAM", "true"))
    tts_max_chars: int = field(
        default_factory=lambda: int(os.environ.get("TTS_MAX_CHARS", "2500"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )


# Module-level singleton, import this everywhere:
#   from supacrawl.config import settings
settings = Settings()
