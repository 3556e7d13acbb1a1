"""Audio handles and the players that consume them."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


@dataclass
class AudioHandle:
    """Synthesized audio held in memory and addressable at :attr:`url`.

    A handle is released exactly once; afterwards it holds no bytes and is no
    longer served.
    """

    data: bytes
    media_type: str = "audio/mpeg"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    released: bool = False

    @property
    def url(self) -> str:
        return f"/audio/{self.id}"

    def release(self) -> None:
        if not self.released:
            self.released = True
            self.data = b""
            logger.debug("Released audio handle %s", self.id)

    def save(self, path: Path) -> Path:
        path.write_bytes(self.data)
        return path


class AudioPlayer(Protocol):
    """A sink that plays an :class:`AudioHandle`.

    ``play`` must call exactly one of ``on_ended`` / ``on_error`` once playback
    finishes, unless :meth:`stop` is called first.
    """

    def play(
        self,
        handle: AudioHandle,
        on_ended: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        ...

    def stop(self, handle: AudioHandle) -> None:
        ...


class BrowserPlayer:
    """Playback happens in the page's ``<audio>`` element.

    The page loads :attr:`AudioHandle.url` and reports ``ended``/``error``
    through the JSON API, which calls the controller's playback handlers
    directly, so nothing is done here.
    """

    def play(self, handle, on_ended, on_error) -> None:  # type: ignore[no-untyped-def]
        logger.debug("Audio %s handed to the browser at %s", handle.id, handle.url)

    def stop(self, handle: AudioHandle) -> None:
        pass


class FilePlayer:
    """Write the audio to *path* and report playback as finished."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def play(self, handle, on_ended, on_error) -> None:  # type: ignore[no-untyped-def]
        try:
            handle.save(self.path)
        except OSError as exc:
            on_error(f"Could not write audio to {self.path}: {exc}")
            return
        on_ended()

    def stop(self, handle: AudioHandle) -> None:
        pass
