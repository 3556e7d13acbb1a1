"""Session package: the controller that owns URL, busy flag, result, error and audio."""

from supacrawl.session.controller import SessionController, build_controller, truncate_text
from supacrawl.session.state import SessionState

__all__ = ["SessionController", "SessionState", "build_controller", "truncate_text"]
