"""Content capture - fetches the rendered text of a pane."""

import logging

from claudeye.backends.base import MultiplexerBackend
from claudeye.models.session import CapturedContent, PaneHandle

logger = logging.getLogger(__name__)


class ContentCapture:
    """Captures a bounded window of a pane's buffer, scrollback included."""

    def __init__(self, backend: MultiplexerBackend, capture_lines: int = 100):
        """Initialize the capture adapter.

        Args:
            backend: Multiplexer backend.
            capture_lines: Maximum number of trailing lines kept per capture.
        """
        self._backend = backend
        self.capture_lines = capture_lines

    def capture(self, pane: PaneHandle) -> CapturedContent:
        """Capture a pane's content.

        Raises:
            CaptureFailed: If this pane could not be captured. Other panes
                are unaffected.
        """
        text = self._backend.capture_pane(pane.pane_id, self.capture_lines)
        content = CapturedContent.from_text(text, max_lines=self.capture_lines)
        logger.debug(f"Captured {len(content)} lines from {pane.pane_id} ({pane.target})")
        return content
