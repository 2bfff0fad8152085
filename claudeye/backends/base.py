"""Abstract base class for terminal multiplexer backends.

Defines the narrow capability interface the pipeline needs from the
multiplexer, plus the errors it reports.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from claudeye.models.session import PaneHandle


class MultiplexerError(Exception):
    """Base class for errors reported by a multiplexer backend."""


class BackendUnavailable(MultiplexerError):
    """The multiplexer is not installed, not running, or cannot list panes.

    Fatal: nothing can be monitored without it.
    """


class CaptureFailed(MultiplexerError):
    """Capturing a single pane failed or timed out."""

    def __init__(self, pane_id: str, reason: str):
        self.pane_id = pane_id
        self.reason = reason
        super().__init__(f"Capture failed for pane {pane_id}: {reason}")


class ActivationFailed(MultiplexerError):
    """A pane could not be brought into focus (usually because it is gone)."""

    def __init__(self, pane_id: str, reason: str):
        self.pane_id = pane_id
        self.reason = reason
        super().__init__(f"Cannot activate pane {pane_id}: {reason}")


@dataclass(frozen=True)
class RawPane:
    """A pane as listed by the multiplexer, before command resolution."""

    pane: PaneHandle
    command: str  # Foreground command as reported (may be a version number)


class MultiplexerBackend(ABC):
    """Abstract interface for multiplexer backends.

    Backends provide the ability to:
    - Enumerate panes with their foreground command
    - Capture pane content including scrollback
    - Focus a pane
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier (e.g., 'tmux')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is installed and running."""

    @abstractmethod
    def list_panes(self) -> list[RawPane]:
        """List every pane known to the multiplexer.

        Raises:
            BackendUnavailable: If the listing cannot be obtained.
        """

    @abstractmethod
    def capture_pane(self, pane_id: str, lines: int) -> str:
        """Capture the trailing ``lines`` lines of a pane, scrollback included.

        Raises:
            CaptureFailed: If the pane cannot be captured.
        """

    @abstractmethod
    def activate_pane(self, pane_id: str) -> None:
        """Bring the pane into focus.

        Raises:
            ActivationFailed: If the pane no longer exists or cannot be focused.
        """

    def terminate_all(self) -> None:
        """Kill any in-flight child processes. Default: nothing to kill."""

    def resume(self) -> None:
        """Accept new invocations again after terminate_all. Default: nothing to do."""
