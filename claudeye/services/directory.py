"""Process directory - finds the panes running the monitored agent.

The agent CLI is often installed as a symlink into a versions directory
(e.g. ``~/.local/share/claude/versions/2.1.50``). tmux follows the symlink and
reports the version number as the pane's command, so raw command names are
resolved through a table of installed versions before filtering.
"""

import logging
import re
import shutil
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from claudeye.backends.base import MultiplexerBackend
from claudeye.models.session import PaneHandle

logger = logging.getLogger(__name__)

VERSION_NAME_PATTERN = re.compile(r"^\d+(?:\.\d+)*")


@dataclass(frozen=True)
class CandidatePane:
    """A pane whose resolved command matches the target agent."""

    pane: PaneHandle
    command: str


def find_versions_dir(command: str) -> Path | None:
    """Locate the installed-versions directory of a command.

    Follows the executable found on PATH through its symlink and returns the
    directory holding the link target.

    Returns:
        The directory, or None if the command is missing or not a symlink.
    """
    executable = shutil.which(command)
    if executable is None:
        return None

    path = Path(executable)
    if not path.is_symlink():
        return None

    try:
        target = path.readlink()
    except OSError as e:
        logger.debug(f"Cannot read link {path}: {e}")
        return None

    if not target.is_absolute():
        target = path.parent / target
    return target.parent


def read_version_entries(directory: Path) -> frozenset[str] | None:
    """List the version-named entries of a versions directory.

    Returns:
        Entry names that look like versions, or None if the directory
        cannot be read.
    """
    try:
        return frozenset(
            entry.name for entry in directory.iterdir() if VERSION_NAME_PATTERN.match(entry.name)
        )
    except OSError as e:
        logger.debug(f"Cannot read versions directory {directory}: {e}")
        return None


class VersionResolver:
    """Maps version-qualified binary names back to the logical command name.

    The versions directory is located once; its entries are re-read lazily
    once they are older than ``refresh_seconds``.
    """

    def __init__(
        self,
        command: str,
        versions_dir: str | Path | None = None,
        refresh_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the resolver.

        Args:
            command: Logical command name (e.g. "claude").
            versions_dir: Versions directory. Located from PATH when None.
            refresh_seconds: Age after which directory entries are re-read.
            clock: Monotonic clock, injectable for tests.
        """
        self.command = command
        self.refresh_seconds = refresh_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._versions_dir = Path(versions_dir) if versions_dir else find_versions_dir(command)
        self._names: frozenset[str] = frozenset()
        self._last_refresh = self._clock()
        self._reload()

        if self._versions_dir is not None:
            logger.info(
                f"Resolving {command} versions from {self._versions_dir} "
                f"({len(self._names)} installed)"
            )

    @property
    def versions_dir(self) -> Path | None:
        return self._versions_dir

    def names(self) -> frozenset[str]:
        """Current set of known version names, refreshed when stale."""
        with self._lock:
            if self._clock() - self._last_refresh >= self.refresh_seconds:
                self._reload()
            return self._names

    def refresh(self) -> None:
        """Re-read the versions directory regardless of age."""
        with self._lock:
            self._reload()

    def resolve(self, raw_command: str) -> str:
        """Resolve a raw command name; unknown names are returned unchanged."""
        if raw_command in self.names():
            return self.command
        return raw_command

    def _reload(self) -> None:
        # A failed read keeps the previous entries
        if self._versions_dir is not None:
            entries = read_version_entries(self._versions_dir)
            if entries is not None:
                self._names = entries
        self._last_refresh = self._clock()


class ProcessDirectory:
    """Lists the multiplexer panes running the target agent."""

    def __init__(
        self,
        backend: MultiplexerBackend,
        target_command: str = "claude",
        resolver: VersionResolver | None = None,
    ):
        """Initialize the directory.

        Args:
            backend: Multiplexer backend.
            target_command: Logical command name to filter on.
            resolver: Version resolver. Built for target_command if not provided.
        """
        self._backend = backend
        self.target_command = target_command
        self._resolver = resolver or VersionResolver(target_command)

    @property
    def resolver(self) -> VersionResolver:
        return self._resolver

    def list_candidate_panes(self) -> list[CandidatePane]:
        """List panes whose resolved command equals the target, in tmux order.

        Raises:
            BackendUnavailable: If the backend cannot list panes.
        """
        candidates = []
        for raw in self._backend.list_panes():
            command = self._resolver.resolve(raw.command)
            if command == self.target_command:
                candidates.append(CandidatePane(pane=raw.pane, command=command))
        return candidates
