"""tmux multiplexer backend.

Implements the MultiplexerBackend interface using the tmux CLI. Every
invocation runs with a timeout, and in-flight children are tracked so they
can be killed as a unit on shutdown.
"""

import logging
import shutil
import subprocess
import threading

from claudeye.backends.base import (
    ActivationFailed,
    BackendUnavailable,
    CaptureFailed,
    MultiplexerBackend,
    RawPane,
)
from claudeye.models.session import PaneHandle

logger = logging.getLogger(__name__)

# Title goes last: it is free text and may contain the separator
PANE_FORMAT = "|".join(
    [
        "#{pane_id}",
        "#{session_name}",
        "#{window_index}",
        "#{pane_index}",
        "#{pane_active}",
        "#{window_active}",
        "#{pane_pid}",
        "#{pane_current_command}",
        "#{pane_current_path}",
        "#{pane_title}",
    ]
)
PANE_FIELD_COUNT = 10


def parse_pane_line(line: str) -> RawPane | None:
    """Parse one line of ``tmux list-panes -F PANE_FORMAT`` output.

    Args:
        line: A single output line.

    Returns:
        RawPane, or None if the line is malformed.
    """
    parts = line.split("|", PANE_FIELD_COUNT - 1)
    if len(parts) < PANE_FIELD_COUNT:
        return None

    (
        pane_id,
        session_name,
        window_index,
        pane_index,
        pane_active,
        window_active,
        pid_str,
        command,
        cwd,
        title,
    ) = parts

    if not pane_id:
        return None

    try:
        window_idx = int(window_index)
        pane_idx = int(pane_index)
    except ValueError:
        return None

    try:
        pid = int(pid_str) if pid_str else None
    except ValueError:
        pid = None

    pane = PaneHandle(
        pane_id=pane_id,
        session_name=session_name,
        window_index=window_idx,
        pane_index=pane_idx,
        title=title,
        active=pane_active == "1" and window_active == "1",
        pid=pid,
        cwd=cwd,
    )
    return RawPane(pane=pane, command=command.strip())


class TmuxBackend(MultiplexerBackend):
    """tmux-based multiplexer backend."""

    def __init__(self, timeout: float = 5.0, binary: str = "tmux"):
        """Initialize the tmux backend.

        Args:
            timeout: Timeout in seconds for each tmux invocation.
            binary: tmux executable name or path.
        """
        self.timeout = timeout
        self.binary = binary
        self._available: bool | None = None
        self._procs: set[subprocess.Popen] = set()
        self._procs_lock = threading.Lock()
        self._closing = False

    @property
    def backend_name(self) -> str:
        return "tmux"

    def _run(self, *args: str) -> tuple[int, str, str]:
        """Run a tmux command.

        Args:
            *args: Command arguments to pass to tmux.

        Returns:
            Tuple of (return_code, stdout, stderr).
        """
        if self._closing:
            return (1, "", "Backend is shutting down")

        cmd = [self.binary, *args]
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            return (1, "", "tmux not found")
        except OSError as e:
            return (1, "", f"cannot run tmux: {e}")

        with self._procs_lock:
            self._procs.add(proc)
        try:
            stdout, stderr = proc.communicate(timeout=self.timeout)
            return (proc.returncode, stdout or "", stderr or "")
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.communicate()
            logger.debug(f"tmux {args[0]} timed out after {self.timeout}s")
            return (1, "", "Command timed out")
        finally:
            with self._procs_lock:
                self._procs.discard(proc)

    def is_available(self) -> bool:
        """Check if tmux is installed.

        Whether a server is running is only known once list_panes is called.
        """
        if self._available is None:
            self._available = shutil.which(self.binary) is not None
        return self._available

    def list_panes(self) -> list[RawPane]:
        """List all panes of all tmux sessions.

        Raises:
            BackendUnavailable: If tmux is missing, not running, or times out.
        """
        if not self.is_available():
            raise BackendUnavailable("tmux is not installed")

        returncode, stdout, stderr = self._run("list-panes", "-a", "-F", PANE_FORMAT)
        if returncode != 0:
            reason = stderr.strip() or "tmux list-panes failed"
            raise BackendUnavailable(reason)

        panes = []
        for line in stdout.splitlines():
            if not line:
                continue
            raw = parse_pane_line(line)
            if raw is None:
                logger.debug(f"Skipping malformed list-panes line: {line!r}")
                continue
            panes.append(raw)
        return panes

    def capture_pane(self, pane_id: str, lines: int) -> str:
        """Capture content from a tmux pane.

        Wrapped lines are joined (-J) so a status line is matched as one line.

        Raises:
            CaptureFailed: If tmux fails or times out.
        """
        args = ["capture-pane", "-p", "-J", "-t", pane_id, "-S", str(-lines)]
        returncode, stdout, stderr = self._run(*args)
        if returncode != 0:
            raise CaptureFailed(pane_id, stderr.strip() or f"exit status {returncode}")
        return stdout

    def activate_pane(self, pane_id: str) -> None:
        """Focus a tmux pane.

        Tries switch-client first (moves an attached client to the pane's
        session), then falls back to selecting the window and pane.

        Raises:
            ActivationFailed: If the pane does not exist or cannot be selected.
        """
        returncode, stdout, _ = self._run("display-message", "-p", "-t", pane_id, "#{pane_id}")
        if returncode != 0 or not stdout.strip():
            raise ActivationFailed(pane_id, "pane not found")

        returncode, _, _ = self._run("switch-client", "-t", pane_id)
        if returncode == 0:
            return

        returncode, _, stderr = self._run("select-window", "-t", pane_id)
        if returncode == 0:
            returncode, _, stderr = self._run("select-pane", "-t", pane_id)
        if returncode != 0:
            raise ActivationFailed(pane_id, stderr.strip() or "select-pane failed")

    def terminate_all(self) -> None:
        """Kill in-flight tmux children and refuse new invocations."""
        self._closing = True
        with self._procs_lock:
            procs = list(self._procs)
        for proc in procs:
            if proc.poll() is None:
                logger.debug(f"Killing in-flight tmux process {proc.pid}")
                proc.kill()

    def resume(self) -> None:
        """Allow tmux invocations again after terminate_all."""
        self._closing = False
