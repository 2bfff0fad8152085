"""Scripted multiplexer backend for tests and demos.

Returns scripted pane lists and content without touching tmux.
"""

import threading
from collections.abc import Iterable

from claudeye.backends.base import (
    ActivationFailed,
    BackendUnavailable,
    CaptureFailed,
    MultiplexerBackend,
    RawPane,
)
from claudeye.models.session import PaneHandle


def make_pane(
    pane_id: str,
    session_name: str = "main",
    window_index: int = 0,
    pane_index: int = 0,
    cwd: str = "/home/user/project",
    title: str = "",
    active: bool = False,
) -> PaneHandle:
    """Build a PaneHandle with sensible defaults."""
    return PaneHandle(
        pane_id=pane_id,
        session_name=session_name,
        window_index=window_index,
        pane_index=pane_index,
        title=title,
        active=active,
        cwd=cwd,
    )


class FakeBackend(MultiplexerBackend):
    """In-memory backend driven by scripted panes and content.

    - ``set_panes`` replaces the pane list returned by list_panes.
    - ``set_content`` scripts the text a pane captures; content may be a
      string or an exception instance to raise.
    - ``fail_listing`` makes list_panes raise BackendUnavailable.
    """

    def __init__(self, panes: Iterable[tuple[PaneHandle, str]] = ()):
        self._lock = threading.Lock()
        self._panes: list[RawPane] = [RawPane(pane=p, command=c) for p, c in panes]
        self._content: dict[str, str | Exception] = {}
        self._listing_error: str | None = None
        self.activations: list[str] = []
        self.capture_calls: list[tuple[str, int]] = []
        self.terminated = False

    @property
    def backend_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return self._listing_error is None

    def set_panes(self, panes: Iterable[tuple[PaneHandle, str]]) -> None:
        with self._lock:
            self._panes = [RawPane(pane=p, command=c) for p, c in panes]

    def set_content(self, pane_id: str, content: str | Exception) -> None:
        with self._lock:
            self._content[pane_id] = content

    def fail_listing(self, reason: str | None = "tmux server not running") -> None:
        """Make list_panes fail (pass None to recover)."""
        self._listing_error = reason

    def list_panes(self) -> list[RawPane]:
        if self._listing_error is not None:
            raise BackendUnavailable(self._listing_error)
        with self._lock:
            return list(self._panes)

    def capture_pane(self, pane_id: str, lines: int) -> str:
        with self._lock:
            self.capture_calls.append((pane_id, lines))
            content = self._content.get(pane_id)
        if content is None:
            raise CaptureFailed(pane_id, "no such pane")
        if isinstance(content, Exception):
            raise content
        return content

    def activate_pane(self, pane_id: str) -> None:
        with self._lock:
            known = any(raw.pane.pane_id == pane_id for raw in self._panes)
        if not known:
            raise ActivationFailed(pane_id, "pane not found")
        self.activations.append(pane_id)

    def terminate_all(self) -> None:
        self.terminated = True

    def resume(self) -> None:
        self.terminated = False


_BOX = "─" * 40

DEMO_SCREENS = {
    "%1": (
        "/home/user/projects/api",
        "⏺ Updated 3 files.\n\n✻ Cooked for 43s\n\n" f"{_BOX}\n❯ \n{_BOX}\n  ? for shortcuts\n",
    ),
    "%2": (
        "/home/user/projects/web",
        "⏺ Reading src/app.tsx\n\n"
        "✶ Thinking… (esc to interrupt · 1m 12s · ↓ 2.1k tokens)\n\n"
        f"{_BOX}\n❯ \n{_BOX}\n  ⏵⏵ accept edits on (shift+tab to cycle)\n",
    ),
    "%3": (
        "/home/user/projects/infra",
        f"{_BOX}\n Bash command\n\n   terraform plan\n\n Do you want to proceed?\n"
        " ❯ 1. Yes\n   2. Yes, and don't ask again\n   3. No\n\n"
        " Esc to cancel · Tab to amend · ctrl+e to explain\n",
    ),
    "%4": (
        "/home/user/projects/docs",
        " Which section should I rewrite first?\n\n"
        " ❯ 1. Installation\n   2. Configuration\n   3. Type something.\n\n"
        " Enter to select · ↑/↓ to navigate · Esc to cancel\n",
    ),
}


def demo_backend() -> FakeBackend:
    """A FakeBackend with one agent pane per interesting state, plus a shell pane."""
    backend = FakeBackend()
    panes = []
    for index, (pane_id, (cwd, screen)) in enumerate(DEMO_SCREENS.items()):
        pane = make_pane(pane_id, session_name="demo", window_index=index, cwd=cwd, active=index == 0)
        panes.append((pane, "claude"))
        backend.set_content(pane_id, screen)

    shell = make_pane("%9", session_name="demo", window_index=len(panes), cwd="/home/user")
    panes.append((shell, "zsh"))
    backend.set_content("%9", "$ ls\n")

    backend.set_panes(panes)
    return backend
