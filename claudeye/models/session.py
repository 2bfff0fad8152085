"""Session models - panes, captured content, sessions and snapshots."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field


class SessionState(str, Enum):
    """Interaction state of an agent session, derived from its pane text.

    The states are independent categories, not a progression.
    """

    RUNNING = "running"
    """Agent is actively computing (spinner / progress text visible)."""

    APPROVAL = "approval"
    """Agent is waiting for a yes/no approval."""

    WAITING = "waiting"
    """Agent asked a question and waits for a free-form answer."""

    IDLE = "idle"
    """Agent sits at its own prompt, ready for input."""

    STOPPED = "stopped"
    """Agent process terminated or crashed."""

    UNKNOWN = "unknown"
    """Content present but unclassifiable, or the session is stale."""


class PaneHandle(BaseModel):
    """A tmux pane, identified by its raw pane id (e.g. ``%12``)."""

    model_config = ConfigDict(frozen=True)

    pane_id: str = Field(..., description="tmux pane id, stable for the pane's lifetime")
    session_name: str = Field(..., description="Owning tmux session name")
    window_index: int = Field(default=0, ge=0)
    pane_index: int = Field(default=0, ge=0)
    title: str = Field(default="", description="Pane title as reported by tmux")
    active: bool = Field(default=False, description="Pane is the active pane of the active window")
    pid: int | None = Field(default=None, description="PID of the pane's shell process")
    cwd: str = Field(default="", description="Current working directory of the pane")

    @property
    def target(self) -> str:
        """tmux target address, ``session:window.pane``."""
        return f"{self.session_name}:{self.window_index}.{self.pane_index}"

    @property
    def project_name(self) -> str:
        """Basename of the pane's working directory."""
        name = PurePosixPath(self.cwd).name if self.cwd else ""
        return name or "unknown"


@dataclass(frozen=True)
class CapturedContent:
    """Rendered text of a pane at capture time, most recent line last.

    Never mutated; the next capture replaces it wholesale.
    """

    lines: tuple[str, ...]
    captured_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_text(cls, text: str, max_lines: int | None = None) -> "CapturedContent":
        """Split raw capture output into lines, keeping only the newest ``max_lines``."""
        lines = text.split("\n")
        # capture-pane terminates its output with a newline
        if lines and lines[-1] == "":
            lines.pop()
        if max_lines is not None and len(lines) > max_lines:
            lines = lines[-max_lines:]
        return cls(lines=tuple(lines))

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def is_blank(self) -> bool:
        return not any(line.strip() for line in self.lines)

    def __len__(self) -> int:
        return len(self.lines)


class Session(BaseModel):
    """Registry record for one monitored agent pane.

    Identity is the pane id. The registry replaces the record each poll
    cycle rather than mutating it, so snapshots stay immutable.
    """

    model_config = ConfigDict(frozen=True)

    pane: PaneHandle
    command: str = Field(..., description="Resolved command name of the pane's foreground process")
    state: SessionState = Field(default=SessionState.UNKNOWN)
    last_capture_at: datetime | None = Field(
        default=None,
        description="When the pane was last captured successfully",
    )
    consecutive_failures: int = Field(default=0, ge=0)
    state_changed_at: datetime = Field(default_factory=datetime.now)
    first_seen_at: datetime = Field(default_factory=datetime.now)

    @property
    def pane_id(self) -> str:
        return self.pane.pane_id

    def to_dict(self) -> dict:
        """JSON-friendly representation for consumers."""
        data = self.model_dump(mode="json")
        data["pane"]["target"] = self.pane.target
        data["pane"]["project_name"] = self.pane.project_name
        return data


class Transition(BaseModel):
    """A change observed by the registry during one poll cycle.

    ``from_state`` is None for a newly discovered session and ``to_state``
    is None for a removed one.
    """

    model_config = ConfigDict(frozen=True)

    pane_id: str
    from_state: SessionState | None = None
    to_state: SessionState | None = None
    at: datetime = Field(default_factory=datetime.now)


class Snapshot(BaseModel):
    """Immutable point-in-time view of all known sessions.

    Sessions keep stable discovery order so numeric selection maps to the
    same pane across polls.
    """

    model_config = ConfigDict(frozen=True)

    sessions: tuple[Session, ...] = ()
    cycle: int = Field(default=0, ge=0, description="Poll cycle that produced this snapshot")
    taken_at: datetime = Field(default_factory=datetime.now)
    transitions: tuple[Transition, ...] = ()

    @property
    def pane_ids(self) -> list[str]:
        return [s.pane_id for s in self.sessions]

    def get(self, pane_id: str) -> Session | None:
        """Find a session by pane id."""
        for session in self.sessions:
            if session.pane_id == pane_id:
                return session
        return None

    def to_dict(self) -> dict:
        return {
            "cycle": self.cycle,
            "taken_at": self.taken_at.isoformat(),
            "sessions": [s.to_dict() for s in self.sessions],
            "transitions": [t.model_dump(mode="json") for t in self.transitions],
        }
