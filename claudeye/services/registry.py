"""SessionRegistry - the set of known sessions across poll cycles.

Folds one cycle's discovery + capture + classify results into the session
set and builds the Snapshot for that cycle. Sessions missing from a cycle's
discovery are removed at once; a session whose capture keeps failing keeps
its last state until the failure count exceeds the stale threshold, and is
then shown as UNKNOWN.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime

from claudeye.models.session import PaneHandle, Session, SessionState, Snapshot, Transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaneResult:
    """Outcome of capturing and classifying one discovered pane."""

    pane: PaneHandle
    command: str
    state: SessionState | None = None  # None when the capture failed
    captured_at: datetime | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.state is not None


class SessionRegistry:
    """Persistent session records, keyed by pane id.

    Only the poller writes to the registry. Every apply_cycle call returns a
    fully built Snapshot; registry state is swapped in only after the
    Snapshot is complete.
    """

    def __init__(self, stale_threshold: int = 3):
        """Initialize the registry.

        Args:
            stale_threshold: Consecutive capture failures tolerated before a
                session is marked UNKNOWN.
        """
        self.stale_threshold = stale_threshold
        self._sessions: dict[str, Session] = {}
        self._order: list[str] = []
        self._cycle = 0
        self._lock = threading.Lock()

    @property
    def cycle(self) -> int:
        return self._cycle

    def get(self, pane_id: str) -> Session | None:
        return self._sessions.get(pane_id)

    def list_sessions(self) -> list[Session]:
        """Sessions in stable discovery order."""
        sessions = self._sessions
        return [sessions[pane_id] for pane_id in self._order]

    def apply_cycle(self, results: list[PaneResult], now: datetime | None = None) -> Snapshot:
        """Apply one poll cycle's results.

        Args:
            results: One entry per pane discovered this cycle, in discovery order.
            now: Cycle timestamp. Defaults to datetime.now().

        Returns:
            The Snapshot for this cycle.
        """
        now = now or datetime.now()

        with self._lock:
            cycle = self._cycle + 1
            sessions: dict[str, Session] = {}
            transitions: list[Transition] = []

            for result in results:
                pane_id = result.pane.pane_id
                if pane_id in sessions:
                    continue
                previous = self._sessions.get(pane_id)
                session = self._fold(previous, result, now)
                sessions[pane_id] = session

                if previous is None:
                    transitions.append(Transition(pane_id=pane_id, to_state=session.state, at=now))
                    logger.info(
                        f"Session {pane_id} ({result.pane.target}) discovered: {session.state.value}"
                    )
                elif previous.state != session.state:
                    transitions.append(
                        Transition(
                            pane_id=pane_id,
                            from_state=previous.state,
                            to_state=session.state,
                            at=now,
                        )
                    )
                    logger.info(
                        f"Session {pane_id} ({result.pane.target}): "
                        f"{previous.state.value} -> {session.state.value}"
                    )

            for pane_id in self._order:
                if pane_id not in sessions:
                    gone = self._sessions[pane_id]
                    transitions.append(Transition(pane_id=pane_id, from_state=gone.state, at=now))
                    logger.info(f"Session {pane_id} ({gone.pane.target}) removed")

            # Known panes keep their position; new ones are appended in discovery order
            order = [pane_id for pane_id in self._order if pane_id in sessions]
            known = set(order)
            order.extend(pane_id for pane_id in sessions if pane_id not in known)

            snapshot = Snapshot(
                sessions=tuple(sessions[pane_id] for pane_id in order),
                cycle=cycle,
                taken_at=now,
                transitions=tuple(transitions),
            )

            self._sessions = sessions
            self._order = order
            self._cycle = cycle

        return snapshot

    def _fold(self, previous: Session | None, result: PaneResult, now: datetime) -> Session:
        if result.ok:
            state = result.state
            failures = 0
            last_capture_at = result.captured_at or now
        else:
            failures = (previous.consecutive_failures if previous else 0) + 1
            last_capture_at = previous.last_capture_at if previous else None
            logger.debug(f"Capture failed for {result.pane.pane_id} ({failures}x): {result.error}")

            if previous is None:
                state = SessionState.UNKNOWN
            elif failures > self.stale_threshold:
                state = SessionState.UNKNOWN
                if failures == self.stale_threshold + 1:
                    logger.warning(
                        f"Session {result.pane.pane_id} is stale after {failures} failed captures"
                    )
            else:
                state = previous.state

        if previous is None:
            return Session(
                pane=result.pane,
                command=result.command,
                state=state,
                last_capture_at=last_capture_at,
                consecutive_failures=failures,
                state_changed_at=now,
                first_seen_at=now,
            )

        return previous.model_copy(
            update={
                "pane": result.pane,
                "command": result.command,
                "state": state,
                "last_capture_at": last_capture_at,
                "consecutive_failures": failures,
                "state_changed_at": now if state != previous.state else previous.state_changed_at,
            }
        )
