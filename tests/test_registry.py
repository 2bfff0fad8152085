"""Tests for SessionRegistry."""

from datetime import datetime, timedelta

import pytest

from claudeye.backends.fake import make_pane
from claudeye.models.session import SessionState
from claudeye.services.registry import PaneResult, SessionRegistry

T0 = datetime(2026, 1, 1, 12, 0, 0)


def ok(pane_id: str, state: SessionState) -> PaneResult:
    return PaneResult(pane=make_pane(pane_id), command="claude", state=state, captured_at=T0)


def failed(pane_id: str) -> PaneResult:
    return PaneResult(pane=make_pane(pane_id), command="claude", error="timed out")


@pytest.fixture
def registry():
    return SessionRegistry(stale_threshold=2)


class TestDiscoveryAndRemoval:
    """Sessions follow the panes discovered each cycle."""

    def test_new_sessions_added(self, registry):
        """Discovered panes become sessions in discovery order."""
        snapshot = registry.apply_cycle([ok("%1", SessionState.IDLE), ok("%2", SessionState.RUNNING)])

        assert snapshot.cycle == 1
        assert snapshot.pane_ids == ["%1", "%2"]
        assert snapshot.get("%2").state == SessionState.RUNNING

    def test_vanished_pane_removed_next_cycle(self, registry):
        """A pane missing from a cycle is removed at once."""
        registry.apply_cycle([ok("%1", SessionState.IDLE), ok("%2", SessionState.IDLE)])
        snapshot = registry.apply_cycle([ok("%1", SessionState.IDLE)])

        assert snapshot.pane_ids == ["%1"]
        assert registry.get("%2") is None

    def test_empty_cycle_clears_everything(self, registry):
        """A cycle with no panes empties the registry."""
        registry.apply_cycle([ok("%1", SessionState.IDLE)])
        snapshot = registry.apply_cycle([])

        assert snapshot.sessions == ()
        assert registry.list_sessions() == []

    def test_stable_order(self, registry):
        """Known panes keep their position; new ones are appended."""
        registry.apply_cycle([ok("%1", SessionState.IDLE), ok("%2", SessionState.IDLE)])
        snapshot = registry.apply_cycle(
            [ok("%3", SessionState.IDLE), ok("%2", SessionState.IDLE), ok("%1", SessionState.IDLE)]
        )

        assert snapshot.pane_ids == ["%1", "%2", "%3"]

    def test_duplicate_results_keep_first(self, registry):
        """Only the first result for a pane id is used."""
        snapshot = registry.apply_cycle([ok("%1", SessionState.IDLE), ok("%1", SessionState.RUNNING)])

        assert len(snapshot.sessions) == 1
        assert snapshot.get("%1").state == SessionState.IDLE


class TestStaleness:
    """Capture failures keep the last state until the threshold is exceeded."""

    def test_failures_within_threshold_keep_state(self, registry):
        """Failures up to the threshold keep the last state."""
        registry.apply_cycle([ok("%1", SessionState.RUNNING)])
        registry.apply_cycle([failed("%1")])
        snapshot = registry.apply_cycle([failed("%1")])

        session = snapshot.get("%1")
        assert session.state == SessionState.RUNNING
        assert session.consecutive_failures == 2
        assert session.last_capture_at == T0

    def test_exceeding_threshold_is_unknown(self, registry):
        """Failures beyond the threshold turn the session UNKNOWN."""
        registry.apply_cycle([ok("%1", SessionState.RUNNING)])
        for _ in range(3):
            snapshot = registry.apply_cycle([failed("%1")])

        assert snapshot.get("%1").state == SessionState.UNKNOWN
        assert snapshot.get("%1").consecutive_failures == 3

    def test_success_resets_counter(self, registry):
        """A successful capture resets the failure counter."""
        registry.apply_cycle([ok("%1", SessionState.RUNNING)])
        for _ in range(3):
            registry.apply_cycle([failed("%1")])
        snapshot = registry.apply_cycle([ok("%1", SessionState.IDLE)])

        session = snapshot.get("%1")
        assert session.state == SessionState.IDLE
        assert session.consecutive_failures == 0

    def test_new_pane_with_failed_capture_is_unknown(self, registry):
        """A new pane whose first capture fails starts UNKNOWN."""
        snapshot = registry.apply_cycle([failed("%1")])

        session = snapshot.get("%1")
        assert session.state == SessionState.UNKNOWN
        assert session.consecutive_failures == 1
        assert session.last_capture_at is None

    def test_zero_threshold(self):
        """With a zero threshold the first failure turns the session UNKNOWN."""
        registry = SessionRegistry(stale_threshold=0)
        registry.apply_cycle([ok("%1", SessionState.IDLE)])
        snapshot = registry.apply_cycle([failed("%1")])

        assert snapshot.get("%1").state == SessionState.UNKNOWN


class TestTransitions:
    """Transitions recorded per cycle."""

    def test_discovery_change_and_removal(self, registry):
        """Transitions record discovery, state changes and removal."""
        first = registry.apply_cycle([ok("%1", SessionState.IDLE), ok("%2", SessionState.IDLE)])
        second = registry.apply_cycle([ok("%1", SessionState.RUNNING)])

        assert [(t.pane_id, t.from_state, t.to_state) for t in first.transitions] == [
            ("%1", None, SessionState.IDLE),
            ("%2", None, SessionState.IDLE),
        ]
        assert [(t.pane_id, t.from_state, t.to_state) for t in second.transitions] == [
            ("%1", SessionState.IDLE, SessionState.RUNNING),
            ("%2", SessionState.IDLE, None),
        ]

    def test_unchanged_state_has_no_transition(self, registry):
        """An unchanged state records no transition."""
        registry.apply_cycle([ok("%1", SessionState.IDLE)])
        snapshot = registry.apply_cycle([ok("%1", SessionState.IDLE)])

        assert snapshot.transitions == ()

    def test_state_changed_at_tracks_last_change(self, registry):
        """state_changed_at moves only when the state changes."""
        t1 = T0 + timedelta(seconds=1)
        t2 = T0 + timedelta(seconds=2)
        registry.apply_cycle([ok("%1", SessionState.IDLE)], now=T0)
        registry.apply_cycle([ok("%1", SessionState.RUNNING)], now=t1)
        snapshot = registry.apply_cycle([ok("%1", SessionState.RUNNING)], now=t2)

        session = snapshot.get("%1")
        assert session.first_seen_at == T0
        assert session.state_changed_at == t1


class TestSnapshotIsolation:
    """Published snapshots are never mutated by later cycles."""

    def test_earlier_snapshot_unchanged(self, registry):
        """Later cycles never alter an earlier snapshot."""
        first = registry.apply_cycle([ok("%1", SessionState.IDLE)])
        registry.apply_cycle([ok("%1", SessionState.RUNNING), ok("%2", SessionState.IDLE)])

        assert first.cycle == 1
        assert first.pane_ids == ["%1"]
        assert first.get("%1").state == SessionState.IDLE
