"""Tests for Pydantic models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from claudeye.backends.fake import make_pane
from claudeye.models.config import AppConfig
from claudeye.models.session import CapturedContent, Session, SessionState, Snapshot


class TestPaneHandle:
    """Tests for PaneHandle."""

    def test_target(self):
        assert make_pane("%3", session_name="work", window_index=2, pane_index=1).target == "work:2.1"

    @pytest.mark.parametrize(
        "cwd, expected",
        [("/home/user/api", "api"), ("/home/user/api/", "api"), ("", "unknown"), ("/", "unknown")],
    )
    def test_project_name(self, cwd, expected):
        assert make_pane("%1", cwd=cwd).project_name == expected

    def test_frozen(self):
        pane = make_pane("%1")
        with pytest.raises(ValidationError):
            pane.pane_id = "%2"


class TestCapturedContent:
    """Tests for CapturedContent."""

    def test_trailing_newline_dropped(self):
        assert CapturedContent.from_text("a\nb\n").lines == ("a", "b")

    def test_inner_blank_lines_kept(self):
        assert CapturedContent.from_text("a\n\nb").lines == ("a", "", "b")

    def test_bounded_to_newest(self):
        content = CapturedContent.from_text("1\n2\n3\n4", max_lines=2)
        assert content.lines == ("3", "4")
        assert content.text == "3\n4"

    def test_blank(self):
        assert CapturedContent.from_text("  \n\n").is_blank()
        assert not CapturedContent.from_text("x").is_blank()


class TestSessionAndSnapshot:
    """Tests for Session and Snapshot."""

    def test_session_defaults(self):
        session = Session(pane=make_pane("%1"), command="claude")

        assert session.state == SessionState.UNKNOWN
        assert session.consecutive_failures == 0
        assert session.last_capture_at is None
        assert session.pane_id == "%1"

    def test_session_to_dict(self):
        session = Session(pane=make_pane("%1", cwd="/srv/app"), command="claude", state=SessionState.IDLE)
        data = session.to_dict()

        assert data["state"] == "idle"
        assert data["pane"]["project_name"] == "app"
        assert data["pane"]["target"] == "main:0.0"

    def test_snapshot_lookup(self):
        snapshot = Snapshot(
            sessions=(
                Session(pane=make_pane("%1"), command="claude"),
                Session(pane=make_pane("%2"), command="claude"),
            ),
            cycle=5,
            taken_at=datetime(2026, 1, 1),
        )

        assert snapshot.pane_ids == ["%1", "%2"]
        assert snapshot.get("%2").pane_id == "%2"
        assert snapshot.get("%3") is None
        assert snapshot.to_dict()["taken_at"] == "2026-01-01T00:00:00"


class TestAppConfig:
    """Tests for AppConfig validation."""

    def test_defaults(self):
        config = AppConfig()

        assert config.poll_interval == 1.0
        assert config.command_timeout == 5.0
        assert config.prompt_search_depth == 12
        assert config.host == "127.0.0.1"

    @pytest.mark.parametrize(
        "field, value",
        [("poll_interval", 0.01), ("capture_lines", 5), ("port", 80), ("log_level", "LOUD")],
    )
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            AppConfig(**{field: value})
