"""Tests for version resolution and the process directory."""

from unittest.mock import patch

import pytest

from claudeye.backends.base import BackendUnavailable
from claudeye.backends.fake import FakeBackend, make_pane
from claudeye.services.directory import (
    ProcessDirectory,
    VersionResolver,
    find_versions_dir,
    read_version_entries,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestFindVersionsDir:
    """Tests for locating the versions directory through the PATH symlink."""

    def test_follows_symlink(self, tmp_path, versions_dir):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        link = bin_dir / "claude"
        link.symlink_to(versions_dir / "2.1.50")

        with patch("claudeye.services.directory.shutil.which", return_value=str(link)):
            assert find_versions_dir("claude") == versions_dir

    def test_relative_symlink(self, tmp_path, versions_dir):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        link = bin_dir / "claude"
        link.symlink_to("../versions/2.1.50")

        with patch("claudeye.services.directory.shutil.which", return_value=str(link)):
            assert find_versions_dir("claude").resolve() == versions_dir.resolve()

    def test_not_a_symlink(self, tmp_path):
        executable = tmp_path / "claude"
        executable.touch()

        with patch("claudeye.services.directory.shutil.which", return_value=str(executable)):
            assert find_versions_dir("claude") is None

    def test_not_on_path(self):
        with patch("claudeye.services.directory.shutil.which", return_value=None):
            assert find_versions_dir("claude") is None


class TestReadVersionEntries:
    """Tests for reading version names."""

    def test_only_version_names(self, versions_dir):
        (versions_dir / "README").touch()
        assert read_version_entries(versions_dir) == frozenset({"2.1.49", "2.1.50"})

    def test_missing_directory(self, tmp_path):
        assert read_version_entries(tmp_path / "missing") is None


class TestVersionResolver:
    """Tests for VersionResolver."""

    def test_resolves_installed_version(self, resolver):
        assert resolver.resolve("2.1.50") == "claude"

    def test_unmatched_names_pass_through(self, resolver):
        assert resolver.resolve("zsh") == "zsh"
        assert resolver.resolve("9.9.9") == "9.9.9"

    def test_new_version_seen_after_refresh_interval(self, versions_dir):
        clock = FakeClock()
        resolver = VersionResolver("claude", versions_dir=versions_dir, refresh_seconds=30, clock=clock)
        (versions_dir / "2.2.0").touch()

        clock.now += 10
        assert resolver.resolve("2.2.0") == "2.2.0"

        clock.now += 25
        assert resolver.resolve("2.2.0") == "claude"

    def test_refresh_forces_reload(self, versions_dir):
        resolver = VersionResolver("claude", versions_dir=versions_dir, clock=FakeClock())
        (versions_dir / "2.2.0").touch()

        resolver.refresh()

        assert "2.2.0" in resolver.names()

    def test_unreadable_directory_keeps_previous_names(self, tmp_path):
        directory = tmp_path / "versions"
        directory.mkdir()
        (directory / "1.0.0").touch()
        resolver = VersionResolver("claude", versions_dir=directory, clock=FakeClock())

        (directory / "1.0.0").unlink()
        directory.rmdir()
        resolver.refresh()

        assert resolver.names() == frozenset({"1.0.0"})

    def test_no_versions_dir(self):
        with patch("claudeye.services.directory.shutil.which", return_value=None):
            resolver = VersionResolver("claude")

        assert resolver.versions_dir is None
        assert resolver.resolve("claude") == "claude"
        assert resolver.resolve("2.1.50") == "2.1.50"


class TestProcessDirectory:
    """Tests for ProcessDirectory."""

    def test_filters_on_resolved_command(self, backend, resolver):
        directory = ProcessDirectory(backend, "claude", resolver)

        candidates = directory.list_candidate_panes()

        assert [c.pane.pane_id for c in candidates] == ["%1", "%2"]
        assert all(c.command == "claude" for c in candidates)

    def test_keeps_multiplexer_order(self, resolver):
        backend = FakeBackend(
            [
                (make_pane("%7"), "claude"),
                (make_pane("%2"), "claude"),
                (make_pane("%5"), "claude"),
            ]
        )
        directory = ProcessDirectory(backend, "claude", resolver)

        assert [c.pane.pane_id for c in directory.list_candidate_panes()] == ["%7", "%2", "%5"]

    def test_listing_failure_propagates(self, backend, resolver):
        backend.fail_listing("no server running")
        directory = ProcessDirectory(backend, "claude", resolver)

        with pytest.raises(BackendUnavailable):
            directory.list_candidate_panes()
