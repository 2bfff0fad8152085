"""Pytest configuration and shared fixtures for claudeye tests."""

import pytest

from claudeye.backends.fake import FakeBackend, make_pane
from claudeye.models.config import AppConfig
from claudeye.services.directory import VersionResolver

BOX = "─" * 60

IDLE_SCREEN = f"⏺ Done.\n\n✻ Cooked for 43s\n\n{BOX}\n❯ \n{BOX}\n  ? for shortcuts\n"

RUNNING_SCREEN = (
    "⏺ Reading files\n\n"
    "✶ Thinking… (esc to interrupt · 12s · ↓ 300 tokens)\n\n"
    f"{BOX}\n❯ \n{BOX}\n"
)

APPROVAL_SCREEN = (
    f"{BOX}\n Bash command\n\n   rm -rf build\n\n Do you want to proceed?\n"
    " ❯ 1. Yes\n   2. No\n\n Esc to cancel · Tab to amend · ctrl+e to explain\n"
)


@pytest.fixture
def versions_dir(tmp_path):
    """An installed-versions directory with two agent versions."""
    directory = tmp_path / "versions"
    directory.mkdir()
    (directory / "2.1.49").touch()
    (directory / "2.1.50").touch()
    return directory


@pytest.fixture
def resolver(versions_dir):
    """VersionResolver over the fixture versions directory."""
    return VersionResolver("claude", versions_dir=versions_dir)


@pytest.fixture
def backend():
    """FakeBackend with one idle and one running agent pane plus a shell."""
    backend = FakeBackend(
        [
            (make_pane("%1", window_index=0, cwd="/home/user/api"), "claude"),
            (make_pane("%2", window_index=1, cwd="/home/user/web"), "2.1.50"),
            (make_pane("%3", window_index=2, cwd="/home/user"), "zsh"),
        ]
    )
    backend.set_content("%1", IDLE_SCREEN)
    backend.set_content("%2", RUNNING_SCREEN)
    backend.set_content("%3", "$ ls\n")
    return backend


@pytest.fixture
def config(versions_dir):
    """AppConfig pointing at the fixture versions directory."""
    return AppConfig(versions_dir=str(versions_dir), stale_threshold=2)
