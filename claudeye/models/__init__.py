"""Domain models for claudeye."""

from claudeye.models.config import AppConfig, PatternConfig
from claudeye.models.session import (
    CapturedContent,
    PaneHandle,
    Session,
    SessionState,
    Snapshot,
    Transition,
)

__all__ = [
    # Config
    "AppConfig",
    "PatternConfig",
    # Sessions
    "CapturedContent",
    "PaneHandle",
    "Session",
    "SessionState",
    "Snapshot",
    "Transition",
]
