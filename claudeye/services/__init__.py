"""Services for claudeye."""

from claudeye.services.capture import ContentCapture
from claudeye.services.classifier import (
    Classification,
    ClassificationRule,
    StateClassifier,
    classify,
    is_separator_line,
)
from claudeye.services.config_service import (
    ConfigService,
    get_config_service,
    reset_config_service,
)
from claudeye.services.directory import (
    CandidatePane,
    ProcessDirectory,
    VersionResolver,
    find_versions_dir,
    read_version_entries,
)
from claudeye.services.monitor import Monitor
from claudeye.services.poller import Poller
from claudeye.services.registry import PaneResult, SessionRegistry
from claudeye.services.snapshot_hub import SnapshotHub, format_sse

__all__ = [
    "CandidatePane",
    "Classification",
    "ClassificationRule",
    "ConfigService",
    "ContentCapture",
    "Monitor",
    "PaneResult",
    "Poller",
    "ProcessDirectory",
    "SessionRegistry",
    "SnapshotHub",
    "StateClassifier",
    "VersionResolver",
    "classify",
    "find_versions_dir",
    "format_sse",
    "get_config_service",
    "is_separator_line",
    "read_version_entries",
    "reset_config_service",
]
