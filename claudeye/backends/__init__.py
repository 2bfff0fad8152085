"""Multiplexer backend implementations."""

from claudeye.backends.base import (
    ActivationFailed,
    BackendUnavailable,
    CaptureFailed,
    MultiplexerBackend,
    MultiplexerError,
    RawPane,
)
from claudeye.backends.fake import FakeBackend, demo_backend, make_pane
from claudeye.backends.tmux import TmuxBackend, parse_pane_line

__all__ = [
    "ActivationFailed",
    "BackendUnavailable",
    "CaptureFailed",
    "FakeBackend",
    "MultiplexerBackend",
    "MultiplexerError",
    "RawPane",
    "TmuxBackend",
    "demo_backend",
    "make_pane",
    "parse_pane_line",
]
