"""Application configuration models with Pydantic validation."""

import re

from pydantic import BaseModel, Field, field_validator

DEFAULT_PROMPT_PATTERNS = [
    r"^❯",
]

DEFAULT_FOOTER_PATTERNS = [
    # Editor mode indicator (vim mode)
    r"^--\s*[A-Z][A-Z ]*--$",
    # Context usage line, e.g. "[Opus 4.6] Context: 12%"
    r"Context:\s*\d+%",
    r"\? for shortcuts",
    r"(?i)\b(?:ctrl|shift|alt|meta)\+",
    # File change counter, e.g. "4 files +20 -0"
    r"^\d+\s+files?\s+[+\-]",
    r"^⏵⏵",
    r"^⏸\s",
    r"(?i)bypass permissions on",
]

DEFAULT_APPROVAL_PATTERNS = [
    r"Yes, allow once",
    r"Yes, allow always",
    r"Allow once",
    r"Allow always",
    r"^\s*❯ (?:Yes|No)\s*$",
    r"Do you trust",
    r"Run this command\?",
    r"Allow this MCP server",
    r"Continue\?",
    r"Proceed\?",
    r"Do you want to proceed\?",
    r"\((?:Y/n|y/N|y/n)\)",
    r"\[(?:Y/n|y/N|y/n)\]",
    # Numbered selection cursor, e.g. "❯ 1. Yes"
    r"❯\s+\d+\.",
]

DEFAULT_WAITING_PATTERNS = [
    r"Enter to select.*↑/↓ to navigate",
    r"Type something",
    r"Chat about this",
]

DEFAULT_RUNNING_PATTERNS = [
    # Spinner status line at column 0; indented copies are quoted text
    r"^[·✢✳✶✻✽]\s+.+?…",
    r"^[·✢✳✶✻✽]\s+.+?\((?:esc|ctrl\+c) to interrupt",
    r"·\s*esc to interrupt(?:\s|·|$)",
]

DEFAULT_STOPPED_PATTERNS = [
    r"Pane is dead",
    r"Resume this session with:",
    r"\[Process completed\]",
    r"^\[exited\]",
    r"Segmentation fault",
    r"^Killed(?::\s*\d+)?\s*$",
]


class PatternConfig(BaseModel):
    """Textual recognition patterns used by the state classifier.

    Each entry is a regular expression. Prompt and footer patterns are
    matched against stripped lines; running and stopped patterns against raw
    lines, so ``^`` means column 0; approval and waiting patterns against the
    text from the prompt line onward (multiline).
    """

    prompt: list[str] = Field(default_factory=lambda: list(DEFAULT_PROMPT_PATTERNS))
    footer: list[str] = Field(default_factory=lambda: list(DEFAULT_FOOTER_PATTERNS))
    approval: list[str] = Field(default_factory=lambda: list(DEFAULT_APPROVAL_PATTERNS))
    waiting: list[str] = Field(default_factory=lambda: list(DEFAULT_WAITING_PATTERNS))
    running: list[str] = Field(default_factory=lambda: list(DEFAULT_RUNNING_PATTERNS))
    stopped: list[str] = Field(default_factory=lambda: list(DEFAULT_STOPPED_PATTERNS))

    @field_validator("prompt", "footer", "approval", "waiting", "running", "stopped")
    @classmethod
    def _patterns_compile(cls, value: list[str]) -> list[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid pattern {pattern!r}: {e}") from e
        return value


class AppConfig(BaseModel):
    """Root application configuration.

    Loaded from config.yaml and validated with Pydantic.
    """

    target_command: str = Field(
        default="claude",
        min_length=1,
        description="Logical command name of the monitored agent",
    )
    poll_interval: float = Field(
        default=1.0,
        ge=0.1,
        le=60,
        description="Seconds between poll cycles",
    )
    capture_lines: int = Field(
        default=100,
        ge=10,
        le=10000,
        description="Trailing lines (including scrollback) captured per pane",
    )
    stale_threshold: int = Field(
        default=3,
        ge=0,
        le=100,
        description="Consecutive capture failures tolerated before a session turns unknown",
    )
    command_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Timeout in seconds for each tmux invocation",
    )
    max_capture_workers: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Upper bound on concurrent pane captures",
    )
    versions_dir: str | None = Field(
        default=None,
        description="Directory of installed agent versions (resolved from PATH when unset)",
    )
    version_refresh_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Seconds before the versions directory is re-read",
    )
    prompt_search_depth: int = Field(
        default=12,
        ge=1,
        le=200,
        description="Content lines the backward prompt scan may cross",
    )
    status_block_lines: int = Field(
        default=12,
        ge=0,
        le=200,
        description="Lines of the status paragraph above the prompt box checked for activity",
    )
    patterns: PatternConfig = Field(
        default_factory=PatternConfig,
        description="Classifier recognition patterns",
    )
    host: str = Field(default="127.0.0.1", description="Bind address for the HTTP server")
    port: int = Field(
        default=5055,
        ge=1024,
        le=65535,
        description="Port for the HTTP server",
    )
    debug: bool = Field(default=False, description="Enable Flask debug mode")
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root logging level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value
