"""Monitor - wires the pipeline together and exposes it to consumers.

Consumers (an overlay, a picker, the HTTP routes) only use:
- current_snapshot(): latest Snapshot, no locking
- subscribe_snapshots(): generator of Snapshots as they are published
- activate(pane_id): focus a pane

Usage:
    monitor = Monitor(config)
    monitor.start()
    for snapshot in monitor.subscribe_snapshots():
        ...
"""

import logging
from collections.abc import Callable, Generator

from claudeye.backends.base import BackendUnavailable, MultiplexerBackend
from claudeye.backends.tmux import TmuxBackend
from claudeye.models.config import AppConfig
from claudeye.models.session import Snapshot
from claudeye.services.capture import ContentCapture
from claudeye.services.classifier import StateClassifier
from claudeye.services.directory import ProcessDirectory, VersionResolver
from claudeye.services.poller import Poller
from claudeye.services.registry import SessionRegistry
from claudeye.services.snapshot_hub import SnapshotHub

logger = logging.getLogger(__name__)


class Monitor:
    """The session discovery and classification pipeline behind one facade."""

    def __init__(
        self,
        config: AppConfig | None = None,
        backend: MultiplexerBackend | None = None,
        resolver: VersionResolver | None = None,
        on_fatal: Callable[[BackendUnavailable], None] | None = None,
    ):
        """Initialize the Monitor.

        Args:
            config: Application configuration. Defaults to AppConfig().
            backend: Multiplexer backend. Defaults to a TmuxBackend.
            resolver: Version resolver. Built from config if not provided.
            on_fatal: Called once if the multiplexer becomes unavailable.
        """
        self.config = config or AppConfig()
        self.backend = backend or TmuxBackend(timeout=self.config.command_timeout)
        self._on_fatal = on_fatal

        resolver = resolver or VersionResolver(
            self.config.target_command,
            versions_dir=self.config.versions_dir,
            refresh_seconds=self.config.version_refresh_seconds,
        )
        self.directory = ProcessDirectory(self.backend, self.config.target_command, resolver)
        self.capture = ContentCapture(self.backend, self.config.capture_lines)
        self.classifier = StateClassifier(
            self.config.patterns,
            prompt_search_depth=self.config.prompt_search_depth,
            status_block_lines=self.config.status_block_lines,
        )
        self.registry = SessionRegistry(stale_threshold=self.config.stale_threshold)
        self.hub = SnapshotHub()
        self.poller = Poller(
            directory=self.directory,
            capture=self.capture,
            classifier=self.classifier,
            registry=self.registry,
            hub=self.hub,
            backend=self.backend,
            poll_interval=self.config.poll_interval,
            max_workers=self.config.max_capture_workers,
            on_fatal=self._handle_fatal,
        )

    @property
    def is_running(self) -> bool:
        return self.poller.is_running

    @property
    def fatal_error(self) -> BackendUnavailable | None:
        return self.poller.fatal_error

    def start(self) -> None:
        """Start background polling."""
        self.poller.start()

    def stop(self) -> None:
        """Stop polling, kill in-flight captures and end subscriptions."""
        self.poller.stop()
        self.hub.close()

    def poll_once(self) -> Snapshot | None:
        """Run a single cycle synchronously.

        Raises:
            BackendUnavailable: If the multiplexer cannot be queried.
        """
        return self.poller.poll_once()

    def current_snapshot(self) -> Snapshot:
        """Latest published Snapshot."""
        return self.hub.current()

    def subscribe_snapshots(self) -> Generator[Snapshot, None, None]:
        """Current Snapshot followed by each newly published one."""
        return self.hub.subscribe()

    def activate(self, pane_id: str) -> bool:
        """Bring a pane into focus.

        Raises:
            ActivationFailed: If the pane no longer exists.
        """
        self.backend.activate_pane(pane_id)
        logger.info(f"Activated pane {pane_id}")
        return True

    def _handle_fatal(self, error: BackendUnavailable) -> None:
        self.hub.close()
        if self._on_fatal is not None:
            self._on_fatal(error)
