"""Poller - drives the discover / capture / classify / publish cycle.

Runs on one dedicated background thread, the only writer of session state.
Pane captures within a cycle run concurrently; results are merged into the
registry only after every capture has finished or failed.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor

from claudeye.backends.base import BackendUnavailable, CaptureFailed, MultiplexerBackend
from claudeye.models.session import Snapshot
from claudeye.services.capture import ContentCapture
from claudeye.services.classifier import StateClassifier
from claudeye.services.directory import CandidatePane, ProcessDirectory
from claudeye.services.registry import PaneResult, SessionRegistry
from claudeye.services.snapshot_hub import SnapshotHub

logger = logging.getLogger(__name__)


class Poller:
    """Polls the multiplexer on a fixed period and publishes snapshots."""

    DEFAULT_POLL_INTERVAL_SECONDS = 1.0

    def __init__(
        self,
        directory: ProcessDirectory,
        capture: ContentCapture,
        classifier: StateClassifier,
        registry: SessionRegistry,
        hub: SnapshotHub,
        backend: MultiplexerBackend | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_workers: int = 8,
        on_fatal: Callable[[BackendUnavailable], None] | None = None,
    ):
        """Initialize the Poller.

        Args:
            directory: Finds candidate panes.
            capture: Captures pane content.
            classifier: Classifies captured content.
            registry: Session registry to fold results into.
            hub: Where snapshots are published.
            backend: Backend whose in-flight processes are killed on stop.
            poll_interval: Seconds between cycle starts.
            max_workers: Upper bound on concurrent captures.
            on_fatal: Called once if the multiplexer becomes unavailable.
        """
        self._directory = directory
        self._capture = capture
        self._classifier = classifier
        self._registry = registry
        self._hub = hub
        self._backend = backend
        self.poll_interval = poll_interval
        self.max_workers = max_workers
        self._on_fatal = on_fatal

        self._executor: ThreadPoolExecutor | None = None
        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()

        # Threading
        self._running = False
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

        self._fatal_error: BackendUnavailable | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def fatal_error(self) -> BackendUnavailable | None:
        """The fatal backend error that stopped the poller, if any."""
        return self._fatal_error

    def start(self) -> None:
        """Start the polling loop."""
        with self._lock:
            if self._running:
                return

            self._running = True
            self._fatal_error = None
            self._stop_event.clear()
            if self._backend is not None:
                self._backend.resume()
            self._thread = threading.Thread(target=self._poll_loop, name="claudeye-poller", daemon=True)
            self._thread.start()
            logger.info(f"Poller started (interval: {self.poll_interval}s)")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and cancel in-flight captures as a unit."""
        with self._lock:
            self._stop_event.set()
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
            if self._backend is not None:
                self._backend.terminate_all()
            if self._thread is not None and self._thread is not threading.current_thread():
                self._thread.join(timeout=timeout)
            self._thread = None
            self._running = False
            logger.info("Poller stopped")

    def poll_once(self) -> Snapshot | None:
        """Run one full cycle and publish its Snapshot.

        Returns:
            The published Snapshot, or None if the cycle was abandoned
            because the poller is stopping.

        Raises:
            BackendUnavailable: If discovery fails.
        """
        with self._cycle_lock:
            candidates = self._directory.list_candidate_panes()
            results = self._capture_all(candidates)
            if results is None or self._stop_event.is_set():
                logger.debug("Poll cycle abandoned during shutdown")
                return None

            snapshot = self._registry.apply_cycle(results)
            self._hub.publish(snapshot)
            return snapshot

    def _capture_all(self, candidates: list[CandidatePane]) -> list[PaneResult] | None:
        if not candidates:
            return []

        executor = self._executor
        if executor is None:
            executor = self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="claudeye-capture",
            )

        try:
            futures: list[Future] = [
                executor.submit(self._capture_one, candidate) for candidate in candidates
            ]
        except RuntimeError:
            # Executor already shut down by stop()
            return None

        results = []
        for future in futures:
            try:
                results.append(future.result())
            except CancelledError:
                return None
        return results

    def _capture_one(self, candidate: CandidatePane) -> PaneResult:
        try:
            content = self._capture.capture(candidate.pane)
        except CaptureFailed as e:
            return PaneResult(pane=candidate.pane, command=candidate.command, error=e.reason)

        return PaneResult(
            pane=candidate.pane,
            command=candidate.command,
            state=self._classifier.classify(content),
            captured_at=content.captured_at,
        )

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            started = time.monotonic()
            try:
                self.poll_once()
            except BackendUnavailable as e:
                if self._stop_event.is_set():
                    # Listing was killed by stop()
                    logger.debug(f"Poll cycle abandoned during shutdown: {e}")
                    return
                self._fatal_error = e
                self._running = False
                logger.error(f"Multiplexer unavailable, polling stopped: {e}")
                if self._on_fatal is not None:
                    self._on_fatal(e)
                return
            except Exception as e:
                # Previous snapshot stays published
                logger.exception(f"Poll cycle failed: {e}")

            elapsed = time.monotonic() - started
            self._stop_event.wait(max(0.0, self.poll_interval - elapsed))
