"""SnapshotHub - hands the latest Snapshot from the poller to consumers.

Single writer (the poller), many readers. Publishing swaps one reference to
an immutable Snapshot, so readers of current() never lock and never see a
half-built value. Subscribers block on a condition variable until a newer
Snapshot is published; a slow subscriber skips to the latest one.
"""

import json
import threading
from collections.abc import Generator

from claudeye.models.session import Snapshot


def format_sse(snapshot: Snapshot, event_id: int) -> str:
    """Format a Snapshot as a Server-Sent Events message.

    SSE format:
    event: snapshot
    data: <json_data>
    id: <event_id>

    """
    lines = [
        "event: snapshot",
        f"data: {json.dumps(snapshot.to_dict())}",
        f"id: {event_id}",
        "",
    ]
    return "\n".join(lines) + "\n"


class SnapshotHub:
    """Latest-value hand-off between the poller and consumers."""

    def __init__(self, initial: Snapshot | None = None):
        self._current = initial or Snapshot()
        self._version = 0
        self._closed = False
        self._condition = threading.Condition()

    @property
    def version(self) -> int:
        """Number of snapshots published so far."""
        return self._version

    @property
    def closed(self) -> bool:
        return self._closed

    def current(self) -> Snapshot:
        """Latest published Snapshot."""
        return self._current

    def publish(self, snapshot: Snapshot) -> None:
        """Replace the current Snapshot and wake subscribers."""
        with self._condition:
            self._current = snapshot
            self._version += 1
            self._condition.notify_all()

    def close(self) -> None:
        """End all subscriptions."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def wait_for_update(
        self, seen_version: int, timeout: float | None = None
    ) -> tuple[Snapshot, int] | None:
        """Block until a Snapshot newer than ``seen_version`` is published.

        Returns:
            (snapshot, version), or None on timeout or when the hub is closed.
        """
        with self._condition:
            self._condition.wait_for(
                lambda: self._version != seen_version or self._closed, timeout=timeout
            )
            if self._closed or self._version == seen_version:
                return None
            return self._current, self._version

    def subscribe(self) -> Generator[Snapshot, None, None]:
        """Yield the current Snapshot, then every newer one as it is published.

        Each call starts an independent stream. The stream ends when the hub
        is closed.
        """
        with self._condition:
            snapshot, version = self._current, self._version
        yield snapshot

        while True:
            update = self.wait_for_update(version)
            if update is None:
                return
            snapshot, version = update
            yield snapshot

    def get_sse_stream(self, keepalive: float = 15.0) -> Generator[str, None, None]:
        """SSE stream of snapshots, for the HTTP route.

        Args:
            keepalive: Seconds without a publish before a keep-alive comment.

        Yields:
            SSE-formatted strings.
        """
        with self._condition:
            snapshot, version = self._current, self._version
        yield format_sse(snapshot, version)

        while not self._closed:
            update = self.wait_for_update(version, timeout=keepalive)
            if update is None:
                if self._closed:
                    return
                # Send keep-alive comment to prevent timeout
                yield ": keep-alive\n\n"
                continue
            snapshot, version = update
            yield format_sse(snapshot, version)
