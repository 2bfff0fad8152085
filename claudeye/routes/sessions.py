"""Session routes for claudeye.

Provides the read-only snapshot endpoints and pane activation used by
external consumers (overlay, picker):
- Current snapshot
- Snapshot stream (Server-Sent Events)
- Activate a pane
- Poller health
"""

import logging

from flask import Blueprint, Response, current_app, jsonify

from claudeye.backends.base import ActivationFailed
from claudeye.services.monitor import Monitor

logger = logging.getLogger(__name__)

sessions_bp = Blueprint("sessions", __name__)


def _get_monitor() -> Monitor:
    """Get the monitor from app extensions."""
    return current_app.extensions["monitor"]


@sessions_bp.route("/sessions", methods=["GET"])
def list_sessions():
    """Current snapshot of all known sessions.

    Returns:
        JSON object with cycle, taken_at, sessions and transitions.
    """
    snapshot = _get_monitor().current_snapshot()
    return jsonify(snapshot.to_dict())


@sessions_bp.route("/sessions/stream")
def stream_sessions():
    """Server-Sent Events stream with one ``snapshot`` event per poll cycle.

    Returns:
        SSE stream in format:
        event: snapshot
        data: <json_payload>
        id: <version>
    """
    hub = _get_monitor().hub
    keepalive = current_app.config.get("SSE_KEEPALIVE_SECONDS", 15.0)

    return Response(
        hub.get_sse_stream(keepalive=keepalive),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@sessions_bp.route("/sessions/<path:pane_id>/activate", methods=["POST"])
def activate_session(pane_id: str):
    """Bring a pane into focus.

    Args:
        pane_id: tmux pane id (e.g. "%12").

    Returns:
        {"success": true}, or 404 with the reason if the pane is gone.
    """
    try:
        _get_monitor().activate(pane_id)
    except ActivationFailed as e:
        logger.info(f"[API] activate {pane_id} failed: {e.reason}")
        return jsonify({"success": False, "error": e.reason}), 404

    return jsonify({"success": True})


@sessions_bp.route("/health", methods=["GET"])
def health():
    """Poller status.

    Returns:
        JSON with running flag, last cycle and the fatal error, if any.
    """
    monitor = _get_monitor()
    fatal = monitor.fatal_error
    snapshot = monitor.current_snapshot()

    payload = {
        "running": monitor.is_running,
        "cycle": snapshot.cycle,
        "sessions": len(snapshot.sessions),
        "error": str(fatal) if fatal else None,
    }
    return jsonify(payload), 503 if fatal else 200
