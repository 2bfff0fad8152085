"""Command-line entry point for claudeye.

Usage:
    claudeye [--config PATH] serve [--host HOST] [--port N]
    claudeye list [--json] [--explain] [--demo]
    claudeye activate TARGET
"""

import _thread
import argparse
import json
import logging
import sys

from claudeye.app import create_app
from claudeye.backends.base import ActivationFailed, BackendUnavailable, CaptureFailed
from claudeye.backends.fake import demo_backend
from claudeye.models.config import AppConfig
from claudeye.models.session import Snapshot
from claudeye.services.config_service import DEFAULT_CONFIG_PATH, ConfigService
from claudeye.services.monitor import Monitor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claudeye",
        description="Watch agent sessions running in tmux panes",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the config file (default: {DEFAULT_CONFIG_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Poll continuously and serve snapshots over HTTP")
    serve.add_argument("--port", type=int, help="HTTP port (overrides config)")
    serve.add_argument("--host", help="Bind address (overrides config)")

    list_cmd = subparsers.add_parser("list", help="Run one poll cycle and print the sessions")
    list_cmd.add_argument("--json", action="store_true", help="Print the snapshot as JSON")
    list_cmd.add_argument(
        "--explain", action="store_true", help="Show which rule decided each state"
    )
    list_cmd.add_argument(
        "--demo", action="store_true", help="Use scripted demo panes instead of tmux"
    )

    activate = subparsers.add_parser("activate", help="Focus a session's pane")
    activate.add_argument("target", help="Pane id (e.g. %%12) or 1-based index from 'list'")

    return parser


def format_session_line(index: int, session) -> str:
    """One row of ``claudeye list`` output."""
    return (
        f"{index:>2}  {session.pane.target:<16} {session.pane.project_name:<24} "
        f"[{session.state.value.upper()}]"
    )


def resolve_target(target: str, snapshot: Snapshot) -> str | None:
    """Map a pane id or a 1-based list index to a pane id.

    Returns:
        The pane id, or None if the index is out of range.
    """
    if target.isdigit():
        index = int(target)
        if 1 <= index <= len(snapshot.sessions):
            return snapshot.sessions[index - 1].pane_id
        return None
    return target


def cmd_serve(args, config: AppConfig) -> int:
    if args.port is not None:
        config = config.model_copy(update={"port": args.port})
    if args.host is not None:
        config = config.model_copy(update={"host": args.host})

    # Wake the main thread out of app.run() if tmux goes away
    monitor = Monitor(config, on_fatal=lambda error: _thread.interrupt_main())

    try:
        monitor.poll_once()
    except BackendUnavailable as e:
        print(f"claudeye: tmux unavailable: {e}", file=sys.stderr)
        return 1

    monitor.start()
    app = create_app(config, monitor)

    logger.info(f"Starting claudeye on {config.host}:{config.port}")
    try:
        app.run(host=config.host, port=config.port, debug=config.debug, threaded=True)
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()

    if monitor.fatal_error is not None:
        print(f"claudeye: tmux unavailable: {monitor.fatal_error}", file=sys.stderr)
        return 1
    return 0


def cmd_list(args, config: AppConfig) -> int:
    backend = demo_backend() if args.demo else None
    monitor = Monitor(config, backend=backend)
    try:
        return _print_sessions(args, monitor)
    except BackendUnavailable as e:
        print(f"claudeye: tmux unavailable: {e}", file=sys.stderr)
        return 1
    finally:
        monitor.stop()


def _print_sessions(args, monitor: Monitor) -> int:
    snapshot = monitor.poll_once() or monitor.current_snapshot()

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2))
        return 0

    if not snapshot.sessions:
        print("No sessions found")
        return 0

    for index, session in enumerate(snapshot.sessions, start=1):
        print(format_session_line(index, session))
        if args.explain:
            print(f"      {_explain(monitor, session)}")
    return 0


def _explain(monitor: Monitor, session) -> str:
    try:
        content = monitor.capture.capture(session.pane)
    except CaptureFailed as e:
        return f"capture failed: {e.reason}"

    result = monitor.classifier.interpret(content)
    parts = [f"rule={result.rule.value}"]
    if result.prompt_index is not None:
        parts.append(f"prompt_line={result.prompt_index}")
    if result.pattern is not None:
        parts.append(f"pattern={result.pattern!r}")
    return " ".join(parts)


def cmd_activate(args, config: AppConfig) -> int:
    monitor = Monitor(config)
    try:
        pane_id = args.target
        if args.target.isdigit():
            snapshot = monitor.poll_once() or monitor.current_snapshot()
            pane_id = resolve_target(args.target, snapshot)
            if pane_id is None:
                print(f"claudeye: no session at index {args.target}", file=sys.stderr)
                return 1

        monitor.activate(pane_id)
    except BackendUnavailable as e:
        print(f"claudeye: tmux unavailable: {e}", file=sys.stderr)
        return 1
    except ActivationFailed as e:
        print(f"claudeye: {e}", file=sys.stderr)
        return 1
    finally:
        monitor.stop()
    return 0


COMMANDS = {
    "serve": cmd_serve,
    "list": cmd_list,
    "activate": cmd_activate,
}


def main(argv: list[str] | None = None) -> int:
    """Run the claudeye CLI.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv[1:].

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    config = ConfigService(args.config).load()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    return COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
