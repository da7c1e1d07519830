"""Command-line interface for the dashboard export."""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

from dashboard_export.models import DEFAULT_WINDOW_HOURS, EventType
from dashboard_export.snapshot import (
    DEFAULT_OUTPUT_PATH,
    SnapshotWriteError,
    create_snapshot,
    write_snapshot,
)
from dashboard_export.status import StatusProbe

logger = logging.getLogger("dashboard-export")

# Formatter registry: list of (predicate, formatter) tuples
# Each predicate checks if this formatter can handle the data
# Order matters - first match wins
_FORMATTERS: list[tuple[callable, callable]] = []


def _register_formatter(predicate: callable):
    """Decorator to register a formatter with its predicate."""

    def decorator(formatter: callable):
        _FORMATTERS.append((predicate, formatter))
        return formatter

    return decorator


def _format_ms(timestamp: int | None) -> str:
    if timestamp is None:
        return "never"
    return datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d %H:%M")


@_register_formatter(lambda d: "output_path" in d)
def _format_export(data: dict) -> list[str]:
    return [
        f"Dashboard data exported to {data['output_path']}",
        f"Gateway: {data['gateway_status']}",
        f"Sessions: {data['session_count']}",
        f"Activity entries: {data['activity_count']}",
    ]


@_register_formatter(lambda d: "sessions" in d and "hours" in d)
def _format_sessions(data: dict) -> list[str]:
    lines = [f"Sessions active in the last {data['hours']} hours: {len(data['sessions'])}"]
    for session in data["sessions"]:
        lines.append(
            f"  {session['key']} - {session['model']} "
            f"({session['totalTokens']} tokens, last {_format_ms(session['lastActivity'])})"
        )
    return lines


@_register_formatter(lambda d: "activityLog" in d and "hours" in d)
def _format_activity(data: dict) -> list[str]:
    lines = [f"Activity in the last {data['hours']} hours: {len(data['activityLog'])} entries"]
    for entry in data["activityLog"]:
        lines.append(
            f"  [{_format_ms(entry['timestamp'])}] {entry['sessionKey']} "
            f"{entry['eventType']}: {entry['summary']}"
        )
    return lines


@_register_formatter(lambda d: "status" in d and "auth" in d)
def _format_status(data: dict) -> list[str]:
    providers = data["auth"]["providers"]
    return [
        f"Gateway: {data['status']}",
        f"Default model: {data['model']['primary']}",
        f"Fallbacks: {data['model']['fallbacks']}",
        f"Auth providers: {', '.join(providers) if providers else 'none'}",
    ]


def format_output(data: dict, json_output: bool = False) -> str:
    """Format output as JSON or human-readable."""
    if json_output:
        return json.dumps(data, indent=2, default=str)

    # Find matching formatter from registry
    for predicate, formatter in _FORMATTERS:
        if predicate(data):
            return "\n".join(formatter(data))

    # Fallback to JSON if no formatter matches
    return json.dumps(data, indent=2, default=str)


def cmd_export(args):
    """Write the dashboard snapshot."""
    probe = None if args.no_status else StatusProbe()
    snapshot = create_snapshot(
        sessions_dir=args.sessions_dir,
        probe=probe,
        window_hours=args.hours,
    )
    try:
        path = write_snapshot(snapshot, args.output)
    except SnapshotWriteError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    result = {
        "output_path": str(path),
        "gateway_status": snapshot.status.to_dict()["status"],
        "session_count": len(snapshot.sessions),
        "activity_count": len(snapshot.activity),
    }
    print(format_output(result, args.json))


def cmd_sessions(args):
    """Show recently active sessions."""
    snapshot = create_snapshot(sessions_dir=args.sessions_dir, window_hours=args.hours)
    result = {
        "hours": args.hours,
        "sessions": [s.to_dict() for s in snapshot.sessions],
    }
    print(format_output(result, args.json))


def cmd_activity(args):
    """Show the recent activity feed."""
    snapshot = create_snapshot(sessions_dir=args.sessions_dir, window_hours=args.hours)
    entries = snapshot.activity
    if args.type:
        entries = [e for e in entries if e.event_type.value == args.type]
    if args.limit is not None:
        entries = entries[: max(args.limit, 0)]
    result = {
        "hours": args.hours,
        "activityLog": [e.to_dict() for e in entries],
    }
    print(format_output(result, args.json))


def cmd_status(args):
    """Show gateway status facts."""
    facts = StatusProbe().collect()
    print(format_output(facts.to_dict(), args.json))


def _add_window_args(sub):
    sub.add_argument(
        "--sessions-dir",
        help="Session log directory (default: $DASHBOARD_SESSIONS_DIR or "
        "~/.clawdbot/agents/main/sessions)",
    )
    sub.add_argument(
        "--hours",
        type=float,
        default=DEFAULT_WINDOW_HOURS,
        help=f"Trailing window in hours (default: {DEFAULT_WINDOW_HOURS})",
    )


def main():
    """CLI entry point."""
    epilog = """
Examples:
  dashboard-export export                      # Write ./data.json
  dashboard-export export --output /srv/dash/data.json
  dashboard-export sessions                    # Sessions active in the last 24h
  dashboard-export activity --type tool_call   # Recent tool calls only
  dashboard-export status                      # Gateway and model status

All commands support --json for machine-readable output.
Set DEV_MODE=1 for debug logging.
"""
    parser = argparse.ArgumentParser(
        description="Export gateway session activity for the monitoring dashboard",
        prog="dashboard-export",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # export
    sub = subparsers.add_parser("export", help="Write the dashboard snapshot")
    sub.add_argument(
        "--output",
        default=str(DEFAULT_OUTPUT_PATH),
        help=f"Output file (default: {DEFAULT_OUTPUT_PATH})",
    )
    sub.add_argument("--no-status", action="store_true", help="Skip the gateway status probe")
    _add_window_args(sub)
    sub.set_defaults(func=cmd_export)

    # sessions
    sub = subparsers.add_parser("sessions", help="Show recently active sessions")
    _add_window_args(sub)
    sub.set_defaults(func=cmd_sessions)

    # activity
    sub = subparsers.add_parser("activity", help="Show the recent activity feed")
    _add_window_args(sub)
    sub.add_argument("--limit", type=int, default=50, help="Max entries (default: 50)")
    sub.add_argument(
        "--type",
        choices=[t.value for t in EventType],
        help="Only show one event type",
    )
    sub.set_defaults(func=cmd_activity)

    # status
    sub = subparsers.add_parser("status", help="Show gateway status")
    sub.set_defaults(func=cmd_status)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    if os.environ.get("DEV_MODE"):
        logger.setLevel(logging.DEBUG)

    args.func(args)


if __name__ == "__main__":
    main()
