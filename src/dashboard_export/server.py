"""MCP Dashboard Export Server.

Provides read-only tools over the gateway's session logs:
- get_snapshot: The full dashboard document
- query_sessions: Sessions active in a trailing window
- query_activity: Recent activity feed, optionally filtered by event type
- get_status: Gateway, model and auth status
"""

import logging
import os

from fastmcp import FastMCP

from dashboard_export import __version__
from dashboard_export.models import DEFAULT_WINDOW_HOURS, EventType
from dashboard_export.snapshot import create_snapshot
from dashboard_export.status import StatusProbe

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("dashboard-export")
if os.environ.get("DEV_MODE"):
    logger.setLevel(logging.DEBUG)

# Initialize MCP server
mcp = FastMCP("dashboard-export")


@mcp.tool()
def get_snapshot(hours: float = DEFAULT_WINDOW_HOURS, include_status: bool = True) -> dict:
    """Build the dashboard snapshot without writing it.

    Args:
        hours: Trailing window in hours (default: 24)
        include_status: Run the gateway status commands (default: True)

    Returns:
        Document with timestamp, gateway, sessions and activityLog
    """
    probe = StatusProbe() if include_status else None
    return create_snapshot(probe=probe, window_hours=hours).to_dict()


@mcp.tool()
def query_sessions(hours: float = DEFAULT_WINDOW_HOURS) -> dict:
    """Get sessions with activity in the trailing window.

    Args:
        hours: Trailing window in hours (default: 24)

    Returns:
        Session key, model, total tokens and last activity per session
    """
    snapshot = create_snapshot(window_hours=hours)
    return {
        "hours": hours,
        "session_count": len(snapshot.sessions),
        "sessions": [s.to_dict() for s in snapshot.sessions],
    }


@mcp.tool()
def query_activity(
    hours: float = DEFAULT_WINDOW_HOURS,
    limit: int = 50,
    event_type: str | None = None,
) -> dict:
    """Get the recent activity feed, newest first.

    Args:
        hours: Trailing window in hours (default: 24)
        limit: Maximum entries to return (default: 50)
        event_type: Optional filter: user_message, assistant_message,
            tool_call, system or other

    Returns:
        Redacted activity entries
    """
    if event_type is not None and event_type not in {t.value for t in EventType}:
        return {"status": "error", "message": f"Unknown event type: {event_type}"}

    snapshot = create_snapshot(window_hours=hours)
    entries = snapshot.activity
    if event_type:
        entries = [e for e in entries if e.event_type.value == event_type]

    return {
        "hours": hours,
        "total": len(entries),
        "activityLog": [e.to_dict() for e in entries[: max(limit, 0)]],
    }


@mcp.tool()
def get_status() -> dict:
    """Get gateway status, default/fallback models and auth providers."""
    return {
        "version": __version__,
        **StatusProbe().collect().to_dict(),
    }


def create_app():
    """Create the ASGI app for uvicorn."""
    # stateless_http=True allows resilience to server restarts
    return mcp.http_app(stateless_http=True)


def main():
    """Run the MCP server."""
    import uvicorn

    port = int(os.environ.get("PORT", 8082))
    host = os.environ.get("HOST", "127.0.0.1")

    print(f"Starting Dashboard Export on {host}:{port}")
    print(
        f"Add to your MCP client: claude mcp add --transport http --scope user dashboard-export http://{host}:{port}/mcp"
    )

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
