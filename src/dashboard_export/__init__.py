"""Gateway Dashboard Export - privacy-scrubbed session activity snapshots."""

from importlib.metadata import version

try:
    __version__ = version("clawdbot-dashboard-export")
except Exception:
    __version__ = "0.1.0"  # Fallback for development

# Re-export public API
from dashboard_export.classify import classify
from dashboard_export.ingest import collect_activity, fold_session, load_sessions
from dashboard_export.models import (
    ActivityEntry,
    EventType,
    SessionAggregate,
    Snapshot,
    StatusFacts,
)
from dashboard_export.redact import Redactor, redact
from dashboard_export.snapshot import (
    SnapshotWriteError,
    build_snapshot,
    create_snapshot,
    write_snapshot,
)

__all__ = [
    # Version
    "__version__",
    # Models
    "ActivityEntry",
    "EventType",
    "SessionAggregate",
    "Snapshot",
    "StatusFacts",
    # Pipeline
    "redact",
    "Redactor",
    "classify",
    "fold_session",
    "collect_activity",
    "load_sessions",
    "build_snapshot",
    "create_snapshot",
    "write_snapshot",
    "SnapshotWriteError",
]
