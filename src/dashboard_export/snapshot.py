"""Snapshot assembly and output."""

import json
import logging
import os
import tempfile
from pathlib import Path

from dashboard_export.ingest import load_sessions, resolve_sessions_dir
from dashboard_export.models import (
    DEFAULT_WINDOW_HOURS,
    DEFAULT_WINDOW_MS,
    HOUR_MS,
    Snapshot,
    StatusFacts,
    now_ms,
    within_window,
)

logger = logging.getLogger("dashboard-export")

DEFAULT_OUTPUT_PATH = Path("data.json")


class SnapshotWriteError(Exception):
    """The snapshot document could not be written."""

    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"Could not write snapshot to {path}: {cause}")
        self.path = path
        self.cause = cause


def build_snapshot(
    status: StatusFacts,
    aggregates,
    activity,
    now: int,
    window_ms: int = DEFAULT_WINDOW_MS,
) -> Snapshot:
    """Assemble the output document.

    Sessions are kept only if their last activity is inside the window.
    ``activity`` is already window-filtered and ordered, so it is passed
    through as is.
    """
    recent = [a for a in aggregates if within_window(a.last_activity, now, window_ms)]
    return Snapshot(timestamp=now, status=status, sessions=recent, activity=list(activity))


def create_snapshot(
    sessions_dir: Path | str | None = None,
    probe=None,
    now: int | None = None,
    window_hours: float = DEFAULT_WINDOW_HOURS,
) -> Snapshot:
    """Gather all inputs and build a snapshot.

    Args:
        sessions_dir: Session log directory (default: $DASHBOARD_SESSIONS_DIR or
            ~/.clawdbot/agents/main/sessions)
        probe: Object with a ``collect() -> StatusFacts`` method; None skips probing
        now: Export time in epoch milliseconds (default: current time)
        window_hours: Width of the trailing window

    Returns:
        Snapshot ready for serialization
    """
    if now is None:
        now = now_ms()
    window_ms = int(window_hours * HOUR_MS)

    status = probe.collect() if probe is not None else StatusFacts.unavailable()
    aggregates, activity = load_sessions(resolve_sessions_dir(sessions_dir), now, window_ms)
    return build_snapshot(status, aggregates, activity, now, window_ms)


def write_snapshot(snapshot: Snapshot, path: Path | str = DEFAULT_OUTPUT_PATH) -> Path:
    """Write the snapshot as pretty-printed JSON.

    The document goes to a temporary file beside ``path`` and is renamed into
    place, so readers never see a partial file.

    Raises:
        SnapshotWriteError: If the file cannot be written
    """
    path = Path(path)
    document = json.dumps(snapshot.to_dict(), indent=2)

    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(document)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, ValueError) as e:
        logger.error(f"Failed to write snapshot to {path}: {e}")
        raise SnapshotWriteError(path, e) from e
    finally:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    logger.info(
        f"Wrote snapshot to {path} "
        f"({len(snapshot.sessions)} sessions, {len(snapshot.activity)} activity entries)"
    )
    return path
