"""JSONL session log ingestion: per-session fold and activity collection."""

import json
import logging
import math
import os
from dataclasses import dataclass, replace
from functools import reduce
from pathlib import Path

from dashboard_export.classify import classify
from dashboard_export.models import (
    DEFAULT_WINDOW_MS,
    FALLBACK_KEY_LENGTH,
    ActivityEntry,
    SessionAggregate,
    parse_timestamp,
)

logger = logging.getLogger("dashboard-export")

# Default location of the gateway's session logs
DEFAULT_SESSIONS_DIR = Path.home() / ".clawdbot" / "agents" / "main" / "sessions"


def resolve_sessions_dir(sessions_dir: Path | str | None = None) -> Path:
    """Explicit directory, else $DASHBOARD_SESSIONS_DIR, else the default."""
    if sessions_dir:
        return Path(sessions_dir).expanduser()
    env_dir = os.environ.get("DASHBOARD_SESSIONS_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return DEFAULT_SESSIONS_DIR


def find_session_files(sessions_dir: Path) -> list[Path]:
    """List session log files, sorted by name.

    A missing or unreadable directory yields an empty list.
    """
    if not sessions_dir.is_dir():
        logger.warning(f"Sessions directory does not exist: {sessions_dir}")
        return []

    try:
        return sorted(p for p in sessions_dir.glob("*.jsonl") if p.is_file())
    except OSError as e:
        logger.warning(f"Could not list {sessions_dir}: {e}")
        return []


def read_records(file_path: Path):
    """Yield JSON objects from a JSONL file, skipping lines that are not objects."""
    with open(file_path, encoding="utf-8", errors="replace") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                raw = json.loads(line)
            except (ValueError, RecursionError) as e:
                logger.debug(f"JSON parse error in {file_path}:{line_num}: {e}")
                continue

            if not isinstance(raw, dict):
                logger.debug(f"Skipping non-object record in {file_path}:{line_num}")
                continue

            yield raw


def _token_count(record: dict) -> int | float:
    usage = record.get("usage")
    if not isinstance(usage, dict):
        return 0
    total = usage.get("totalTokens")
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        return 0
    return total if math.isfinite(total) else 0


def _non_empty_str(value) -> str | None:
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class FoldState:
    """Running state threaded through the fold of one session file."""

    fallback_key: str
    session_key: str | None = None
    model: str = "unknown"
    total_tokens: int | float = 0
    last_activity: int | None = None
    entries: tuple[ActivityEntry, ...] = ()

    @property
    def key(self) -> str:
        return self.session_key or self.fallback_key

    def to_aggregate(self) -> SessionAggregate:
        return SessionAggregate(
            key=self.key,
            model=self.model,
            total_tokens=self.total_tokens,
            last_activity=self.last_activity,
        )


def fold_record(state: FoldState, record: dict, now: int, window_ms: int) -> FoldState:
    """Advance ``state`` by one record. Pure: returns a new state.

    Records that are not JSON objects leave ``state`` untouched.
    """
    if not isinstance(record, dict):
        return state

    record_type = record.get("type")
    changes = {}

    if record_type == "session":
        session_key = _non_empty_str(record.get("sessionKey"))
        if session_key:
            changes["session_key"] = session_key

    if record_type == "model_change":
        model_id = _non_empty_str(record.get("modelId"))
        if model_id:
            changes["model"] = model_id

    tokens = _token_count(record)
    if tokens:
        changes["total_tokens"] = state.total_tokens + tokens

    timestamp = parse_timestamp(record.get("timestamp"))
    if timestamp is not None and (state.last_activity is None or timestamp > state.last_activity):
        changes["last_activity"] = timestamp

    state = replace(state, **changes) if changes else state

    result = classify(record, now, window_ms)
    if result is None:
        return state

    entry = ActivityEntry(
        timestamp=timestamp,
        session_key=state.key,
        event_type=result.event_type,
        summary=result.summary,
    )
    return replace(state, entries=state.entries + (entry,))


def fold_session(
    records,
    session_id: str,
    now: int,
    window_ms: int = DEFAULT_WINDOW_MS,
) -> tuple[SessionAggregate, list[ActivityEntry]]:
    """Fold an ordered sequence of records for one session.

    Args:
        records: Parsed records in file order
        session_id: File stem; its first 12 characters are the fallback key
        now: Export time in epoch milliseconds
        window_ms: Width of the trailing activity window

    Returns:
        Tuple of (session aggregate over the whole file, in-window activity entries)
    """
    initial = FoldState(fallback_key=session_id[:FALLBACK_KEY_LENGTH])
    final = reduce(
        lambda state, record: fold_record(state, record, now, window_ms),
        records,
        initial,
    )
    return final.to_aggregate(), list(final.entries)


def fold_file(
    file_path: Path,
    now: int,
    window_ms: int = DEFAULT_WINDOW_MS,
) -> tuple[SessionAggregate, list[ActivityEntry]] | None:
    """Read and fold one session log file.

    Returns None if the file cannot be read.
    """
    try:
        return fold_session(read_records(file_path), file_path.stem, now, window_ms)
    except OSError as e:
        logger.warning(f"Could not read {file_path}: {e}")
        return None


def collect_activity(per_session_entries) -> list[ActivityEntry]:
    """Merge activity entries from all sessions, newest first.

    The sort is stable, so entries with equal timestamps keep file order.
    """
    merged = [entry for entries in per_session_entries for entry in entries]
    merged.sort(key=lambda entry: entry.timestamp, reverse=True)
    return merged


def load_sessions(
    sessions_dir: Path,
    now: int,
    window_ms: int = DEFAULT_WINDOW_MS,
) -> tuple[list[SessionAggregate], list[ActivityEntry]]:
    """Fold every session file in ``sessions_dir``.

    Returns:
        Tuple of (aggregates for every readable file, merged activity feed)
    """
    aggregates = []
    per_session = []

    for file_path in find_session_files(sessions_dir):
        folded = fold_file(file_path, now, window_ms)
        if folded is None:
            continue
        aggregate, entries = folded
        aggregates.append(aggregate)
        per_session.append(entries)

    activity = collect_activity(per_session)
    logger.debug(f"Folded {len(aggregates)} session files, {len(activity)} activity entries")
    return aggregates, activity
