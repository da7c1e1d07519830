"""Pytest configuration and shared fixtures."""

import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

HOUR_MS = 60 * 60 * 1000

# Fixed export time used by unit tests: 2025-06-01T12:00:00Z
NOW = 1748779200000

GITHUB_TOKEN = "ghp_" + "A" * 36


def iso(ms: int) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC string like the gateway logs."""
    moment = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=ms)
    return moment.isoformat().replace("+00:00", "Z")


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sessions_dir():
    """Empty temporary session log directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def write_session(sessions_dir):
    """Factory writing a JSONL session file; strings are written verbatim."""

    def _write(name: str, records: list) -> Path:
        path = sessions_dir / f"{name}.jsonl"
        with open(path, "w") as f:
            for record in records:
                line = record if isinstance(record, str) else json.dumps(record)
                f.write(line + "\n")
        return path

    return _write


@pytest.fixture
def populated_sessions_dir(sessions_dir, write_session):
    """Session directory relative to the real current time.

    Contains:
    - recent-session: resolved key, model change, tokens, a user message
      with a GitHub token and a tool call, 1-2 hours ago
    - stale-session-0001: a system event 48 hours ago
    """
    current = int(datetime.now(tz=timezone.utc).timestamp() * 1000)

    write_session(
        "recent-session-abcdef",
        [
            {"type": "session", "sessionKey": "agent:main:main", "timestamp": iso(current - 2 * HOUR_MS)},
            {"type": "model_change", "modelId": "anthropic/claude-opus-4-5"},
            {
                "type": "message",
                "timestamp": iso(current - HOUR_MS),
                "message": {"role": "user", "content": f"my token is {GITHUB_TOKEN}"},
                "usage": {"totalTokens": 120},
            },
            {
                "type": "message",
                "timestamp": iso(current - HOUR_MS // 2),
                "message": {
                    "role": "assistant",
                    "content": [{"type": "toolCall", "name": "exec"}],
                },
                "usage": {"totalTokens": 80},
            },
        ],
    )
    write_session(
        "stale-session-0001",
        [
            {"type": "system", "timestamp": iso(current - 48 * HOUR_MS), "text": "gateway restarted"},
        ],
    )
    return sessions_dir
