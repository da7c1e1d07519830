"""Data model for the dashboard snapshot."""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

logger = logging.getLogger("dashboard-export")

HOUR_MS = 60 * 60 * 1000
DEFAULT_WINDOW_HOURS = 24
DEFAULT_WINDOW_MS = DEFAULT_WINDOW_HOURS * HOUR_MS

# Length of the filename-derived session key used until a sessionKey is seen
FALLBACK_KEY_LENGTH = 12

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


class EventType(str, Enum):
    """Display type of one activity feed entry."""

    USER_MESSAGE = "user_message"
    ASSISTANT_MESSAGE = "assistant_message"
    TOOL_CALL = "tool_call"
    SYSTEM = "system"
    OTHER = "other"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def parse_timestamp(value) -> int | None:
    """Convert a log timestamp to epoch milliseconds.

    Accepts ISO-8601 strings (with ``Z``, an explicit offset, or naive, which
    is read as UTC) and numbers already expressed in epoch milliseconds.
    Returns None for anything else.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Could not parse timestamp: {value}")
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // _ONE_MS


def within_window(timestamp: int | None, now: int, window_ms: int = DEFAULT_WINDOW_MS) -> bool:
    """True when ``timestamp`` is strictly newer than ``now - window_ms``."""
    return timestamp is not None and timestamp > now - window_ms


@dataclass(frozen=True)
class ActivityEntry:
    """One item of the recent-activity feed."""

    timestamp: int
    session_key: str
    event_type: EventType
    summary: str

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "sessionKey": self.session_key,
            "eventType": self.event_type.value,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class SessionAggregate:
    """Reduced state of one session log file."""

    key: str
    model: str = "unknown"
    total_tokens: int | float = 0
    last_activity: int | None = None  # epoch ms, None if no timestamp was seen

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "model": self.model,
            "totalTokens": self.total_tokens,
            "lastActivity": self.last_activity,
        }


@dataclass
class StatusFacts:
    """Gateway facts scraped from the external status commands."""

    gateway_running: bool = False
    primary_model: str = "unknown"
    fallbacks: str = "none"
    auth_providers: list[str] = field(default_factory=list)

    @classmethod
    def unavailable(cls) -> "StatusFacts":
        """Facts to use when the status commands cannot be run at all."""
        return cls()

    def to_dict(self) -> dict:
        return {
            "status": "running" if self.gateway_running else "stopped",
            "model": {
                "primary": self.primary_model,
                "fallbacks": self.fallbacks,
            },
            "auth": {
                "providers": list(self.auth_providers),
            },
        }


@dataclass
class Snapshot:
    """The complete exported dashboard document."""

    timestamp: int
    status: StatusFacts
    sessions: list[SessionAggregate] = field(default_factory=list)
    activity: list[ActivityEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "gateway": self.status.to_dict(),
            "sessions": [s.to_dict() for s in self.sessions],
            "activityLog": [a.to_dict() for a in self.activity],
        }
