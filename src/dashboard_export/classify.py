"""Classification of raw session log records into activity feed items.

Records come in several shapes: a ``message``-typed wrapper around the real
payload or a bare record, and ``content`` that is either a plain string or a
list of typed blocks. ``normalize`` folds all of these into one ``Payload``
so ``classify`` only has to look at roles and block types.
"""

import json
import logging
from dataclasses import dataclass

from dashboard_export.models import DEFAULT_WINDOW_MS, EventType, parse_timestamp, within_window
from dashboard_export.redact import redact

logger = logging.getLogger("dashboard-export")

SUMMARY_MAX_LENGTH = 80

# Block types that denote a tool invocation inside assistant content
TOOL_CALL_BLOCK_TYPES = ("toolCall", "tool_use")


@dataclass(frozen=True)
class Payload:
    """Canonical view of one record's message payload."""

    fields: dict  # the unwrapped payload object
    outer_type: str | None
    text: str | None = None  # set when content is a plain string
    blocks: tuple[dict, ...] = ()  # set when content is a list of blocks

    @property
    def role(self):
        return self.fields.get("role")

    @property
    def kind(self):
        return self.fields.get("kind")

    def first_text(self) -> str | None:
        """Plain-string content, or the text of the first ``text`` block."""
        if self.text is not None:
            return self.text
        for block in self.blocks:
            if block.get("type") == "text":
                text = block.get("text")
                return text if isinstance(text, str) else None
        return None

    def tool_calls(self) -> list[dict]:
        return [b for b in self.blocks if b.get("type") in TOOL_CALL_BLOCK_TYPES]


@dataclass(frozen=True)
class Classification:
    event_type: EventType
    summary: str


def normalize(record: dict) -> Payload:
    """Unwrap ``message`` records and split content into text or blocks."""
    outer_type = record.get("type")
    if not isinstance(outer_type, str):
        outer_type = None

    fields = record
    if outer_type == "message" and isinstance(record.get("message"), dict):
        fields = record["message"]

    content = fields.get("content")
    if isinstance(content, str):
        return Payload(fields=fields, outer_type=outer_type, text=content)
    if isinstance(content, list):
        blocks = tuple(b for b in content if isinstance(b, dict))
        return Payload(fields=fields, outer_type=outer_type, blocks=blocks)
    return Payload(fields=fields, outer_type=outer_type)


def summarize(value) -> str:
    """Redact then truncate a summary value.

    Redaction runs first so that truncation never cuts a secret into a
    fragment the patterns no longer recognize.
    """
    if isinstance(value, (dict, list)):
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    else:
        text = str(value)
    return redact(text)[:SUMMARY_MAX_LENGTH]


def _classify_payload(payload: Payload) -> Classification:
    role = payload.role

    if role == "user":
        return Classification(EventType.USER_MESSAGE, summarize(payload.first_text() or ""))

    if role == "assistant":
        tool_calls = payload.tool_calls()
        if tool_calls:
            names = [str(call.get("name") or "unknown") for call in tool_calls]
            return Classification(EventType.TOOL_CALL, summarize(", ".join(names)))
        text = payload.first_text()
        return Classification(
            EventType.ASSISTANT_MESSAGE,
            summarize(text if text is not None else "assistant response"),
        )

    if role == "toolResult":
        tool_name = payload.fields.get("toolName") or "unknown"
        return Classification(EventType.TOOL_CALL, summarize(f"{tool_name} result"))

    if payload.kind == "system" or payload.outer_type == "system":
        value = (
            payload.fields.get("text")
            or payload.fields.get("content")
            or payload.outer_type
            or "system event"
        )
        return Classification(EventType.SYSTEM, summarize(value))

    return Classification(EventType.OTHER, "unknown event")


def classify(record, now: int, window_ms: int = DEFAULT_WINDOW_MS) -> Classification | None:
    """Classify one raw record, or return None if it is outside the window.

    Args:
        record: Parsed JSON object from one log line
        now: Export time in epoch milliseconds
        window_ms: Width of the trailing window

    Returns:
        Classification with event type and redacted summary, or None when the
        record has no usable timestamp or is not newer than ``now - window_ms``
    """
    if not isinstance(record, dict):
        return None

    timestamp = parse_timestamp(record.get("timestamp"))
    if not within_window(timestamp, now, window_ms):
        return None

    return _classify_payload(normalize(record))
