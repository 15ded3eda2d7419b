"""Shared helpers for Slack and Teams message builders and webhook clients."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

# Presentation limits; the full data is still carried in the audit payload
SUMMARY_MAX_CHARS = 500
MAX_LIST_ITEMS = 5

HU_MONTHS = (
    "január",
    "február",
    "március",
    "április",
    "május",
    "június",
    "július",
    "augusztus",
    "szeptember",
    "október",
    "november",
    "december",
)

UNTITLED_MEETING = "Névtelen megbeszélés"


@dataclass
class SendResult:
    """Outcome of a single webhook POST."""

    success: bool
    error: str | None = None


def truncate(text: str, limit: int = SUMMARY_MAX_CHARS) -> str:
    """Cut ``text`` to ``limit`` characters, appending ``...`` when cut."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def split_preview(items: Sequence[Any], limit: int = MAX_LIST_ITEMS) -> tuple[list[Any], int]:
    """Return the items to display and how many were left out."""
    shown = list(items[:limit])
    return shown, max(len(items) - limit, 0)


def format_hu_datetime(value: datetime | None = None) -> str:
    """Format a timestamp the Hungarian way, e.g. ``2025. január 9. 14:05``."""
    value = value or datetime.now()
    return f"{value.year}. {HU_MONTHS[value.month - 1]} {value.day}. {value:%H:%M}"


def duration_minutes(duration_seconds: Any) -> int:
    """Whole minutes of a duration given in seconds; bad input counts as 0."""
    try:
        return int(float(duration_seconds or 0) // 60)
    except (TypeError, ValueError):
        return 0


def as_list(value: Any) -> list[Any]:
    """Treat missing or non-list event data fields as empty lists."""
    return list(value) if isinstance(value, (list, tuple)) else []


def meeting_url(app_url: str, meeting_id: Any, suffix: str = "") -> str:
    return f"{app_url.rstrip('/')}/meetings/{meeting_id or ''}{suffix}"
