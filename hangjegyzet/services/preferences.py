"""Notification preference resolution and content filters.

A webhook's stance on an event type is one of three states:

- ``Unconfigured``: the organization has no enabled preference for the
  event type at all, so every active webhook receives it (default allow).
- ``Enabled``: the webhook has an enabled preference row, possibly with
  filters that the payload must pass.
- ``Disabled``: other webhooks opted in to the event type but this one did not.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence, Union
from uuid import UUID

from ..models import NotificationEventType, NotificationPreference, NotificationWebhook


@dataclass(frozen=True)
class Unconfigured:
    """No enabled preference exists for the event type in the organization."""


@dataclass(frozen=True)
class Enabled:
    """The webhook opted in, with optional filters."""

    filters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Disabled:
    """The webhook did not opt in while others did."""


PreferenceState = Union[Unconfigured, Enabled, Disabled]


def resolve_preferences(
    webhooks: Sequence[NotificationWebhook],
    enabled_preferences: Iterable[NotificationPreference],
) -> dict[UUID, PreferenceState]:
    """
    Map each webhook to its preference state for one event type.

    Args:
        webhooks: Active webhooks of the organization
        enabled_preferences: Enabled preference rows for the org and event type
    """
    by_webhook = {pref.webhook_id: pref for pref in enabled_preferences}

    if not by_webhook:
        return {webhook.id: Unconfigured() for webhook in webhooks}

    states: dict[UUID, PreferenceState] = {}
    for webhook in webhooks:
        pref = by_webhook.get(webhook.id)
        states[webhook.id] = Enabled(filters=dict(pref.filters or {})) if pref else Disabled()
    return states


def _as_strings(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return []


def _as_number(value: Any) -> float | None:
    """Numeric value of a filter or payload field; unparseable input counts as absent."""
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def passes_filters(
    event_type: NotificationEventType,
    data: dict[str, Any],
    filters: dict[str, Any] | None,
) -> bool:
    """
    Check a payload against a preference's filters.

    A filter only applies when both the rule and the payload field it
    inspects are present:
    - ``min_duration``: ``duration_seconds`` must be at least the threshold
    - ``keywords``: ``summary`` must contain one keyword (case-insensitive)
    - ``users``: for mentions, ``mentionedUser`` must be listed
    """
    if not filters:
        return True

    min_duration = _as_number(filters.get("min_duration"))
    duration = _as_number(data.get("duration_seconds"))
    if min_duration and duration:
        if duration < min_duration:
            return False

    keywords = _as_strings(filters.get("keywords"))
    summary = data.get("summary")
    if keywords and summary:
        text = str(summary).lower()
        if not any(keyword.lower() in text for keyword in keywords):
            return False

    users = _as_strings(filters.get("users"))
    if users and event_type == NotificationEventType.USER_MENTIONED:
        if str(data.get("mentionedUser")) not in users:
            return False

    return True
