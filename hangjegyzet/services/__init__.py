"""Business logic services."""

from .notification_manager import (
    DispatchOutcome,
    DispatchStatus,
    NotificationManager,
    NotificationPayload,
    NotificationReport,
    fire_notification,
)
from .notification_store import (
    InvalidWebhookError,
    NotificationError,
    NotificationStore,
    WebhookNotFoundError,
)
from .preferences import Disabled, Enabled, PreferenceState, Unconfigured, passes_filters, resolve_preferences

__all__ = [
    "DispatchOutcome",
    "DispatchStatus",
    "NotificationManager",
    "NotificationPayload",
    "NotificationReport",
    "fire_notification",
    "InvalidWebhookError",
    "NotificationError",
    "NotificationStore",
    "WebhookNotFoundError",
    "Disabled",
    "Enabled",
    "PreferenceState",
    "Unconfigured",
    "passes_filters",
    "resolve_preferences",
]
