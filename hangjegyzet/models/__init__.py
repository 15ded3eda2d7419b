"""SQLAlchemy ORM Models for HangJegyzet."""

from .base import Base, TimestampMixin, UUIDMixin
from .models import (
    # Enums
    NotificationEventType,
    NotificationStatus,
    OrgRole,
    WebhookType,
    # Organization
    Organization,
    OrganizationMember,
    # Notifications
    NotificationLog,
    NotificationPreference,
    NotificationWebhook,
)

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    # Enums
    "NotificationEventType",
    "NotificationStatus",
    "OrgRole",
    "WebhookType",
    # Organization
    "Organization",
    "OrganizationMember",
    # Notifications
    "NotificationWebhook",
    "NotificationPreference",
    "NotificationLog",
]
