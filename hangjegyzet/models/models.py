"""SQLAlchemy ORM Models for HangJegyzet notifications.

Tables:
- organizations / organization_members: tenant and role lookup
- notification_webhooks: Slack/Teams incoming webhook configuration
- notification_preferences: per-webhook, per-event enable flag and filters
- notification_log: one audit row per dispatch attempt
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDMixin


# =============================================================================
# ENUMS
# =============================================================================


class OrgRole(str, PyEnum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class WebhookType(str, PyEnum):
    SLACK = "slack"
    TEAMS = "teams"
    EMAIL = "email"  # Accepted in storage, no delivery channel


class NotificationEventType(str, PyEnum):
    MEETING_COMPLETED = "meeting_completed"
    MEETING_FAILED = "meeting_failed"
    ACTION_ITEMS_CREATED = "action_items_created"
    USER_MENTIONED = "user_mentioned"
    HIGHLIGHT_CREATED = "highlight_created"  # Teams only
    TRANSCRIPTION_READY = "transcription_ready"
    SUMMARY_READY = "summary_ready"


class NotificationStatus(str, PyEnum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    RETRYING = "retrying"


def _enum_column(enum_cls: type[PyEnum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda x: [e.value for e in x])


# =============================================================================
# ORGANIZATION
# =============================================================================


class Organization(Base, UUIDMixin):
    """Multi-tenant organization."""

    __tablename__ = "organizations"

    slug: Mapped[str] = mapped_column(String(63), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )

    webhooks: Mapped[list["NotificationWebhook"]] = relationship(
        back_populates="organization"
    )


class OrganizationMember(Base, UUIDMixin):
    """Organization membership; the role gates webhook administration."""

    __tablename__ = "organization_members"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=OrgRole.MEMBER.value)
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id"),
    )


# =============================================================================
# NOTIFICATION CONFIGURATION
# =============================================================================


class NotificationWebhook(Base, UUIDMixin, TimestampMixin):
    """An outbound incoming-webhook endpoint owned by an organization.

    Webhooks are deactivated rather than deleted so that the audit trail
    keeps pointing at them.
    """

    __tablename__ = "notification_webhooks"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[WebhookType] = mapped_column(
        _enum_column(WebhookType, "webhook_type"), nullable=False
    )
    webhook_url: Mapped[str] = mapped_column(Text, nullable=False)
    channel: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Optional Slack channel override"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    settings: Mapped[dict[str, Any]] = mapped_column(default=dict)

    organization: Mapped["Organization"] = relationship(back_populates="webhooks")
    preferences: Mapped[list["NotificationPreference"]] = relationship(
        back_populates="webhook", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_webhooks_org", "organization_id"),
        Index("idx_webhooks_active", "organization_id", "is_active"),
    )


class NotificationPreference(Base, UUIDMixin, TimestampMixin):
    """Per-webhook, per-event enable flag and content filters.

    ``filters`` may hold ``min_duration`` (seconds), ``keywords`` (list of
    strings) and ``users`` (list of user ids, mentions only).
    """

    __tablename__ = "notification_preferences"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    webhook_id: Mapped[UUID] = mapped_column(
        ForeignKey("notification_webhooks.id", ondelete="CASCADE"), nullable=False
    )
    event_type: Mapped[NotificationEventType] = mapped_column(
        _enum_column(NotificationEventType, "notification_event_type"), nullable=False
    )
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    filters: Mapped[dict[str, Any]] = mapped_column(default=dict)

    webhook: Mapped["NotificationWebhook"] = relationship(back_populates="preferences")

    __table_args__ = (
        UniqueConstraint("organization_id", "webhook_id", "event_type"),
        Index("idx_prefs_lookup", "organization_id", "event_type", "enabled"),
    )


# =============================================================================
# AUDIT LOG
# =============================================================================


class NotificationLog(Base, UUIDMixin):
    """One row per dispatch attempt.

    Inserted as ``pending`` before the network call and updated afterwards.
    A crash between the two writes leaves the row ``pending``.
    """

    __tablename__ = "notification_log"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    webhook_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("notification_webhooks.id", ondelete="SET NULL"), nullable=True
    )
    meeting_id: Mapped[UUID | None] = mapped_column(nullable=True)
    event_type: Mapped[NotificationEventType] = mapped_column(
        _enum_column(NotificationEventType, "notification_event_type"), nullable=False
    )
    status: Mapped[NotificationStatus] = mapped_column(
        _enum_column(NotificationStatus, "notification_status"),
        default=NotificationStatus.PENDING,
        nullable=False,
    )
    payload: Mapped[dict[str, Any]] = mapped_column(default=dict)
    response: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    error: Mapped[str | None] = mapped_column(Text)
    retries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sent_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_log_org", "organization_id", "created_at"),
        Index("idx_log_meeting", "meeting_id"),
        Index("idx_log_status", "status"),
    )
