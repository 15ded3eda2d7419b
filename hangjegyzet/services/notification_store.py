"""Persistence for webhooks, preferences and the notification audit log."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    NotificationEventType,
    NotificationLog,
    NotificationPreference,
    NotificationStatus,
    NotificationWebhook,
    WebhookType,
)

logger = logging.getLogger(__name__)

# Types that can be created through the API; "email" rows may exist but
# have no delivery channel.
CONFIGURABLE_WEBHOOK_TYPES = (WebhookType.SLACK, WebhookType.TEAMS)

UPDATABLE_WEBHOOK_FIELDS = ("name", "webhook_url", "channel", "is_active", "settings")
NULLABLE_WEBHOOK_FIELDS = ("channel",)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class NotificationError(Exception):
    """Base exception for notification operations."""
    pass


class WebhookNotFoundError(NotificationError):
    """Webhook does not exist in the organization."""
    pass


class InvalidWebhookError(NotificationError):
    """Webhook configuration is not acceptable."""
    pass


def to_json_safe(data: dict[str, Any]) -> dict[str, Any]:
    """Round-trip through JSON so dates, UUIDs and friends become strings."""
    return json.loads(json.dumps(data, default=str))


class NotificationStore:
    """Data access for the notification subsystem, bound to one session.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # DISPATCH READS
    # =========================================================================

    async def get_active_webhooks(self, organization_id: UUID) -> Sequence[NotificationWebhook]:
        result = await self.session.execute(
            select(NotificationWebhook).where(
                NotificationWebhook.organization_id == organization_id,
                NotificationWebhook.is_active.is_(True),
            )
        )
        return result.scalars().all()

    async def get_enabled_preferences(
        self,
        organization_id: UUID,
        event_type: NotificationEventType,
    ) -> Sequence[NotificationPreference]:
        result = await self.session.execute(
            select(NotificationPreference).where(
                NotificationPreference.organization_id == organization_id,
                NotificationPreference.event_type == event_type,
                NotificationPreference.enabled.is_(True),
            )
        )
        return result.scalars().all()

    # =========================================================================
    # AUDIT LOG
    # =========================================================================

    async def log_notification(
        self,
        organization_id: UUID,
        webhook_id: UUID | None,
        meeting_id: UUID | None,
        event_type: NotificationEventType,
        payload: dict[str, Any],
    ) -> UUID:
        """Insert a ``pending`` audit row and return its id."""
        entry = NotificationLog(
            organization_id=organization_id,
            webhook_id=webhook_id,
            meeting_id=meeting_id,
            event_type=event_type,
            payload=to_json_safe(payload),
            status=NotificationStatus.PENDING,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry.id

    async def update_notification_status(
        self,
        log_id: UUID,
        status: NotificationStatus,
        response: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> NotificationLog | None:
        """Record the outcome of a dispatch attempt."""
        entry = await self.session.get(NotificationLog, log_id)
        if entry is None:
            logger.warning(f"Notification log entry {log_id} not found")
            return None

        entry.status = status
        entry.response = response
        entry.error = error
        if status == NotificationStatus.SENT:
            entry.sent_at = datetime.now(timezone.utc)
        elif status == NotificationStatus.RETRYING:
            entry.retries = (entry.retries or 0) + 1

        await self.session.flush()
        return entry

    async def get_history(
        self,
        organization_id: UUID,
        status: NotificationStatus | None = None,
        event_type: NotificationEventType | None = None,
        meeting_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[NotificationLog], int]:
        """Query the audit log with filters, newest first."""
        query = select(NotificationLog).where(NotificationLog.organization_id == organization_id)

        if status:
            query = query.where(NotificationLog.status == status)
        if event_type:
            query = query.where(NotificationLog.event_type == event_type)
        if meeting_id:
            query = query.where(NotificationLog.meeting_id == meeting_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        query = query.order_by(NotificationLog.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(query)

        return result.scalars().all(), total

    # =========================================================================
    # WEBHOOK ADMINISTRATION
    # =========================================================================

    async def list_webhooks(self, organization_id: UUID) -> Sequence[NotificationWebhook]:
        result = await self.session.execute(
            select(NotificationWebhook)
            .where(NotificationWebhook.organization_id == organization_id)
            .order_by(NotificationWebhook.created_at.desc())
        )
        return result.scalars().all()

    async def get_webhook(self, organization_id: UUID, webhook_id: UUID) -> NotificationWebhook:
        result = await self.session.execute(
            select(NotificationWebhook).where(
                NotificationWebhook.id == webhook_id,
                NotificationWebhook.organization_id == organization_id,
            )
        )
        webhook = result.scalar_one_or_none()
        if webhook is None:
            raise WebhookNotFoundError(f"Webhook {webhook_id} not found")
        return webhook

    async def create_webhook(
        self,
        organization_id: UUID,
        name: str,
        type: WebhookType,
        webhook_url: str,
        channel: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> NotificationWebhook:
        """
        Create an active webhook and seed default preferences.

        Every event type gets an enabled, filter-less preference row so the
        settings UI has something to toggle.
        """
        if type not in CONFIGURABLE_WEBHOOK_TYPES:
            raise InvalidWebhookError(f"Invalid webhook type: {type.value}")
        if not name.strip() or not webhook_url.strip():
            raise InvalidWebhookError("Missing required fields")

        webhook = NotificationWebhook(
            organization_id=organization_id,
            name=name.strip(),
            type=type,
            webhook_url=webhook_url.strip(),
            channel=channel or None,
            is_active=True,
            settings=settings or {},
        )
        self.session.add(webhook)
        await self.session.flush()

        for event_type in NotificationEventType:
            self.session.add(
                NotificationPreference(
                    organization_id=organization_id,
                    webhook_id=webhook.id,
                    event_type=event_type,
                    enabled=True,
                    filters={},
                )
            )
        await self.session.flush()
        await self.session.refresh(webhook)

        logger.info(f"Created {type.value} webhook {webhook.id} for org {organization_id}")
        return webhook

    async def update_webhook(
        self,
        organization_id: UUID,
        webhook_id: UUID,
        changes: dict[str, Any],
    ) -> NotificationWebhook:
        webhook = await self.get_webhook(organization_id, webhook_id)

        updates = {k: v for k, v in changes.items() if k in UPDATABLE_WEBHOOK_FIELDS}
        for field_name, value in updates.items():
            if value is None and field_name not in NULLABLE_WEBHOOK_FIELDS:
                raise InvalidWebhookError(f"{field_name} cannot be null")

        for field_name, value in updates.items():
            setattr(webhook, field_name, value)

        await self.session.flush()
        await self.session.refresh(webhook)
        return webhook

    async def deactivate_webhook(self, organization_id: UUID, webhook_id: UUID) -> NotificationWebhook:
        """Soft delete: keep the row so audit entries keep their reference."""
        webhook = await self.get_webhook(organization_id, webhook_id)
        webhook.is_active = False
        await self.session.flush()
        await self.session.refresh(webhook)
        logger.info(f"Deactivated webhook {webhook_id} for org {organization_id}")
        return webhook

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    async def list_preferences(
        self,
        organization_id: UUID,
        webhook_id: UUID,
    ) -> Sequence[NotificationPreference]:
        await self.get_webhook(organization_id, webhook_id)
        result = await self.session.execute(
            select(NotificationPreference)
            .where(
                NotificationPreference.organization_id == organization_id,
                NotificationPreference.webhook_id == webhook_id,
            )
            .order_by(NotificationPreference.event_type)
        )
        return result.scalars().all()

    async def upsert_preference(
        self,
        organization_id: UUID,
        webhook_id: UUID,
        event_type: NotificationEventType,
        enabled: bool,
        filters: dict[str, Any] | None = None,
    ) -> NotificationPreference:
        await self.get_webhook(organization_id, webhook_id)

        result = await self.session.execute(
            select(NotificationPreference).where(
                NotificationPreference.organization_id == organization_id,
                NotificationPreference.webhook_id == webhook_id,
                NotificationPreference.event_type == event_type,
            )
        )
        pref = result.scalar_one_or_none()

        if pref is None:
            pref = NotificationPreference(
                organization_id=organization_id,
                webhook_id=webhook_id,
                event_type=event_type,
            )
            self.session.add(pref)

        pref.enabled = enabled
        pref.filters = filters or {}
        await self.session.flush()
        await self.session.refresh(pref)
        return pref
