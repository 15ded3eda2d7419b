"""
Notification Manager: fans meeting events out to Slack and Teams webhooks.

For one event the manager:
1. Loads the organization's active webhooks
2. Resolves each webhook's preference for the event type
3. Applies content filters (duration, keywords, mentioned users)
4. Formats and sends the platform message concurrently
5. Records every attempt in the notification log

Dispatch never raises. Callers get a NotificationReport back and are free
to ignore it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import Settings
from ..integrations import SendResult, SlackBlocks, SlackWebhookClient, TeamsCards, TeamsWebhookClient
from ..models import NotificationEventType, NotificationStatus, NotificationWebhook, WebhookType
from .notification_store import NotificationStore
from .preferences import Disabled, Enabled, PreferenceState, passes_filters, resolve_preferences

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class NotificationPayload:
    """A meeting lifecycle event addressed to one organization."""

    event_type: NotificationEventType
    organization_id: UUID
    data: dict[str, Any] = field(default_factory=dict)
    meeting_id: UUID | None = None


class DispatchStatus:
    """Outcome labels of a single webhook dispatch."""

    SENT = "sent"
    FAILED = "failed"
    DISABLED = "disabled"
    FILTERED = "filtered"
    SKIPPED = "skipped"


@dataclass
class DispatchOutcome:
    """What happened to one webhook for one event."""

    webhook_id: UUID
    webhook_type: WebhookType
    status: str
    log_id: UUID | None = None
    error: str | None = None


@dataclass
class NotificationReport:
    """Result of ``send_notification``."""

    event_type: NotificationEventType
    organization_id: UUID
    outcomes: list[DispatchOutcome] = field(default_factory=list)
    error: str | None = None

    @property
    def sent(self) -> list[DispatchOutcome]:
        return [o for o in self.outcomes if o.status == DispatchStatus.SENT]

    @property
    def failed(self) -> list[DispatchOutcome]:
        return [o for o in self.outcomes if o.status == DispatchStatus.FAILED]

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed


# =============================================================================
# MANAGER
# =============================================================================


class NotificationManager:
    """Dispatches events to every eligible webhook of an organization."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        http_client: httpx.AsyncClient,
        settings: Settings,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.slack = SlackWebhookClient(http_client, settings.notification_timeout_seconds)
        self.teams = TeamsWebhookClient(http_client, settings.notification_timeout_seconds)

    async def send_notification(self, payload: NotificationPayload) -> NotificationReport:
        """
        Send an event to all eligible webhooks of the payload's organization.

        Args:
            payload: Event type, organization, optional meeting and event data

        Returns:
            NotificationReport with one outcome per active webhook. Unexpected
            errors (database unavailable, ...) end up in ``report.error``.
        """
        report = NotificationReport(
            event_type=payload.event_type,
            organization_id=payload.organization_id,
        )

        try:
            async with self.session_factory() as session:
                store = NotificationStore(session)
                webhooks = await store.get_active_webhooks(payload.organization_id)
                if not webhooks:
                    logger.info(f"No active webhooks for organization {payload.organization_id}")
                    return report

                preferences = await store.get_enabled_preferences(
                    payload.organization_id, payload.event_type
                )

            states = resolve_preferences(webhooks, preferences)

            eligible: list[NotificationWebhook] = []
            for webhook in webhooks:
                skipped = self._check_preference(payload, states[webhook.id])
                if skipped:
                    report.outcomes.append(
                        DispatchOutcome(webhook_id=webhook.id, webhook_type=webhook.type, status=skipped)
                    )
                else:
                    eligible.append(webhook)

            outcomes = await asyncio.gather(
                *(self._send_to_webhook(webhook, payload) for webhook in eligible)
            )
            report.outcomes.extend(outcomes)

        except Exception as e:
            logger.exception(f"Error sending {payload.event_type.value} notifications")
            report.error = str(e) or e.__class__.__name__

        return report

    @staticmethod
    def _check_preference(payload: NotificationPayload, state: PreferenceState) -> str | None:
        """Return the outcome status when the webhook must not be called."""
        if isinstance(state, Disabled):
            return DispatchStatus.DISABLED
        if isinstance(state, Enabled) and not passes_filters(payload.event_type, payload.data, state.filters):
            return DispatchStatus.FILTERED
        return None

    async def _send_to_webhook(
        self,
        webhook: NotificationWebhook,
        payload: NotificationPayload,
    ) -> DispatchOutcome:
        """Format, log, send and record one webhook dispatch."""
        outcome = DispatchOutcome(webhook_id=webhook.id, webhook_type=webhook.type, status=DispatchStatus.FAILED)

        try:
            if webhook.type == WebhookType.SLACK:
                message = self.format_slack_message(payload.event_type, payload.data)
                if message is not None and webhook.channel:
                    message["channel"] = webhook.channel
            elif webhook.type == WebhookType.TEAMS:
                message = self.format_teams_message(payload.event_type, payload.data)
            else:
                message = None

            if message is None and webhook.type in (WebhookType.SLACK, WebhookType.TEAMS):
                logger.warning(
                    f"No {webhook.type.value} formatter for event {payload.event_type.value}"
                )
                outcome.status = DispatchStatus.SKIPPED
                return outcome

            outcome.log_id = await self._log_attempt(webhook, payload)

            if webhook.type == WebhookType.SLACK:
                result = await self.slack.send(webhook.webhook_url, message)
            elif webhook.type == WebhookType.TEAMS:
                result = await self.teams.send(webhook.webhook_url, message)
            else:
                result = SendResult(success=False, error=f"Unsupported webhook type: {webhook.type.value}")

        except Exception as e:
            logger.exception(f"Error sending notification to webhook {webhook.id}")
            result = SendResult(success=False, error=str(e) or e.__class__.__name__)

        if outcome.log_id is None:
            outcome.error = result.error
            return outcome

        try:
            await self._record_result(outcome.log_id, result)
        except Exception:
            logger.exception(f"Failed to update notification log {outcome.log_id}")

        if result.success:
            outcome.status = DispatchStatus.SENT
            logger.info(f"Sent {payload.event_type.value} to {webhook.type.value} webhook {webhook.id}")
        else:
            outcome.error = result.error
            logger.error(f"Failed to send to {webhook.type.value} webhook {webhook.id}: {result.error}")

        return outcome

    async def _log_attempt(self, webhook: NotificationWebhook, payload: NotificationPayload) -> UUID:
        async with self.session_factory() as session:
            log_id = await NotificationStore(session).log_notification(
                organization_id=payload.organization_id,
                webhook_id=webhook.id,
                meeting_id=payload.meeting_id,
                event_type=payload.event_type,
                payload=payload.data,
            )
            await session.commit()
        return log_id

    async def _record_result(self, log_id: UUID, result: SendResult) -> None:
        async with self.session_factory() as session:
            store = NotificationStore(session)
            if result.success:
                await store.update_notification_status(
                    log_id, NotificationStatus.SENT, response={"status": "ok"}
                )
            else:
                await store.update_notification_status(
                    log_id, NotificationStatus.FAILED, error=result.error
                )
            await session.commit()

    # =========================================================================
    # FORMATTING
    # =========================================================================

    def _with_app_url(self, data: dict[str, Any]) -> dict[str, Any]:
        return {**data, "appUrl": self.settings.app_url}

    def format_slack_message(
        self,
        event_type: NotificationEventType,
        data: dict[str, Any],
    ) -> dict | None:
        """Build the Slack message for an event, or None if unsupported."""
        data = self._with_app_url(data)

        if event_type == NotificationEventType.MEETING_COMPLETED:
            return SlackBlocks.meeting_completed(data)
        if event_type == NotificationEventType.ACTION_ITEMS_CREATED:
            return SlackBlocks.action_items(data)
        if event_type == NotificationEventType.USER_MENTIONED:
            return SlackBlocks.mention(data)
        if event_type == NotificationEventType.MEETING_FAILED:
            return SlackBlocks.meeting_failed(data)
        return None

    def format_teams_message(
        self,
        event_type: NotificationEventType,
        data: dict[str, Any],
    ) -> dict | None:
        """Build the Teams card for an event, or None if unsupported."""
        data = self._with_app_url(data)

        if event_type == NotificationEventType.MEETING_COMPLETED:
            return TeamsCards.meeting_completed(data)
        if event_type == NotificationEventType.ACTION_ITEMS_CREATED:
            return TeamsCards.action_items(data)
        if event_type == NotificationEventType.USER_MENTIONED:
            return TeamsCards.mention(data)
        if event_type == NotificationEventType.MEETING_FAILED:
            return TeamsCards.meeting_failed(data)
        if event_type == NotificationEventType.HIGHLIGHT_CREATED:
            return TeamsCards.highlight_created(data)
        return None

    async def test_webhook(self, webhook_type: WebhookType | str, webhook_url: str) -> SendResult:
        """Send the platform's test message to a webhook URL."""
        if webhook_type == WebhookType.SLACK:
            return await self.slack.test_webhook(webhook_url)
        if webhook_type == WebhookType.TEAMS:
            return await self.teams.test_webhook(webhook_url)
        return SendResult(success=False, error="Invalid webhook type")


# =============================================================================
# BACKGROUND HELPER
# =============================================================================


async def fire_notification(
    session_factory: async_sessionmaker[AsyncSession],
    http_client: httpx.AsyncClient,
    settings: Settings,
    payload: NotificationPayload,
) -> NotificationReport:
    """Dispatch an event from a background task. Never raises."""
    manager = NotificationManager(session_factory, http_client, settings)
    report = await manager.send_notification(payload)
    logger.info(
        f"{payload.event_type.value} for org {payload.organization_id}: "
        f"{len(report.sent)} sent, {len(report.failed)} failed"
    )
    return report
