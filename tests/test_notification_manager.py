"""
Tests for the Notification Manager.

These tests verify:
1. FAN-OUT: every eligible active webhook is called, others are not
2. PREFERENCES: default allow, disabled webhooks and content filters
3. AUDIT: one log row per attempt, updated to sent or failed
4. ISOLATION: failures never escape and never affect siblings
"""

from uuid import uuid4

import httpx
import pytest
from sqlalchemy import select

from hangjegyzet.models import (
    NotificationEventType,
    NotificationLog,
    NotificationStatus,
    WebhookType,
)
from hangjegyzet.services import (
    DispatchStatus,
    NotificationManager,
    NotificationPayload,
    fire_notification,
)

APP_URL = "https://app.hangjegyzet.test"
SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
TEAMS_URL = "https://contoso.webhook.office.com/webhookb2/abc/IncomingWebhook/def"
OTHER_SLACK_URL = "https://hooks.slack.com/services/T000/B111/YYYY"


@pytest.fixture
def manager(session_factory, http_client, settings) -> NotificationManager:
    return NotificationManager(session_factory, http_client, settings)


@pytest.fixture
def completed_payload(organization) -> NotificationPayload:
    meeting_id = uuid4()
    return NotificationPayload(
        event_type=NotificationEventType.MEETING_COMPLETED,
        organization_id=organization.id,
        meeting_id=meeting_id,
        data={
            "id": str(meeting_id),
            "title": "Heti státusz",
            "duration_seconds": 200,
            "summary": "Megbeszéltük a toborzási tervet.",
            "action_items": [],
            "speakers": ["Anna"],
        },
    )


async def _logs(session_factory) -> list[NotificationLog]:
    async with session_factory() as session:
        result = await session.execute(select(NotificationLog))
        return list(result.scalars().all())


# =============================================================================
# TEST: FAN-OUT
# =============================================================================


class TestFanOut:

    async def test_no_active_webhooks_means_no_calls(self, manager, completed_payload, transport, add_webhook, session_factory):
        await add_webhook(WebhookType.SLACK, SLACK_URL, is_active=False)

        report = await manager.send_notification(completed_payload)

        assert report.outcomes == []
        assert report.ok
        assert transport.requests == []
        assert await _logs(session_factory) == []

    async def test_webhook_without_preferences_receives_every_event(self, manager, completed_payload, transport, add_webhook):
        webhook = await add_webhook(WebhookType.SLACK, SLACK_URL)

        report = await manager.send_notification(completed_payload)

        assert [o.status for o in report.outcomes] == [DispatchStatus.SENT]
        assert report.sent[0].webhook_id == webhook.id
        assert len(transport.requests_to(SLACK_URL)) == 1

    async def test_slack_and_teams_both_receive(self, manager, completed_payload, transport, add_webhook):
        transport.responses[TEAMS_URL] = httpx.Response(200, text="1")
        await add_webhook(WebhookType.SLACK, SLACK_URL)
        await add_webhook(WebhookType.TEAMS, TEAMS_URL)

        report = await manager.send_notification(completed_payload)

        assert len(report.sent) == 2
        slack_message = transport.json_bodies(SLACK_URL)[0]
        teams_card = transport.json_bodies(TEAMS_URL)[0]
        assert slack_message["blocks"][0]["text"]["text"] == "Megbeszélés feldolgozva"
        assert teams_card["@type"] == "MessageCard"

    async def test_app_url_is_injected_into_links(self, manager, completed_payload, transport, add_webhook):
        await add_webhook(WebhookType.SLACK, SLACK_URL)

        await manager.send_notification(completed_payload)

        button = transport.json_bodies(SLACK_URL)[0]["blocks"][1]["accessory"]
        assert button["url"] == f"{APP_URL}/meetings/{completed_payload.data['id']}"

    async def test_slack_channel_override(self, manager, completed_payload, transport, add_webhook):
        await add_webhook(WebhookType.SLACK, SLACK_URL, channel="#meetings")

        await manager.send_notification(completed_payload)

        assert transport.json_bodies(SLACK_URL)[0]["channel"] == "#meetings"


# =============================================================================
# TEST: PREFERENCES & FILTERS
# =============================================================================


class TestPreferences:

    async def test_min_duration_filters_only_that_webhook(self, manager, completed_payload, transport, add_webhook, session_factory):
        filtered = await add_webhook(
            WebhookType.SLACK, SLACK_URL,
            preferences={NotificationEventType.MEETING_COMPLETED: {"min_duration": 300}},
        )
        sibling = await add_webhook(
            WebhookType.SLACK, OTHER_SLACK_URL,
            preferences={NotificationEventType.MEETING_COMPLETED: {}},
        )

        report = await manager.send_notification(completed_payload)

        statuses = {o.webhook_id: o.status for o in report.outcomes}
        assert statuses == {filtered.id: DispatchStatus.FILTERED, sibling.id: DispatchStatus.SENT}
        assert transport.requests_to(SLACK_URL) == []
        assert len(transport.requests_to(OTHER_SLACK_URL)) == 1
        assert len(await _logs(session_factory)) == 1

    async def test_webhook_without_preference_is_disabled_when_others_opted_in(self, manager, completed_payload, transport, add_webhook):
        disabled = await add_webhook(WebhookType.SLACK, SLACK_URL)
        await add_webhook(
            WebhookType.SLACK, OTHER_SLACK_URL,
            preferences={NotificationEventType.MEETING_COMPLETED: {}},
        )

        report = await manager.send_notification(completed_payload)

        outcome = next(o for o in report.outcomes if o.webhook_id == disabled.id)
        assert outcome.status == DispatchStatus.DISABLED
        assert transport.requests_to(SLACK_URL) == []

    async def test_preferences_of_other_event_types_do_not_count(self, manager, completed_payload, transport, add_webhook):
        await add_webhook(
            WebhookType.SLACK, SLACK_URL,
            preferences={NotificationEventType.MEETING_FAILED: {}},
        )

        report = await manager.send_notification(completed_payload)

        assert [o.status for o in report.outcomes] == [DispatchStatus.SENT]

    async def test_keyword_filter_with_unfiltered_teams_sibling(self, manager, completed_payload, transport, add_webhook, session_factory):
        transport.responses[TEAMS_URL] = httpx.Response(200, text="1")
        await add_webhook(
            WebhookType.SLACK, SLACK_URL,
            preferences={NotificationEventType.MEETING_COMPLETED: {"keywords": ["budget"]}},
        )
        teams = await add_webhook(
            WebhookType.TEAMS, TEAMS_URL,
            preferences={NotificationEventType.MEETING_COMPLETED: {}},
        )

        await manager.send_notification(completed_payload)

        assert len(transport.requests) == 1
        assert str(transport.requests[0].url) == TEAMS_URL
        logs = await _logs(session_factory)
        assert len(logs) == 1
        assert logs[0].webhook_id == teams.id
        assert logs[0].status == NotificationStatus.SENT


# =============================================================================
# TEST: AUDIT LOG
# =============================================================================


class TestAuditLog:

    async def test_successful_send_is_logged_as_sent(self, manager, completed_payload, add_webhook, session_factory, organization):
        webhook = await add_webhook(WebhookType.SLACK, SLACK_URL)

        report = await manager.send_notification(completed_payload)

        [log] = await _logs(session_factory)
        assert log.id == report.outcomes[0].log_id
        assert log.organization_id == organization.id
        assert log.webhook_id == webhook.id
        assert log.meeting_id == completed_payload.meeting_id
        assert log.event_type == NotificationEventType.MEETING_COMPLETED
        assert log.status == NotificationStatus.SENT
        assert log.response == {"status": "ok"}
        assert log.error is None
        assert log.sent_at is not None
        assert log.payload["title"] == "Heti státusz"
        assert "appUrl" not in log.payload

    async def test_failed_send_is_logged_with_error(self, manager, completed_payload, transport, add_webhook, session_factory):
        transport.responses[SLACK_URL] = httpx.Response(403, text="invalid_token")
        await add_webhook(WebhookType.SLACK, SLACK_URL)

        report = await manager.send_notification(completed_payload)

        assert not report.ok
        assert report.failed[0].error == "invalid_token"
        [log] = await _logs(session_factory)
        assert log.status == NotificationStatus.FAILED
        assert log.error == "invalid_token"
        assert log.sent_at is None

    async def test_missing_formatter_is_skipped_without_log(self, manager, organization, transport, add_webhook, session_factory):
        transport.responses[TEAMS_URL] = httpx.Response(200, text="1")
        slack = await add_webhook(WebhookType.SLACK, SLACK_URL)
        await add_webhook(WebhookType.TEAMS, TEAMS_URL)
        payload = NotificationPayload(
            event_type=NotificationEventType.HIGHLIGHT_CREATED,
            organization_id=organization.id,
            data={"meetingTitle": "Stratégia", "highlights": [{"text": "Fontos", "timestamp": 12}]},
        )

        report = await manager.send_notification(payload)

        skipped = next(o for o in report.outcomes if o.webhook_id == slack.id)
        assert skipped.status == DispatchStatus.SKIPPED
        assert skipped.log_id is None
        assert transport.requests_to(SLACK_URL) == []
        assert len(transport.requests_to(TEAMS_URL)) == 1
        assert len(await _logs(session_factory)) == 1

    async def test_unsupported_webhook_type_is_logged_as_failed(self, manager, completed_payload, transport, add_webhook, session_factory):
        await add_webhook(WebhookType.EMAIL, "mailto:team@example.com")

        report = await manager.send_notification(completed_payload)

        assert report.outcomes[0].status == DispatchStatus.FAILED
        assert transport.requests == []
        [log] = await _logs(session_factory)
        assert log.status == NotificationStatus.FAILED
        assert log.error == "Unsupported webhook type: email"


# =============================================================================
# TEST: ISOLATION
# =============================================================================


class TestIsolation:

    async def test_one_failure_does_not_affect_siblings(self, manager, completed_payload, transport, add_webhook):
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("connect timeout", request=request)

        transport.responses[SLACK_URL] = boom
        await add_webhook(WebhookType.SLACK, SLACK_URL)
        await add_webhook(WebhookType.SLACK, OTHER_SLACK_URL)

        report = await manager.send_notification(completed_payload)

        assert len(report.sent) == 1
        assert len(report.failed) == 1
        assert report.failed[0].error == "connect timeout"
        assert report.error is None

    async def test_malformed_duration_does_not_block_siblings(self, manager, completed_payload, transport, add_webhook):
        filtered = await add_webhook(
            WebhookType.SLACK, SLACK_URL,
            preferences={NotificationEventType.MEETING_COMPLETED: {"min_duration": 300}},
        )
        sibling = await add_webhook(
            WebhookType.SLACK, OTHER_SLACK_URL,
            preferences={NotificationEventType.MEETING_COMPLETED: {}},
        )
        completed_payload.data["duration_seconds"] = "n/a"

        report = await manager.send_notification(completed_payload)

        statuses = {o.webhook_id: o.status for o in report.outcomes}
        assert report.error is None
        assert statuses == {filtered.id: DispatchStatus.SENT, sibling.id: DispatchStatus.SENT}
        assert len(transport.requests_to(OTHER_SLACK_URL)) == 1

    async def test_unexpected_exception_in_dispatch_is_contained(self, manager, completed_payload, transport, add_webhook, session_factory):
        def explode(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("unexpected")

        transport.responses[SLACK_URL] = explode
        await add_webhook(WebhookType.SLACK, SLACK_URL)

        report = await manager.send_notification(completed_payload)

        assert report.failed[0].error == "unexpected"
        [log] = await _logs(session_factory)
        assert log.status == NotificationStatus.FAILED
        assert log.error == "unexpected"

    async def test_database_failure_is_reported_not_raised(self, http_client, settings, completed_payload, transport):
        def broken_factory():
            raise RuntimeError("database unavailable")

        manager = NotificationManager(broken_factory, http_client, settings)

        report = await manager.send_notification(completed_payload)

        assert report.error == "database unavailable"
        assert report.outcomes == []
        assert transport.requests == []


# =============================================================================
# TEST: FORMATTING & HELPERS
# =============================================================================


class TestFormatting:

    @pytest.mark.parametrize(
        "event_type",
        [
            NotificationEventType.HIGHLIGHT_CREATED,
            NotificationEventType.TRANSCRIPTION_READY,
            NotificationEventType.SUMMARY_READY,
        ],
    )
    def test_slack_has_no_formatter(self, manager, event_type):
        assert manager.format_slack_message(event_type, {}) is None

    @pytest.mark.parametrize(
        "event_type",
        [NotificationEventType.TRANSCRIPTION_READY, NotificationEventType.SUMMARY_READY],
    )
    def test_teams_has_no_formatter(self, manager, event_type):
        assert manager.format_teams_message(event_type, {}) is None

    def test_formatting_does_not_mutate_event_data(self, manager):
        data = {"title": "Heti státusz"}

        manager.format_teams_message(NotificationEventType.MEETING_COMPLETED, data)

        assert data == {"title": "Heti státusz"}

    async def test_test_webhook_rejects_unknown_type(self, manager, transport):
        result = await manager.test_webhook("email", "https://example.com/hook")

        assert result.success is False
        assert result.error == "Invalid webhook type"
        assert transport.requests == []

    async def test_fire_notification_returns_report(self, session_factory, http_client, settings, completed_payload, add_webhook):
        await add_webhook(WebhookType.SLACK, SLACK_URL)

        report = await fire_notification(session_factory, http_client, settings, completed_payload)

        assert len(report.sent) == 1
