"""Shared fixtures: SQLite-backed async sessions, settings and a recording HTTP transport."""

import json
from collections.abc import Callable
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from hangjegyzet.core.config import Settings
from hangjegyzet.core.database import build_session_factory
from hangjegyzet.models import (
    Base,
    NotificationPreference,
    NotificationWebhook,
    Organization,
    NotificationEventType,
    WebhookType,
)

APP_URL = "https://app.hangjegyzet.test"
SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
TEAMS_URL = "https://contoso.webhook.office.com/webhookb2/abc/IncomingWebhook/def"


class RecordingTransport(httpx.AsyncBaseTransport):
    """Mock transport that records requests and answers per URL.

    ``responses`` maps a URL to either an ``httpx.Response`` or a callable
    taking the request (which may raise transport errors).
    """

    def __init__(self, responses: dict[str, httpx.Response | Callable] | None = None):
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.responses.get(str(request.url))
        if answer is None:
            return httpx.Response(200, text="ok")
        if callable(answer):
            return answer(request)
        return answer

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    def json_bodies(self, url: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests_to(url)]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_URL=APP_URL,
        secret_key="test-secret-key",
        notification_timeout_seconds=2.0,
        _env_file=None,
    )


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'notifications.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def organization(session_factory) -> Organization:
    async with session_factory() as session:
        org = Organization(id=uuid4(), slug="acme", name="Acme Kft.")
        session.add(org)
        await session.commit()
    return org


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
async def http_client(transport):
    async with httpx.AsyncClient(transport=transport) as client:
        yield client


@pytest.fixture
def add_webhook(session_factory, organization):
    """Insert a webhook directly, optionally with enabled preferences."""

    async def _add(
        type: WebhookType = WebhookType.SLACK,
        url: str = SLACK_URL,
        *,
        name: str | None = None,
        channel: str | None = None,
        is_active: bool = True,
        preferences: dict[NotificationEventType, dict] | None = None,
    ) -> NotificationWebhook:
        async with session_factory() as session:
            webhook = NotificationWebhook(
                id=uuid4(),
                organization_id=organization.id,
                name=name or f"{type.value} webhook",
                type=type,
                webhook_url=url,
                channel=channel,
                is_active=is_active,
                settings={},
            )
            session.add(webhook)
            await session.flush()
            for event_type, filters in (preferences or {}).items():
                session.add(
                    NotificationPreference(
                        organization_id=organization.id,
                        webhook_id=webhook.id,
                        event_type=event_type,
                        enabled=True,
                        filters=filters,
                    )
                )
            await session.commit()
        return webhook

    return _add
