"""Notification Router: webhooks, preferences, history and event triggers.

Reading endpoints need an organization context; anything that changes
configuration or sends messages needs the owner or admin role.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from ..core.dependencies import (
    AdminDep,
    HttpClientDep,
    NotificationManagerDep,
    OrgContextDep,
    SessionDep,
    SessionFactoryDep,
    SettingsDep,
)
from ..models import NotificationEventType, NotificationStatus
from ..schemas import (
    EVENT_DESCRIPTIONS,
    EventInfo,
    EventTriggerRequest,
    EventTriggerResponse,
    NotificationLogResponse,
    PaginatedResponse,
    PreferenceResponse,
    PreferenceUpdate,
    SendResultResponse,
    WebhookCreate,
    WebhookResponse,
    WebhookTestRequest,
    WebhookUpdate,
)
from ..services import (
    InvalidWebhookError,
    NotificationPayload,
    NotificationStore,
    WebhookNotFoundError,
    fire_notification,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_store(session: SessionDep) -> NotificationStore:
    return NotificationStore(session)


NotificationStoreDep = Annotated[NotificationStore, Depends(get_notification_store)]


def _not_found(e: WebhookNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# WEBHOOKS
# =============================================================================


@router.get("/webhooks", response_model=list[WebhookResponse])
async def list_webhooks(current_user: OrgContextDep, store: NotificationStoreDep):
    """List the organization's webhooks, newest first."""
    webhooks = await store.list_webhooks(current_user.organization_id)
    return [WebhookResponse.model_validate(w) for w in webhooks]


@router.post("/webhooks", response_model=WebhookResponse, status_code=status.HTTP_201_CREATED)
async def create_webhook(
    request: WebhookCreate,
    current_user: AdminDep,
    store: NotificationStoreDep,
):
    """Register a Slack or Teams webhook with default preferences for every event."""
    try:
        webhook = await store.create_webhook(
            organization_id=current_user.organization_id,
            name=request.name,
            type=request.type,
            webhook_url=request.webhook_url,
            channel=request.channel,
            settings=request.settings,
        )
    except InvalidWebhookError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return WebhookResponse.model_validate(webhook)


@router.post("/webhooks/test", response_model=SendResultResponse)
async def test_webhook(
    request: WebhookTestRequest,
    current_user: AdminDep,
    manager: NotificationManagerDep,
):
    """Send the platform's test message to a webhook URL."""
    result = await manager.test_webhook(request.type, request.webhook_url)
    logger.info(
        f"Test message to {request.type} webhook for org {current_user.organization_id}: "
        f"{'ok' if result.success else result.error}"
    )
    return SendResultResponse(success=result.success, error=result.error)


@router.put("/webhooks/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    webhook_id: UUID,
    request: WebhookUpdate,
    current_user: AdminDep,
    store: NotificationStoreDep,
):
    """Update the given webhook fields."""
    try:
        webhook = await store.update_webhook(
            current_user.organization_id,
            webhook_id,
            request.model_dump(exclude_unset=True),
        )
    except WebhookNotFoundError as e:
        raise _not_found(e)
    except InvalidWebhookError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return WebhookResponse.model_validate(webhook)


@router.delete("/webhooks/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_webhook(
    webhook_id: UUID,
    current_user: AdminDep,
    store: NotificationStoreDep,
):
    """Deactivate a webhook. Its history stays available."""
    try:
        await store.deactivate_webhook(current_user.organization_id, webhook_id)
    except WebhookNotFoundError as e:
        raise _not_found(e)


# =============================================================================
# PREFERENCES
# =============================================================================


@router.get("/webhooks/{webhook_id}/preferences", response_model=list[PreferenceResponse])
async def list_preferences(
    webhook_id: UUID,
    current_user: OrgContextDep,
    store: NotificationStoreDep,
):
    try:
        preferences = await store.list_preferences(current_user.organization_id, webhook_id)
    except WebhookNotFoundError as e:
        raise _not_found(e)

    return [PreferenceResponse.model_validate(p) for p in preferences]


@router.put(
    "/webhooks/{webhook_id}/preferences/{event_type}",
    response_model=PreferenceResponse,
)
async def update_preference(
    webhook_id: UUID,
    event_type: NotificationEventType,
    request: PreferenceUpdate,
    current_user: AdminDep,
    store: NotificationStoreDep,
):
    """Enable or disable an event type for a webhook and set its filters."""
    try:
        pref = await store.upsert_preference(
            organization_id=current_user.organization_id,
            webhook_id=webhook_id,
            event_type=event_type,
            enabled=request.enabled,
            filters=request.filters.model_dump(exclude_none=True),
        )
    except WebhookNotFoundError as e:
        raise _not_found(e)

    return PreferenceResponse.model_validate(pref)


# =============================================================================
# HISTORY
# =============================================================================


@router.get("/history", response_model=PaginatedResponse)
async def get_history(
    current_user: OrgContextDep,
    store: NotificationStoreDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status_filter: NotificationStatus | None = Query(None, alias="status"),
    event_type: NotificationEventType | None = None,
    meeting_id: UUID | None = None,
):
    """Paginated notification log, newest first."""
    entries, total = await store.get_history(
        organization_id=current_user.organization_id,
        status=status_filter,
        event_type=event_type,
        meeting_id=meeting_id,
        limit=page_size,
        offset=(page - 1) * page_size,
    )

    return PaginatedResponse.create(
        items=[NotificationLogResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        page_size=page_size,
    )


# =============================================================================
# EVENTS
# =============================================================================


@router.get("/events", response_model=list[EventInfo])
async def list_events(current_user: OrgContextDep):
    """Event types that webhooks can subscribe to."""
    return [
        EventInfo(value=event_type, label=label, description=description)
        for event_type, (label, description) in EVENT_DESCRIPTIONS.items()
    ]


@router.post("/events", response_model=EventTriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def trigger_event(
    request: EventTriggerRequest,
    background_tasks: BackgroundTasks,
    current_user: AdminDep,
    session_factory: SessionFactoryDep,
    http_client: HttpClientDep,
    settings: SettingsDep,
):
    """Dispatch an event to the organization's webhooks in the background."""
    payload = NotificationPayload(
        event_type=request.event_type,
        organization_id=current_user.organization_id,
        meeting_id=request.meeting_id,
        data=request.data,
    )
    background_tasks.add_task(fire_notification, session_factory, http_client, settings, payload)

    return EventTriggerResponse(event_type=request.event_type)
