"""Request and response schemas for the notification API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ..models import NotificationEventType, NotificationStatus, WebhookType
from .base import HangJegyzetBaseModel, TimestampMixin

# Label and description shown by the settings UI for each event type
EVENT_DESCRIPTIONS: dict[NotificationEventType, tuple[str, str]] = {
    NotificationEventType.MEETING_COMPLETED: (
        "Megbeszélés feldolgozva",
        "Értesítés, amikor egy megbeszélés feldolgozása befejeződött",
    ),
    NotificationEventType.MEETING_FAILED: (
        "Feldolgozás sikertelen",
        "Értesítés, ha egy megbeszélés feldolgozása meghiúsult",
    ),
    NotificationEventType.ACTION_ITEMS_CREATED: (
        "Teendők létrehozva",
        "Értesítés új teendők hozzáadásakor",
    ),
    NotificationEventType.USER_MENTIONED: (
        "Említés",
        "Értesítés, amikor valaki megemlít téged",
    ),
    NotificationEventType.HIGHLIGHT_CREATED: (
        "Kiemelés hozzáadva",
        "Értesítés új kiemelések létrehozásakor",
    ),
    NotificationEventType.TRANSCRIPTION_READY: (
        "Átirat elkészült",
        "Értesítés, amikor egy megbeszélés átirata elkészült",
    ),
    NotificationEventType.SUMMARY_READY: (
        "Összefoglaló elkészült",
        "Értesítés, amikor egy megbeszélés összefoglalója elkészült",
    ),
}


def _check_webhook_url(value: str) -> str:
    value = value.strip()
    if not value.startswith(("https://", "http://")):
        raise ValueError("Webhook URL must be an http(s) URL")
    return value


def _check_webhook_type(value: WebhookType) -> WebhookType:
    if value not in (WebhookType.SLACK, WebhookType.TEAMS):
        raise ValueError("Invalid webhook type")
    return value


# =============================================================================
# WEBHOOKS
# =============================================================================


class WebhookCreate(BaseModel):
    """Request to register a Slack or Teams webhook."""

    name: str = Field(..., min_length=1, max_length=255)
    type: WebhookType
    webhook_url: str = Field(..., min_length=1)
    channel: str | None = Field(default=None, max_length=255)
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("webhook_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_webhook_url(v)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: WebhookType) -> WebhookType:
        return _check_webhook_type(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class WebhookUpdate(BaseModel):
    """Partial webhook update. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    webhook_url: str | None = None
    channel: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None
    settings: dict[str, Any] | None = None

    @field_validator("name", "webhook_url", "is_active", "settings")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        # Only channel may be cleared; the other columns are NOT NULL
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("webhook_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_webhook_url(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class WebhookResponse(HangJegyzetBaseModel, TimestampMixin):
    """Webhook as returned by the API."""

    id: UUID
    organization_id: UUID
    name: str
    type: WebhookType
    webhook_url: str
    channel: str | None = None
    is_active: bool
    settings: dict[str, Any] = {}


class WebhookTestRequest(BaseModel):
    """Request to send a test message to a webhook URL."""

    type: WebhookType
    webhook_url: str

    @field_validator("webhook_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_webhook_url(v)


class SendResultResponse(BaseModel):
    """Outcome of a single send."""

    success: bool
    error: str | None = None


# =============================================================================
# PREFERENCES
# =============================================================================


class PreferenceFilters(BaseModel):
    """Content filters applied before dispatch."""

    min_duration: int | None = Field(default=None, ge=0, description="Minimum meeting length in seconds")
    keywords: list[str] | None = None
    users: list[str] | None = None


class PreferenceUpdate(BaseModel):
    """Enable or disable an event type for a webhook."""

    enabled: bool = True
    filters: PreferenceFilters = Field(default_factory=PreferenceFilters)


class PreferenceResponse(HangJegyzetBaseModel):
    id: UUID
    webhook_id: UUID
    event_type: NotificationEventType
    enabled: bool
    filters: dict[str, Any] = {}


# =============================================================================
# HISTORY & EVENTS
# =============================================================================


class NotificationLogResponse(HangJegyzetBaseModel):
    """One audit log entry."""

    id: UUID
    webhook_id: UUID | None = None
    meeting_id: UUID | None = None
    event_type: NotificationEventType
    status: NotificationStatus
    payload: dict[str, Any] = {}
    response: dict[str, Any] | None = None
    error: str | None = None
    retries: int = 0
    sent_at: datetime | None = None
    created_at: datetime


class EventTriggerRequest(BaseModel):
    """Trigger an event for the caller's organization."""

    event_type: NotificationEventType
    meeting_id: UUID | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class EventTriggerResponse(BaseModel):
    accepted: bool = True
    event_type: NotificationEventType


class EventInfo(BaseModel):
    """An event type with its Hungarian label and description."""

    value: NotificationEventType
    label: str
    description: str
