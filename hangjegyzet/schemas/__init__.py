"""Pydantic schemas for API request/response validation."""

from .base import (
    ErrorDetail,
    ErrorResponse,
    HangJegyzetBaseModel,
    PaginatedResponse,
    PaginationParams,
)
from .notifications import (
    EVENT_DESCRIPTIONS,
    EventInfo,
    EventTriggerRequest,
    EventTriggerResponse,
    NotificationLogResponse,
    PreferenceFilters,
    PreferenceResponse,
    PreferenceUpdate,
    SendResultResponse,
    WebhookCreate,
    WebhookResponse,
    WebhookTestRequest,
    WebhookUpdate,
)

__all__ = [
    # Base
    "HangJegyzetBaseModel",
    "PaginationParams",
    "PaginatedResponse",
    "ErrorDetail",
    "ErrorResponse",
    # Notifications
    "EVENT_DESCRIPTIONS",
    "EventInfo",
    "EventTriggerRequest",
    "EventTriggerResponse",
    "NotificationLogResponse",
    "PreferenceFilters",
    "PreferenceResponse",
    "PreferenceUpdate",
    "SendResultResponse",
    "WebhookCreate",
    "WebhookResponse",
    "WebhookTestRequest",
    "WebhookUpdate",
]
