"""Outbound chat integrations (Slack, Microsoft Teams)."""

from .common import SendResult
from .slack import SlackBlocks, SlackWebhookClient
from .teams import TeamsCards, TeamsWebhookClient

__all__ = [
    "SendResult",
    "SlackBlocks",
    "SlackWebhookClient",
    "TeamsCards",
    "TeamsWebhookClient",
]
