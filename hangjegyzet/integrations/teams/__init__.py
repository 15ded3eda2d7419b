"""Microsoft Teams incoming-webhook integration."""

from .cards import TeamsCards
from .webhook import TeamsWebhookClient

__all__ = ["TeamsCards", "TeamsWebhookClient"]
