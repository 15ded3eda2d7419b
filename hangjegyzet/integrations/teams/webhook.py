"""Microsoft Teams incoming-webhook (O365 connector) client."""

import logging

import httpx

from ..common import SendResult
from .cards import TeamsCards

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

# Teams connectors answer with the literal body "1" when a card is accepted
TEAMS_SUCCESS_BODY = "1"


class TeamsWebhookClient:
    """Posts MessageCards to Teams incoming webhooks."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.http_client = http_client
        self.timeout_seconds = timeout_seconds

    async def send(self, webhook_url: str, card: dict) -> SendResult:
        """
        Send a card.

        Success requires HTTP 200 and the body ``1``. Transport errors and
        other responses come back as ``SendResult(success=False)``.
        """
        try:
            response = await self.http_client.post(
                webhook_url,
                json=card,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as e:
            error = str(e) or e.__class__.__name__
            logger.error(f"Teams notification error: {error}")
            return SendResult(success=False, error=error)

        body = response.text.strip()
        if response.status_code == 200 and body == TEAMS_SUCCESS_BODY:
            return SendResult(success=True)

        if response.status_code == 200:
            error = f"Unexpected Teams response: {body or '<empty>'}"
        else:
            error = body or f"HTTP {response.status_code}"
        logger.error(f"Teams notification error: {response.status_code} {error}")
        return SendResult(success=False, error=error)

    async def test_webhook(self, webhook_url: str) -> SendResult:
        """Send the configuration test card."""
        return await self.send(webhook_url, TeamsCards.test_card())
