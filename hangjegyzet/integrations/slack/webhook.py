"""Slack incoming-webhook client."""

import logging

import httpx

from ..common import SendResult
from .blocks import SlackBlocks

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class SlackWebhookClient:
    """
    Posts Block Kit messages to Slack incoming webhooks.

    Expected failures (timeouts, connection errors, non-200 responses) are
    returned as ``SendResult(success=False)``; anything else propagates.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.http_client = http_client
        self.timeout_seconds = timeout_seconds

    async def send(self, webhook_url: str, message: dict) -> SendResult:
        """Send a message; Slack answers HTTP 200 with body ``ok`` on success."""
        try:
            response = await self.http_client.post(
                webhook_url,
                json=message,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as e:
            error = str(e) or e.__class__.__name__
            logger.error(f"Slack notification error: {error}")
            return SendResult(success=False, error=error)

        if response.status_code == 200:
            return SendResult(success=True)

        error = response.text or f"HTTP {response.status_code}"
        logger.error(f"Slack notification error: {response.status_code} {error}")
        return SendResult(success=False, error=error)

    async def test_webhook(self, webhook_url: str) -> SendResult:
        """Send the configuration test message."""
        return await self.send(webhook_url, SlackBlocks.test_message())
