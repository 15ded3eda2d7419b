"""Slack incoming-webhook integration."""

from .blocks import SLACK_BLOCK_TYPES, SlackBlocks
from .webhook import SlackWebhookClient

__all__ = ["SLACK_BLOCK_TYPES", "SlackBlocks", "SlackWebhookClient"]
