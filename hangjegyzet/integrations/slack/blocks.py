"""Slack Block Kit message builders for meeting notifications.

All builders are pure: they take the event data bag (plus ``appUrl``) and
return an incoming-webhook message. Only the documented block types
``header``, ``section``, ``divider``, ``context`` and ``actions`` are emitted.
"""

import time
from typing import Any

from ..common import (
    UNTITLED_MEETING,
    as_list,
    duration_minutes,
    format_hu_datetime,
    meeting_url,
    split_preview,
    truncate,
)

SLACK_BLOCK_TYPES = frozenset({"header", "section", "divider", "context", "actions"})


def _header(text: str) -> dict:
    return {
        "type": "header",
        "text": {"type": "plain_text", "text": text, "emoji": True},
    }


def _section(text: str, accessory: dict | None = None) -> dict:
    block: dict[str, Any] = {
        "type": "section",
        "text": {"type": "mrkdwn", "text": text},
    }
    if accessory:
        block["accessory"] = accessory
    return block


def _button(text: str, url: str, style: str | None = None) -> dict:
    button: dict[str, Any] = {
        "type": "button",
        "text": {"type": "plain_text", "text": text, "emoji": True},
        "url": url,
    }
    if style:
        button["style"] = style
    return button


def _context(text: str) -> dict:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


class SlackBlocks:
    """Factory for Slack incoming-webhook messages."""

    @staticmethod
    def test_message() -> dict:
        """Message sent when an admin tests a webhook."""
        return {
            "text": "HangJegyzet webhook teszt",
            "blocks": [
                _header("HangJegyzet Webhook Teszt"),
                _section(
                    "A webhook sikeresen konfigurálva lett! Mostantól értesítéseket "
                    "fogsz kapni a HangJegyzet alkalmazásból."
                ),
                _context(f"Teszt időpont: {format_hu_datetime()}"),
            ],
        }

    @staticmethod
    def meeting_completed(data: dict[str, Any]) -> dict:
        """
        Build the "meeting processed" message.

        Uses ``id``, ``title``, ``duration_seconds``, ``summary``,
        ``action_items`` and ``speakers`` from the event data.
        """
        app_url = data.get("appUrl", "")
        action_items = as_list(data.get("action_items"))
        speakers = as_list(data.get("speakers"))
        minutes = duration_minutes(data.get("duration_seconds"))

        blocks = [
            _header("Megbeszélés feldolgozva"),
            _section(
                f"*{data.get('title') or UNTITLED_MEETING}*\nIdőtartam: {minutes} perc",
                accessory=_button(
                    "Megnyitás", meeting_url(app_url, data.get("id")), style="primary"
                ),
            ),
        ]

        summary = data.get("summary")
        if summary:
            blocks.append(_section(f"*Összefoglaló:*\n{truncate(str(summary))}"))

        if action_items:
            blocks.append({"type": "divider"})
            blocks.append(_section(f"*Teendők ({len(action_items)} db):*"))

            shown, remaining = split_preview(action_items)
            for index, item in enumerate(shown, start=1):
                item = item if isinstance(item, dict) else {"description": str(item)}
                text = f"{index}. {item.get('description', '')}"
                if item.get("assignee"):
                    text += f" - _{item['assignee']}_"
                blocks.append(_section(text))

            if remaining:
                blocks.append(_context(f"_És még {remaining} további teendő..._"))

        if speakers:
            blocks.append(_context(f"Résztvevők: {', '.join(str(s) for s in speakers)}"))

        return {"blocks": blocks}

    @staticmethod
    def action_items(data: dict[str, Any]) -> dict:
        """Build the "new action items" message."""
        app_url = data.get("appUrl", "")
        items = as_list(data.get("actionItems"))

        blocks = [
            _header("Új teendők létrehozva"),
            _section(
                f"*{data.get('meetingTitle') or UNTITLED_MEETING}*\n{len(items)} új teendő",
                accessory=_button(
                    "Megtekintés",
                    meeting_url(app_url, data.get("meetingId"), "#action-items"),
                ),
            ),
            {"type": "divider"},
        ]

        shown, remaining = split_preview(items)
        for index, item in enumerate(shown, start=1):
            item = item if isinstance(item, dict) else {"description": str(item)}
            text = f"*{index}.* {item.get('description', '')}"

            details = []
            if item.get("assignee"):
                details.append(f"Felelős: _{item['assignee']}_")
            if item.get("dueDate"):
                details.append(f"Határidő: _{item['dueDate']}_")
            if item.get("priority"):
                details.append(f"Prioritás: _{item['priority']}_")
            if details:
                text += f"\n   {' | '.join(details)}"

            blocks.append(_section(text))

        if remaining:
            blocks.append(_context(f"_És még {remaining} további teendő..._"))

        return {"blocks": blocks}

    @staticmethod
    def mention(data: dict[str, Any]) -> dict:
        """Build the "you were mentioned" message."""
        app_url = data.get("appUrl", "")
        target = meeting_url(app_url, data.get("meetingId"), f"?t={data.get('timestamp', '')}")

        return {
            "blocks": [
                _header("Említve lettél egy megbeszélésen"),
                _section(
                    f"*{data.get('meetingTitle') or UNTITLED_MEETING}*\n"
                    f"_{data.get('mentionedBy', '')}_ megemlített téged",
                    accessory=_button("Ugrás", target),
                ),
                _section(f"> {data.get('context', '')}"),
                _context(f"Időpont: {format_hu_datetime()}"),
            ]
        }

    @staticmethod
    def meeting_failed(data: dict[str, Any]) -> dict:
        """Build the "processing failed" message."""
        app_url = data.get("appUrl", "")

        return {
            "blocks": [
                _header("Megbeszélés feldolgozása sikertelen"),
                _section(
                    f"*{data.get('meetingTitle') or UNTITLED_MEETING}*\n"
                    "Hiba történt a feldolgozás során",
                    accessory=_button(
                        "Részletek",
                        meeting_url(app_url, data.get("meetingId")),
                        style="danger",
                    ),
                ),
                _section(f"*Hiba:* {data.get('error', 'Ismeretlen hiba')}"),
                _context(
                    "Kérjük, próbáld újra feldolgozni a megbeszélést, "
                    "vagy lépj kapcsolatba a támogatással."
                ),
            ],
            "attachments": [
                {
                    "color": "danger",
                    "footer": "HangJegyzet",
                    "ts": int(time.time()),
                }
            ],
        }
