"""Microsoft Teams MessageCard builders.

Cards follow the legacy Office 365 connector schema accepted by Teams
incoming webhooks. Provides card templates for:
- Meeting processed / failed
- New action items
- Mentions
- New highlights
- Webhook test
"""

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

THEME_SUCCESS = "00a656"
THEME_INFO = "0078D4"
THEME_ATTENTION = "FF6900"
THEME_ERROR = "CC0000"
THEME_HIGHLIGHT = "7B68EE"


def _card(
    summary: str,
    sections: list[dict],
    theme_color: str,
    actions: list[dict] | None = None,
) -> dict:
    card: dict[str, Any] = {
        "@type": "MessageCard",
        "@context": "https://schema.org/extensions",
        "themeColor": theme_color,
        "summary": summary,
        "sections": sections,
    }
    if actions:
        card["potentialAction"] = actions
    return card


def _open_uri(name: str, uri: str) -> dict:
    return {
        "@type": "OpenUri",
        "name": name,
        "targets": [{"os": "default", "uri": uri}],
    }


class TeamsCards:
    """MessageCard builders for Teams incoming webhooks."""

    @staticmethod
    def test_card() -> dict:
        return _card(
            summary="HangJegyzet webhook teszt",
            theme_color=THEME_INFO,
            sections=[
                {
                    "activityTitle": "HangJegyzet Webhook Teszt",
                    "activitySubtitle": "A webhook sikeresen konfigurálva lett!",
                    "facts": [
                        {"name": "Állapot", "value": "Sikeres"},
                        {"name": "Időpont", "value": format_hu_datetime()},
                    ],
                    "text": "Mostantól értesítéseket fogsz kapni a HangJegyzet alkalmazásból.",
                    "markdown": True,
                }
            ],
        )

    @staticmethod
    def meeting_completed(data: dict[str, Any]) -> dict:
        """
        Build the "meeting processed" card.

        Args:
            data: event data with ``id``, ``title``, ``duration_seconds``,
                ``summary``, ``action_items``, ``speakers`` and ``appUrl``
        """
        title = data.get("title") or UNTITLED_MEETING
        action_items = as_list(data.get("action_items"))
        speakers = as_list(data.get("speakers"))

        sections: list[dict] = [
            {
                "activityTitle": "Megbeszélés feldolgozva",
                "activitySubtitle": title,
                "facts": [
                    {"name": "Időtartam", "value": f"{duration_minutes(data.get('duration_seconds'))} perc"},
                    {"name": "Teendők", "value": f"{len(action_items)} db"},
                ],
            }
        ]

        summary = data.get("summary")
        if summary:
            sections.append({
                "text": f"**Összefoglaló:**\n\n{truncate(str(summary))}",
                "markdown": True,
            })

        if action_items:
            text = "**Teendők:**\n\n"
            shown, remaining = split_preview(action_items)
            for index, item in enumerate(shown, start=1):
                item = item if isinstance(item, dict) else {"description": str(item)}
                text += f"{index}. {item.get('description', '')}"
                if item.get("assignee"):
                    text += f" - *{item['assignee']}*"
                text += "\n"
            if remaining:
                text += f"\n*És még {remaining} további teendő...*"
            sections.append({"text": text, "markdown": True})

        if speakers:
            sections.append({
                "facts": [{"name": "Résztvevők", "value": ", ".join(str(s) for s in speakers)}]
            })

        return _card(
            summary=f"Megbeszélés feldolgozva: {title}",
            sections=sections,
            theme_color=THEME_SUCCESS,
            actions=[
                _open_uri(
                    "Megnyitás a HangJegyzetben",
                    meeting_url(data.get("appUrl", ""), data.get("id")),
                )
            ],
        )

    @staticmethod
    def action_items(data: dict[str, Any]) -> dict:
        title = data.get("meetingTitle") or UNTITLED_MEETING
        items = as_list(data.get("actionItems"))

        text = "**Teendők:**\n\n"
        shown, remaining = split_preview(items)
        for index, item in enumerate(shown, start=1):
            item = item if isinstance(item, dict) else {"description": str(item)}
            text += f"**{index}.** {item.get('description', '')}\n"

            details = []
            if item.get("assignee"):
                details.append(f"Felelős: *{item['assignee']}*")
            if item.get("dueDate"):
                details.append(f"Határidő: *{item['dueDate']}*")
            if item.get("priority"):
                details.append(f"Prioritás: *{item['priority']}*")
            if details:
                text += f"   {' | '.join(details)}\n"
            text += "\n"

        if remaining:
            text += f"*És még {remaining} további teendő...*"

        return _card(
            summary=f"Új teendők: {title}",
            theme_color=THEME_INFO,
            sections=[
                {
                    "activityTitle": "Új teendők létrehozva",
                    "activitySubtitle": title,
                    "facts": [{"name": "Teendők száma", "value": f"{len(items)} db"}],
                },
                {"text": text, "markdown": True},
            ],
            actions=[
                _open_uri(
                    "Teendők megtekintése",
                    meeting_url(data.get("appUrl", ""), data.get("meetingId"), "#action-items"),
                )
            ],
        )

    @staticmethod
    def mention(data: dict[str, Any]) -> dict:
        title = data.get("meetingTitle") or UNTITLED_MEETING

        return _card(
            summary=f"Említve lettél: {title}",
            theme_color=THEME_ATTENTION,
            sections=[
                {
                    "activityTitle": "Említve lettél egy megbeszélésen",
                    "activitySubtitle": title,
                    "facts": [
                        {"name": "Említette", "value": str(data.get("mentionedBy", ""))},
                        {"name": "Időpont", "value": format_hu_datetime()},
                    ],
                },
                {
                    "text": f"**Kontextus:**\n\n> {data.get('context', '')}",
                    "markdown": True,
                },
            ],
            actions=[
                _open_uri(
                    "Ugrás a megjegyzéshez",
                    meeting_url(
                        data.get("appUrl", ""),
                        data.get("meetingId"),
                        f"?t={data.get('timestamp', '')}",
                    ),
                )
            ],
        )

    @staticmethod
    def meeting_failed(data: dict[str, Any]) -> dict:
        title = data.get("meetingTitle") or UNTITLED_MEETING

        return _card(
            summary=f"Feldolgozás sikertelen: {title}",
            theme_color=THEME_ERROR,
            sections=[
                {
                    "activityTitle": "Megbeszélés feldolgozása sikertelen",
                    "activitySubtitle": title,
                    "facts": [
                        {"name": "Állapot", "value": "Sikertelen"},
                        {"name": "Időpont", "value": format_hu_datetime()},
                    ],
                },
                {
                    "text": (
                        f"**Hiba:** {data.get('error', 'Ismeretlen hiba')}\n\n"
                        "Kérjük, próbáld újra feldolgozni a megbeszélést, "
                        "vagy lépj kapcsolatba a támogatással."
                    ),
                    "markdown": True,
                },
            ],
            actions=[
                _open_uri(
                    "Részletek megtekintése",
                    meeting_url(data.get("appUrl", ""), data.get("meetingId")),
                )
            ],
        )

    @staticmethod
    def highlight_created(data: dict[str, Any]) -> dict:
        """Build the "new highlights" card (Teams only)."""
        title = data.get("meetingTitle") or UNTITLED_MEETING
        highlights = as_list(data.get("highlights"))

        text = "**Kiemelések:**\n\n"
        shown, remaining = split_preview(highlights)
        for index, highlight in enumerate(shown, start=1):
            highlight = highlight if isinstance(highlight, dict) else {"text": str(highlight)}
            text += f"{index}. \"{highlight.get('text', '')}\"\n"
            if highlight.get("speaker"):
                text += f"   *- {highlight['speaker']}*\n"
            text += "\n"

        if remaining:
            text += f"*És még {remaining} további kiemelés...*"

        return _card(
            summary=f"Új kiemelések: {title}",
            theme_color=THEME_HIGHLIGHT,
            sections=[
                {
                    "activityTitle": "Új kiemelések hozzáadva",
                    "activitySubtitle": title,
                    "facts": [{"name": "Kiemelések száma", "value": f"{len(highlights)} db"}],
                },
                {"text": text, "markdown": True},
            ],
            actions=[
                _open_uri(
                    "Kiemelések megtekintése",
                    meeting_url(data.get("appUrl", ""), data.get("meetingId"), "#highlights"),
                )
            ],
        )
