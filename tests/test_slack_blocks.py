"""
Tests for the Slack Block Kit builders.

These tests verify:
1. Only documented block types are emitted
2. Summaries are cut at 500 characters
3. Lists are capped at 5 entries with a trailer
4. Deep links point at the web app
"""

import pytest

from hangjegyzet.integrations.slack import SLACK_BLOCK_TYPES, SlackBlocks

APP_URL = "https://app.hangjegyzet.test"


def _texts(message: dict) -> list[str]:
    texts = []
    for block in message["blocks"]:
        if "text" in block:
            texts.append(block["text"]["text"])
        for element in block.get("elements", []):
            texts.append(element["text"])
    return texts


def _action_items(count: int) -> list[dict]:
    return [{"description": f"Feladat {i}", "assignee": "Kovács Anna"} for i in range(1, count + 1)]


@pytest.fixture
def completed_data() -> dict:
    return {
        "appUrl": APP_URL,
        "id": "m-123",
        "title": "Heti státusz",
        "duration_seconds": 1830,
        "summary": "Átnéztük a negyedéves célokat.",
        "action_items": _action_items(2),
        "speakers": ["Anna", "Béla"],
    }


# =============================================================================
# TEST: BLOCK TYPES
# =============================================================================


class TestBlockTypes:
    """Every builder sticks to header/section/divider/context/actions."""

    @pytest.mark.parametrize(
        "message",
        [
            SlackBlocks.test_message(),
            SlackBlocks.meeting_completed({"action_items": _action_items(8), "summary": "x"}),
            SlackBlocks.action_items({"actionItems": _action_items(3)}),
            SlackBlocks.mention({"meetingTitle": "Tervezés", "mentionedBy": "Anna"}),
            SlackBlocks.meeting_failed({"meetingTitle": "Tervezés", "error": "Timeout"}),
        ],
    )
    def test_only_documented_block_types(self, message):
        assert {block["type"] for block in message["blocks"]} <= SLACK_BLOCK_TYPES

    def test_meeting_failed_has_danger_attachment(self):
        message = SlackBlocks.meeting_failed({"meetingTitle": "Tervezés", "error": "Timeout"})

        attachment = message["attachments"][0]
        assert attachment["color"] == "danger"
        assert attachment["footer"] == "HangJegyzet"
        assert isinstance(attachment["ts"], int)
        assert "*Hiba:* Timeout" in _texts(message)


# =============================================================================
# TEST: MEETING COMPLETED
# =============================================================================


class TestMeetingCompleted:

    def test_header_duration_and_link(self, completed_data):
        message = SlackBlocks.meeting_completed(completed_data)

        assert message["blocks"][0]["text"]["text"] == "Megbeszélés feldolgozva"
        overview = message["blocks"][1]
        assert overview["text"]["text"] == "*Heti státusz*\nIdőtartam: 30 perc"
        assert overview["accessory"]["url"] == f"{APP_URL}/meetings/m-123"
        assert overview["accessory"]["style"] == "primary"

    def test_long_summary_is_truncated_to_500_characters(self, completed_data):
        completed_data["summary"] = "a" * 600

        message = SlackBlocks.meeting_completed(completed_data)

        summary_text = next(t for t in _texts(message) if t.startswith("*Összefoglaló:*"))
        assert summary_text == "*Összefoglaló:*\n" + "a" * 500 + "..."

    def test_short_summary_is_kept(self, completed_data):
        completed_data["summary"] = "b" * 500

        message = SlackBlocks.meeting_completed(completed_data)

        assert "*Összefoglaló:*\n" + "b" * 500 in _texts(message)

    def test_action_items_are_capped_at_five(self, completed_data):
        completed_data["action_items"] = _action_items(7)

        message = SlackBlocks.meeting_completed(completed_data)
        texts = _texts(message)

        assert "*Teendők (7 db):*" in texts
        assert "5. Feladat 5 - _Kovács Anna_" in texts
        assert not any(t.startswith("6. ") for t in texts)
        assert "_És még 2 további teendő..._" in texts

    def test_speakers_listed_in_context(self, completed_data):
        message = SlackBlocks.meeting_completed(completed_data)

        assert message["blocks"][-1] == {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": "Résztvevők: Anna, Béla"}],
        }

    def test_missing_fields_do_not_raise(self):
        message = SlackBlocks.meeting_completed({})

        assert message["blocks"][1]["text"]["text"] == "*Névtelen megbeszélés*\nIdőtartam: 0 perc"
        assert len(message["blocks"]) == 2


# =============================================================================
# TEST: ACTION ITEMS & MENTIONS
# =============================================================================


class TestActionItems:

    def test_details_are_joined(self):
        message = SlackBlocks.action_items({
            "appUrl": APP_URL,
            "meetingId": "m-1",
            "meetingTitle": "Sprint review",
            "actionItems": [
                {"description": "Ajánlat küldése", "assignee": "Béla", "dueDate": "2025-02-01", "priority": "magas"}
            ],
        })

        assert message["blocks"][1]["accessory"]["url"] == f"{APP_URL}/meetings/m-1#action-items"
        assert (
            "*1.* Ajánlat küldése\n   Felelős: _Béla_ | Határidő: _2025-02-01_ | Prioritás: _magas_"
            in _texts(message)
        )

    def test_more_than_five_items_get_trailer(self):
        message = SlackBlocks.action_items({"actionItems": _action_items(6)})

        assert message["blocks"][-1]["elements"][0]["text"] == "_És még 1 további teendő..._"


class TestMention:

    def test_deep_link_carries_timestamp(self):
        message = SlackBlocks.mention({
            "appUrl": APP_URL,
            "meetingId": "m-9",
            "meetingTitle": "Ügyfélhívás",
            "mentionedBy": "Anna",
            "context": "Béla, ezt nézd meg",
            "timestamp": 754,
        })

        assert message["blocks"][1]["accessory"]["url"] == f"{APP_URL}/meetings/m-9?t=754"
        assert "> Béla, ezt nézd meg" in _texts(message)
