"""Notification templates and the send gate."""
from dataclasses import dataclass

import pytest

from komsai.schemas import NotificationPayload
from komsai.services import composer


@dataclass
class Row:
    id: int
    name: str
    total_points: int


STANDINGS = [Row(1, "Red", 30), Row(2, "Blue", 20), Row(3, "green", 10), Row(4, "Yellow", 5), Row(5, "Black", 0)]


def test_standings_lists_top_four():
    payload = composer.compose_standings(STANDINGS)
    assert payload.title == "Current Standings"
    assert payload.tag == "results"
    assert payload.body == "1. Red (30 pts) · 2. Blue (20 pts) · 3. green (10 pts) · 4. Yellow (5 pts)"
    assert "Black" not in payload.body


def test_standings_two_houses():
    payload = composer.compose_standings(STANDINGS[:2])
    assert payload.body == "1. Red (30 pts) · 2. Blue (20 pts)"


def test_standings_with_note():
    payload = composer.compose_standings(STANDINGS[:1], note="Day 2 is over")
    assert payload.body == "1. Red (30 pts) — Day 2 is over"


def test_standings_empty_uses_fallback():
    payload = composer.compose_standings([])
    assert payload.body == composer.STANDINGS_FALLBACK


def test_event_result_full():
    payload = composer.compose_event_result(STANDINGS, 3, "Valorant", "1st", day=2)
    assert payload.title == "🥇 Valorant Results"
    assert payload.body == (
        "Green takes 1st place in Valorant! (Day 2) Check the leaderboard for updated standings."
    )
    assert payload.tag == "results"


def test_event_result_without_day():
    payload = composer.compose_event_result(STANDINGS, 2, "Chess", "3rd")
    assert payload.title == "🥉 Chess Results"
    assert payload.body == "Blue takes 3rd place in Chess! Check the leaderboard for updated standings."


def test_event_result_missing_house_falls_back():
    fields = {"house_id": None, "event": "Valorant", "place": "1st"}
    payload = composer.compose("event-result", fields, STANDINGS)
    assert payload.title == "🥇 Valorant Results"
    assert payload.body == composer.EVENT_RESULT_BODY_FALLBACK
    assert composer.is_sendable(payload, "event-result", fields, STANDINGS) is False


def test_event_result_unknown_house_falls_back():
    payload = composer.compose_event_result(STANDINGS, 999, "Valorant", "2nd")
    assert payload.body == composer.EVENT_RESULT_BODY_FALLBACK


def test_event_result_unknown_house_not_sendable():
    fields = {"house_id": 999, "event": "Chess", "place": "1st"}
    payload = composer.compose("event-result", fields, STANDINGS)
    assert payload.title == "🥇 Chess Results"
    assert composer.is_sendable(payload, "event-result", fields, STANDINGS) is False


def test_event_result_no_event_title_fallback():
    payload = composer.compose_event_result(STANDINGS, 1, "", "1st")
    assert payload.title == composer.EVENT_RESULT_TITLE_FALLBACK


def test_custom_template():
    payload = composer.compose("custom", {"title": "Heads up", "body": "Finals at 5pm", "tag": "reminders"}, [])
    assert payload == NotificationPayload(title="Heads up", body="Finals at 5pm", tag="reminders")
    assert composer.is_sendable(payload, "custom", {}) is True


@pytest.mark.parametrize("title,body", [("", "body"), ("title", ""), ("   ", "body"), ("title", "  ")])
def test_blank_title_or_body_not_sendable(title, body):
    payload = composer.compose_custom(title, body)
    assert composer.is_sendable(payload, "custom", {}) is False


def test_event_result_sendable_when_complete():
    fields = {"house_id": 1, "event": "Valorant", "place": "1st", "day": 1}
    payload = composer.compose("event-result", fields, STANDINGS)
    assert composer.is_sendable(payload, "event-result", fields, STANDINGS) is True


def test_unknown_kind():
    with pytest.raises(ValueError):
        composer.compose("weather", {}, [])
