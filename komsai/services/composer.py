"""
Notification templates for the operator page: custom text, current standings
and a single event result. Pure functions, no I/O.
"""
from typing import Any, Iterable, Protocol

from komsai.schemas.push import NotificationPayload

STANDINGS_TITLE = "Current Standings"
STANDINGS_FALLBACK = "Check the leaderboard for the latest standings!"
STANDINGS_TOP_N = 4
STANDINGS_SEPARATOR = " · "

EVENT_RESULT_TITLE_FALLBACK = "Event Results"
EVENT_RESULT_BODY_FALLBACK = "New results are in — check the leaderboard!"
EVENT_RESULT_CTA = "Check the leaderboard for updated standings."

PLACE_DECORATION = {
    "1st": "🥇",
    "2nd": "🥈",
    "3rd": "🥉",
    "4th": "4️⃣",
}
DEFAULT_DECORATION = "🏆"


class Standing(Protocol):
    """A leaderboard row: House rows satisfy it."""
    id: Any
    name: str
    total_points: int


def compose_custom(title: str, body: str, tag: str = "reminders") -> NotificationPayload:
    return NotificationPayload(title=title, body=body, tag=tag)


def compose_standings(standings: Iterable[Standing], note: str = "") -> NotificationPayload:
    """`standings` must already be sorted by points, highest first."""
    top = list(standings)[:STANDINGS_TOP_N]
    if not top:
        return NotificationPayload(title=STANDINGS_TITLE, body=STANDINGS_FALLBACK, tag="results")
    body = STANDINGS_SEPARATOR.join(
        f"{rank}. {house.name} ({house.total_points} pts)" for rank, house in enumerate(top, start=1)
    )
    if note:
        body = f"{body} — {note}"
    return NotificationPayload(title=STANDINGS_TITLE, body=body, tag="results")


def _capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def compose_event_result(
    standings: Iterable[Standing],
    house_id: Any,
    event: str,
    place: str,
    day: int | str | None = None,
) -> NotificationPayload:
    house = next((h for h in standings if house_id not in (None, "") and h.id == house_id), None)
    decoration = PLACE_DECORATION.get(place, DEFAULT_DECORATION)
    title = f"{decoration} {event} Results" if event else EVENT_RESULT_TITLE_FALLBACK
    if house is None or not place or not event:
        return NotificationPayload(title=title, body=EVENT_RESULT_BODY_FALLBACK, tag="results")
    day_clause = f" (Day {day})" if day not in (None, "") else ""
    body = (
        f"{_capitalize_first(house.name)} takes {place} place in {event}!{day_clause} "
        f"{EVENT_RESULT_CTA}"
    )
    return NotificationPayload(title=title, body=body, tag="results")


def compose(kind: str, fields: dict, standings: Iterable[Standing]) -> NotificationPayload:
    if kind == "custom":
        return compose_custom(fields.get("title", ""), fields.get("body", ""), fields.get("tag") or "reminders")
    if kind == "standings":
        return compose_standings(standings, fields.get("note", ""))
    if kind == "event-result":
        return compose_event_result(
            standings,
            fields.get("house_id"),
            fields.get("event", ""),
            fields.get("place", ""),
            fields.get("day"),
        )
    raise ValueError(f"unknown template: {kind}")


def is_sendable(
    payload: NotificationPayload, kind: str, fields: dict, standings: Iterable[Standing] = ()
) -> bool:
    """Gate applied before any dispatch. An event result needs a winner that is on the board."""
    if not payload.title.strip() or not payload.body.strip():
        return False
    if kind == "event-result":
        house_id = fields.get("house_id")
        if not (fields.get("event") and fields.get("place")) or house_id in (None, ""):
            return False
        return any(h.id == house_id for h in standings)
    return True
