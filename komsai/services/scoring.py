"""Houses, score entries and the derived leaderboard / per-day breakdown."""
import logging
from collections import defaultdict

from sqlmodel import Session, select

from komsai.models import House, ScoreAction

log = logging.getLogger(__name__)


class UnknownHouse(LookupError):
    pass


def create_house(db: Session, name: str, description: str = "") -> House:
    house = House(name=name.strip(), description=description.strip())
    db.add(house)
    db.commit()
    db.refresh(house)
    return house


def get_leaderboard(db: Session) -> list[House]:
    """Houses by total points, highest first; ties keep creation order."""
    return list(db.exec(select(House).order_by(House.total_points.desc(), House.id)).all())


def add_score(
    db: Session,
    *,
    house_id: int,
    recorded_by: str,
    place: str,
    event: str,
    points: int,
    day: int,
) -> ScoreAction:
    house = db.get(House, house_id)
    if house is None:
        raise UnknownHouse(house_id)
    action = ScoreAction(
        house_id=house_id,
        recorded_by=recorded_by,
        place=place,
        event=event.strip(),
        points=points,
        day=day,
    )
    house.total_points = (house.total_points or 0) + points
    db.add(action)
    db.add(house)
    db.commit()
    db.refresh(action)
    log.info("score recorded house=%s event=%s place=%s points=%s day=%s", house.name, action.event, place, points, day)
    return action


def actions_page(
    db: Session, house_id: int, cursor: str | None = None, limit: int = 20
) -> tuple[list[ScoreAction], str | None, bool]:
    """A house's score entries, newest first. Cursor is the last id seen."""
    stmt = select(ScoreAction).where(ScoreAction.house_id == house_id)
    if cursor:
        stmt = stmt.where(ScoreAction.id < int(cursor))
    rows = list(db.exec(stmt.order_by(ScoreAction.id.desc()).limit(limit + 1)).all())
    items = rows[:limit]
    is_done = len(rows) <= limit
    next_cursor = str(items[-1].id) if items else None
    return items, next_cursor, is_done


def day_breakdown(db: Session, day: int) -> dict:
    events: dict[str, dict[int, int]] = defaultdict(lambda: defaultdict(int))
    for action in db.exec(select(ScoreAction).where(ScoreAction.day == day)).all():
        events[action.event][action.house_id] += action.points
    totals: dict[int, int] = {house.id: 0 for house in db.exec(select(House)).all()}
    for per_house in events.values():
        for house_id, points in per_house.items():
            totals[house_id] = totals.get(house_id, 0) + points
    return {
        "day": day,
        "events": {event: dict(per_house) for event, per_house in events.items()},
        "totals": totals,
    }
