"""
Push subscription store: idempotent upsert, lookup/delete by endpoint, count and
keyset pagination for the fan-out scan.

Authorization is not checked here; routes that expose subscribers do it first.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from komsai.models import PushSubscription

log = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class InvalidCursor(ValueError):
    """Cursor not produced by list_page."""


@dataclass
class SubscriptionPage:
    items: list[PushSubscription] = field(default_factory=list)
    next_cursor: str | None = None
    is_done: bool = True


def find_by_endpoint(db: Session, endpoint: str) -> PushSubscription | None:
    return db.exec(select(PushSubscription).where(PushSubscription.endpoint == endpoint)).first()


def upsert(db: Session, endpoint: str, keys: dict) -> int:
    """
    Store (endpoint, keys) once. An existing endpoint keeps its id and its keys;
    a resubscribe from the same browser is therefore a no-op.
    """
    existing = find_by_endpoint(db, endpoint)
    if existing:
        return existing.id
    sub = PushSubscription(endpoint=endpoint, p256dh=keys["p256dh"], auth=keys["auth"])
    db.add(sub)
    try:
        db.commit()
    except IntegrityError:
        # Another session inserted the same endpoint between our read and write
        db.rollback()
        existing = find_by_endpoint(db, endpoint)
        if existing is None:
            raise
        return existing.id
    db.refresh(sub)
    log.info("push subscription stored id=%s", sub.id)
    return sub.id


def delete_by_endpoint(db: Session, endpoint: str) -> None:
    sub = find_by_endpoint(db, endpoint)
    if sub is None:
        return
    db.delete(sub)
    db.commit()
    log.info("push subscription removed id=%s", sub.id)


def count_all(db: Session) -> int:
    return db.exec(select(func.count(PushSubscription.id))).one() or 0


def _decode_cursor(cursor: str | None) -> int:
    if cursor is None or cursor == "":
        return 0
    try:
        last_id = int(cursor)
    except ValueError:
        raise InvalidCursor(cursor) from None
    if last_id < 0:
        raise InvalidCursor(cursor)
    return last_id


def list_page(db: Session, cursor: str | None = None, page_size: int = DEFAULT_PAGE_SIZE) -> SubscriptionPage:
    """
    One page ordered by id. Feed next_cursor back in until is_done.
    Rows inserted or deleted during a scan may or may not be seen.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")
    after_id = _decode_cursor(cursor)
    # One extra row tells us whether another page exists
    rows = list(
        db.exec(
            select(PushSubscription)
            .where(PushSubscription.id > after_id)
            .order_by(PushSubscription.id)
            .limit(page_size + 1)
        ).all()
    )
    items = rows[:page_size]
    is_done = len(rows) <= page_size
    next_cursor = str(items[-1].id) if items else cursor
    return SubscriptionPage(items=items, next_cursor=next_cursor, is_done=is_done)
