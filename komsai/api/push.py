"""
Push notification API.

Public: subscription save/lookup/delete (called by the browser) and the VAPID public key.
Operator only: subscriber count and listing, compose preview, dispatch.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlmodel import Session

from komsai.api.deps import get_current_operator, get_dispatcher
from komsai.core.config import is_push_configured, settings
from komsai.core.database import get_db
from komsai.models import Operator, PushSubscription
from komsai.schemas import (
    ComposePreview,
    ComposeRequest,
    NotificationPayload,
    SubscriptionIn,
    SubscriptionKeys,
    SubscriptionOut,
    SubscriptionPageOut,
)
from komsai.services import composer, scoring, subscriptions
from komsai.services.push import PushDispatcher, PushNotConfigured

log = logging.getLogger(__name__)

router = APIRouter(prefix="/push", tags=["push"])

MAX_PAGE_SIZE = 200


def _subscription_out(sub: PushSubscription) -> SubscriptionOut:
    return SubscriptionOut(id=sub.id, endpoint=sub.endpoint, keys=SubscriptionKeys(p256dh=sub.p256dh, auth=sub.auth))


async def _dispatch(dispatcher: PushDispatcher, db: Session, payload: NotificationPayload) -> None:
    try:
        await dispatcher.dispatch(db, payload)
    except PushNotConfigured:
        raise HTTPException(status_code=503, detail="Push notifications are not configured (VAPID keys missing).")


@router.get("/vapid-public-key")
def vapid_public_key():
    if not is_push_configured():
        raise HTTPException(status_code=503, detail="Push notifications are not configured (VAPID keys missing).")
    return {"public_key": settings.vapid_public_key}


@router.post("/subscriptions")
def save_subscription(body: SubscriptionIn, db: Session = Depends(get_db)):
    sub_id = subscriptions.upsert(db, body.endpoint, body.keys.model_dump())
    return {"id": sub_id}


@router.get("/subscriptions/lookup", response_model=SubscriptionOut | None)
def lookup_subscription(endpoint: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    sub = subscriptions.find_by_endpoint(db, endpoint)
    return _subscription_out(sub) if sub else None


@router.delete("/subscriptions", status_code=204)
def delete_subscription(endpoint: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    subscriptions.delete_by_endpoint(db, endpoint)
    return Response(status_code=204)


@router.get("/subscriptions/count")
def subscription_count(
    _: Operator = Depends(get_current_operator),
    db: Session = Depends(get_db),
):
    return {"count": subscriptions.count_all(db)}


@router.get("/subscriptions", response_model=SubscriptionPageOut)
def list_subscriptions(
    cursor: str | None = None,
    limit: int = Query(subscriptions.DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    _: Operator = Depends(get_current_operator),
    db: Session = Depends(get_db),
):
    try:
        page = subscriptions.list_page(db, cursor, limit)
    except subscriptions.InvalidCursor:
        raise HTTPException(status_code=400, detail="Invalid cursor.")
    return SubscriptionPageOut(
        items=[_subscription_out(s) for s in page.items],
        next_cursor=page.next_cursor,
        is_done=page.is_done,
    )


@router.post("/send")
async def send_all(
    body: NotificationPayload,
    operator: Operator = Depends(get_current_operator),
    db: Session = Depends(get_db),
    dispatcher: PushDispatcher = Depends(get_dispatcher),
):
    """Raw dispatch: {title, body, tag} to every subscriber."""
    if not composer.is_sendable(body, "custom", {}):
        raise HTTPException(status_code=422, detail="Title and message must not be empty.")
    log.info("push send requested by operator=%s tag=%s", operator.id, body.tag)
    await _dispatch(dispatcher, db, body)
    return {"ok": True}


def _compose(body: ComposeRequest, db: Session) -> ComposePreview:
    fields = body.model_dump(exclude={"kind"})
    standings = scoring.get_leaderboard(db)
    payload = composer.compose(body.kind, fields, standings)
    return ComposePreview(payload=payload, sendable=composer.is_sendable(payload, body.kind, fields, standings))


@router.post("/compose", response_model=ComposePreview)
def compose_preview(
    body: ComposeRequest,
    _: Operator = Depends(get_current_operator),
    db: Session = Depends(get_db),
):
    return _compose(body, db)


@router.post("/compose/send", response_model=ComposePreview)
async def compose_and_send(
    body: ComposeRequest,
    operator: Operator = Depends(get_current_operator),
    db: Session = Depends(get_db),
    dispatcher: PushDispatcher = Depends(get_dispatcher),
):
    preview = _compose(body, db)
    if not preview.sendable:
        raise HTTPException(status_code=422, detail="Notification is incomplete; fill in the required fields.")
    log.info("push %s template sent by operator=%s", body.kind, operator.id)
    await _dispatch(dispatcher, db, preview.payload)
    return preview
