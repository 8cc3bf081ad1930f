"""
Web Push fan-out: one notification to every stored subscription.

Subscriptions are read page by page; deliveries within a page run concurrently
(pywebpush is blocking, so each one gets a worker thread) and the page is joined
before the next one is fetched, which caps in-flight requests at the page size.
A failed delivery is logged and skipped; a failed page read aborts the dispatch.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Callable

from pywebpush import WebPushException, webpush
from sqlmodel import Session

from komsai.core.config import Settings
from komsai.models import PushSubscription
from komsai.schemas.push import NotificationPayload
from komsai.services import subscriptions

log = logging.getLogger(__name__)

# Push services answer 404/410 for endpoints the browser has dropped
GONE_STATUSES = (404, 410)


class PushNotConfigured(RuntimeError):
    """VAPID key pair missing from settings."""


@dataclass(frozen=True)
class VapidCredentials:
    private_key: str
    subject: str

    def claims(self) -> dict:
        # pywebpush writes "aud"/"exp" into the dict it is given, so each push gets its own
        return {"sub": self.subject}


def load_vapid(settings: Settings) -> VapidCredentials:
    if not (settings.vapid_public_key and settings.vapid_private_key):
        raise PushNotConfigured("VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY are not set")
    return VapidCredentials(private_key=settings.vapid_private_key, subject=settings.vapid_subject)


def serialize_payload(payload: NotificationPayload, icon: str, badge: str) -> str:
    """JSON read by static/sw.js in its push handler."""
    return json.dumps(
        {
            "title": payload.title,
            "body": payload.body,
            "icon": icon,
            "badge": badge,
            "tag": payload.tag,
        }
    )


def _status_of(exc: BaseException) -> int | None:
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None)


class PushDispatcher:
    """Created once at startup and shared; holds no per-dispatch state."""

    def __init__(
        self,
        settings: Settings,
        sender: Callable[..., object] = webpush,
        page_size: int | None = None,
    ):
        self._settings = settings
        self._sender = sender
        self._page_size = page_size or settings.push_batch_size

    @property
    def page_size(self) -> int:
        return self._page_size

    def _deliver(self, subscription_info: dict, data: str, vapid: VapidCredentials) -> None:
        self._sender(
            subscription_info=subscription_info,
            data=data,
            vapid_private_key=vapid.private_key,
            vapid_claims=vapid.claims(),
            timeout=self._settings.push_request_timeout,
        )

    async def _deliver_page(self, page: list[PushSubscription], data: str, vapid: VapidCredentials) -> int:
        """Returns how many deliveries failed."""
        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self._deliver, sub.subscription_info(), data, vapid) for sub in page),
            return_exceptions=True,
        )
        failed = 0
        for sub, outcome in zip(page, outcomes):
            if not isinstance(outcome, BaseException):
                continue
            failed += 1
            status = _status_of(outcome)
            if isinstance(outcome, WebPushException) and status in GONE_STATUSES:
                log.warning("push endpoint gone status=%s endpoint=%s", status, sub.endpoint)
            else:
                log.error(
                    "push delivery failed endpoint=%s error=%s",
                    sub.endpoint,
                    outcome,
                    exc_info=(type(outcome), outcome, outcome.__traceback__),
                )
        return failed

    async def dispatch(self, db: Session, payload: NotificationPayload) -> None:
        vapid = load_vapid(self._settings)
        data = serialize_payload(payload, self._settings.push_icon, self._settings.push_badge)

        cursor: str | None = None
        pages = attempted = failed = 0
        while True:
            # Blocking read in a worker thread, one page at a time
            page = await asyncio.to_thread(subscriptions.list_page, db, cursor, self._page_size)
            pages += 1
            if page.items:
                attempted += len(page.items)
                failed += await self._deliver_page(page.items, data, vapid)
            cursor = page.next_cursor
            if page.is_done:
                break

        log.info(
            "push dispatch finished tag=%s pages=%s attempted=%s delivered=%s failed=%s",
            payload.tag,
            pages,
            attempted,
            attempted - failed,
            failed,
        )
