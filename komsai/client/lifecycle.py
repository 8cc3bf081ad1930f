"""
Device-side push subscription lifecycle.

One instance per browser tab / device session. It registers the service worker,
checks the device for an existing push subscription, reconciles it with the
server store (resync when the server lost it) and exposes subscribe/unsubscribe.

The platform (service worker + PushManager + Notification permission) and the
server store are injected; see PushPlatform and SubscriptionStoreClient.
"""
import base64
import enum
import logging
from dataclasses import dataclass
from typing import Any, Protocol

log = logging.getLogger(__name__)

SERVICE_WORKER_URL = "/sw.js"
# Uncompressed P-256 point: 0x04 || X || Y
APPLICATION_SERVER_KEY_LENGTH = 65


class _Loading:
    """Store query issued, answer not in yet."""

    def __repr__(self) -> str:
        return "LOADING"


LOADING: Any = _Loading()
# Device check not finished
UNKNOWN: Any = object()


class Status(str, enum.Enum):
    CHECKING = "checking"
    IDLE = "idle"
    SUBSCRIBED = "subscribed"
    DENIED = "denied"


class ResyncStatus(str, enum.Enum):
    IDLE = "idle"
    RESYNCING = "resyncing"
    FAILED = "failed"


@dataclass
class DeviceSubscription:
    endpoint: str
    p256dh: str | None = None
    auth: str | None = None

    def keys(self) -> dict | None:
        if not (self.p256dh and self.auth):
            return None
        return {"p256dh": self.p256dh, "auth": self.auth}


class PushPlatform(Protocol):
    def supports_push(self) -> bool: ...

    def permission(self) -> str:
        """One of default, granted, denied (Notification.permission)."""
        ...

    async def register_worker(self, script_url: str) -> None: ...

    async def get_subscription(self) -> DeviceSubscription | None: ...

    async def request_permission(self) -> str: ...

    async def subscribe(self, application_server_key: bytes) -> DeviceSubscription: ...

    async def unsubscribe(self) -> bool: ...


class SubscriptionStoreClient(Protocol):
    async def upsert(self, endpoint: str, keys: dict) -> int: ...

    async def find_by_endpoint(self, endpoint: str) -> dict | None: ...

    async def delete_by_endpoint(self, endpoint: str) -> None: ...


def url_base64_to_bytes(value: str) -> bytes:
    """VAPID public key (URL-safe base64, padding optional) to the raw key bytes."""
    padded = value.strip() + "=" * (-len(value.strip()) % 4)
    raw = base64.urlsafe_b64decode(padded)
    if len(raw) != APPLICATION_SERVER_KEY_LENGTH:
        raise ValueError(f"application server key must be {APPLICATION_SERVER_KEY_LENGTH} bytes, got {len(raw)}")
    return raw


class SubscriptionLifecycle:
    def __init__(self, platform: PushPlatform, store: SubscriptionStoreClient, public_key: str):
        self._platform = platform
        self._store = store
        self._public_key = public_key
        # UNKNOWN until mount() finishes, then None or the device endpoint
        self.device_endpoint: Any = UNKNOWN
        # LOADING, None (not on server) or the stored record
        self.server_record: Any = LOADING
        self.resync_status = ResyncStatus.IDLE
        self.busy = False

    @property
    def status(self) -> Status:
        if self.device_endpoint is UNKNOWN:
            return Status.CHECKING
        if self.device_endpoint is None:
            if not self._platform.supports_push() or self._platform.permission() == "denied":
                return Status.DENIED
            return Status.IDLE
        if self.server_record is LOADING:
            return Status.CHECKING
        if self.server_record is not None:
            return Status.SUBSCRIBED
        if self.resync_status is ResyncStatus.RESYNCING:
            return Status.CHECKING
        return Status.IDLE

    async def mount(self) -> Status:
        """Runs once per session."""
        if not self._platform.supports_push():
            self.device_endpoint = None
            return self.status
        try:
            await self._platform.register_worker(SERVICE_WORKER_URL)
            sub = await self._platform.get_subscription()
        except Exception:
            log.exception("service worker registration / subscription check failed")
            sub = None
        self.device_endpoint = sub.endpoint if sub else None
        if self.device_endpoint:
            await self.refresh()
        return self.status

    async def refresh(self) -> None:
        """Re-run the store query for the current device endpoint."""
        endpoint = self.device_endpoint
        if not endpoint or endpoint is UNKNOWN:
            return
        previous = self.server_record
        self.server_record = LOADING
        try:
            record = await self._store.find_by_endpoint(endpoint)
        except Exception:
            # Keep the last known answer; the next refresh tries again
            log.exception("subscription lookup failed")
            if self.server_record is LOADING:
                self.server_record = previous
            return
        await self.on_store_result(endpoint, record)

    async def on_store_result(self, endpoint: str, record: dict | None) -> None:
        """Feed a store query answer (from refresh or a live query callback)."""
        if endpoint != self.device_endpoint:
            return  # answer for an endpoint we no longer hold
        self.server_record = record
        await self._maybe_resync()

    async def _maybe_resync(self) -> None:
        if not self.device_endpoint or self.device_endpoint is UNKNOWN:
            return
        if self.server_record is LOADING or self.server_record is not None:
            return
        if self.resync_status is not ResyncStatus.IDLE:
            return  # one attempt per session; FAILED stays failed

        self.resync_status = ResyncStatus.RESYNCING
        try:
            sub = await self._platform.get_subscription()
        except Exception:
            log.exception("resync: reading device subscription failed")
            sub = None
        keys = sub.keys() if sub else None
        if sub is None or keys is None:
            log.warning("resync: device subscription unavailable, user must subscribe again")
            self.device_endpoint = None
            self.server_record = None
            self.resync_status = ResyncStatus.IDLE
            return
        try:
            record_id = await self._store.upsert(sub.endpoint, keys)
        except Exception:
            log.exception("resync: saving subscription failed")
            self.resync_status = ResyncStatus.FAILED
            return
        self.device_endpoint = sub.endpoint
        self.server_record = {"id": record_id, "endpoint": sub.endpoint, "keys": keys}
        self.resync_status = ResyncStatus.IDLE
        log.info("resync: subscription restored id=%s", record_id)

    async def subscribe(self) -> Status:
        if self.busy:
            return self.status
        self.busy = True
        try:
            permission = await self._platform.request_permission()
            if permission != "granted":
                return self.status
            sub = await self._platform.subscribe(url_base64_to_bytes(self._public_key))
            keys = sub.keys()
            if not sub.endpoint or keys is None:
                log.error("subscribe: device returned a subscription without endpoint or keys")
                return self.status
            record_id = await self._store.upsert(sub.endpoint, keys)
            self.device_endpoint = sub.endpoint
            self.server_record = {"id": record_id, "endpoint": sub.endpoint, "keys": keys}
            self.resync_status = ResyncStatus.IDLE
        except Exception:
            log.exception("subscribe failed")
        finally:
            self.busy = False
        return self.status

    async def unsubscribe(self) -> Status:
        if self.busy or not self.device_endpoint or self.device_endpoint is UNKNOWN:
            return self.status
        self.busy = True
        endpoint = self.device_endpoint
        try:
            sub = await self._platform.get_subscription()
            if sub is None:
                return self.status
            if not await self._platform.unsubscribe():
                log.warning("unsubscribe: device refused to cancel endpoint=%s", endpoint)
                return self.status
            self.device_endpoint = None
            self.server_record = None
            try:
                await self._store.delete_by_endpoint(endpoint)
            except Exception:
                # Server row stays orphaned until cleaned up by hand
                log.exception("unsubscribe: removing server record failed endpoint=%s", endpoint)
        except Exception:
            log.exception("unsubscribe failed")
        finally:
            self.busy = False
        return self.status
