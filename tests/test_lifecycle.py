"""Device-side subscription lifecycle with a fake platform and store."""
import base64

import httpx
import pytest

from komsai.client import (
    DeviceSubscription,
    HttpSubscriptionStore,
    ResyncStatus,
    Status,
    SubscriptionLifecycle,
    url_base64_to_bytes,
)

# 65-byte uncompressed P-256 point, URL-safe base64 without padding
PUBLIC_KEY = base64.urlsafe_b64encode(b"\x04" + bytes(range(64))).rstrip(b"=").decode()
ENDPOINT = "https://fcm.googleapis.com/fcm/send/device-a"


class FakePlatform:
    def __init__(self, subscription=None, supported=True, permission="default", grant="granted", cancels=True):
        self.subscription = subscription
        self.cancels = cancels
        self.supported = supported
        self._permission = permission
        self.grant = grant
        self.events = []
        self.subscribe_keys = []

    def supports_push(self):
        return self.supported

    def permission(self):
        return self._permission

    async def register_worker(self, script_url):
        self.events.append(("register", script_url))

    async def get_subscription(self):
        return self.subscription

    async def request_permission(self):
        self._permission = self.grant
        return self.grant

    async def subscribe(self, application_server_key):
        self.subscribe_keys.append(application_server_key)
        self.subscription = DeviceSubscription(ENDPOINT, "p256dh-key", "auth-secret")
        return self.subscription

    async def unsubscribe(self):
        self.events.append(("device-unsubscribe", self.subscription.endpoint))
        if not self.cancels:
            return False
        self.subscription = None
        return True


class FakeStore:
    def __init__(self, records=None, fail_upsert=False, fail_delete=False, fail_find=False):
        self.fail_find = fail_find
        self.records = dict(records or {})
        self.fail_upsert = fail_upsert
        self.fail_delete = fail_delete
        self.upserts = []
        self.events = []
        self._next_id = 1

    async def upsert(self, endpoint, keys):
        self.upserts.append(endpoint)
        if self.fail_upsert:
            raise ConnectionError("store unavailable")
        if endpoint not in self.records:
            self.records[endpoint] = {"id": self._next_id, "endpoint": endpoint, "keys": keys}
            self._next_id += 1
        return self.records[endpoint]["id"]

    async def find_by_endpoint(self, endpoint):
        if self.fail_find:
            raise ConnectionError("store unavailable")
        return self.records.get(endpoint)

    async def delete_by_endpoint(self, endpoint):
        self.events.append(("store-delete", endpoint))
        if self.fail_delete:
            raise ConnectionError("store unavailable")
        self.records.pop(endpoint, None)


def _device():
    return DeviceSubscription(ENDPOINT, "p256dh-key", "auth-secret")


def test_status_before_mount_is_checking():
    lifecycle = SubscriptionLifecycle(FakePlatform(), FakeStore(), PUBLIC_KEY)
    assert lifecycle.status is Status.CHECKING


@pytest.mark.asyncio
async def test_mount_without_subscription_is_idle():
    platform = FakePlatform()
    lifecycle = SubscriptionLifecycle(platform, FakeStore(), PUBLIC_KEY)
    assert await lifecycle.mount() is Status.IDLE
    assert platform.events == [("register", "/sw.js")]


@pytest.mark.asyncio
async def test_mount_unsupported_is_denied():
    platform = FakePlatform(supported=False)
    lifecycle = SubscriptionLifecycle(platform, FakeStore(), PUBLIC_KEY)
    assert await lifecycle.mount() is Status.DENIED
    assert platform.events == []


@pytest.mark.asyncio
async def test_mount_permission_denied():
    lifecycle = SubscriptionLifecycle(FakePlatform(permission="denied"), FakeStore(), PUBLIC_KEY)
    assert await lifecycle.mount() is Status.DENIED


@pytest.mark.asyncio
async def test_mount_with_stored_subscription_is_subscribed():
    store = FakeStore(records={ENDPOINT: {"id": 7, "endpoint": ENDPOINT, "keys": {}}})
    lifecycle = SubscriptionLifecycle(FakePlatform(subscription=_device()), store, PUBLIC_KEY)
    assert await lifecycle.mount() is Status.SUBSCRIBED
    assert store.upserts == []


@pytest.mark.asyncio
async def test_resync_restores_missing_server_record():
    store = FakeStore()
    lifecycle = SubscriptionLifecycle(FakePlatform(subscription=_device()), store, PUBLIC_KEY)
    assert await lifecycle.mount() is Status.SUBSCRIBED
    assert store.upserts == [ENDPOINT]
    assert lifecycle.server_record["id"] == 1
    assert lifecycle.resync_status is ResyncStatus.IDLE


@pytest.mark.asyncio
async def test_resync_failure_settles_without_retrying():
    store = FakeStore(fail_upsert=True)
    lifecycle = SubscriptionLifecycle(FakePlatform(subscription=_device()), store, PUBLIC_KEY)
    assert await lifecycle.mount() is Status.IDLE
    assert lifecycle.resync_status is ResyncStatus.FAILED

    # Another "not found" answer must not trigger a second attempt
    await lifecycle.on_store_result(ENDPOINT, None)
    await lifecycle.refresh()
    assert store.upserts == [ENDPOINT]
    assert lifecycle.status is Status.IDLE


@pytest.mark.asyncio
async def test_resync_without_keys_falls_back_to_idle():
    platform = FakePlatform(subscription=DeviceSubscription(ENDPOINT))
    store = FakeStore()
    lifecycle = SubscriptionLifecycle(platform, store, PUBLIC_KEY)
    assert await lifecycle.mount() is Status.IDLE
    assert lifecycle.device_endpoint is None
    assert store.upserts == []


@pytest.mark.asyncio
async def test_stale_store_answer_ignored():
    lifecycle = SubscriptionLifecycle(FakePlatform(), FakeStore(), PUBLIC_KEY)
    await lifecycle.mount()
    await lifecycle.on_store_result("https://other.example/endpoint", {"id": 3})
    assert lifecycle.status is Status.IDLE


@pytest.mark.asyncio
async def test_subscribe_saves_to_store():
    platform = FakePlatform()
    store = FakeStore()
    lifecycle = SubscriptionLifecycle(platform, store, PUBLIC_KEY)
    await lifecycle.mount()
    assert await lifecycle.subscribe() is Status.SUBSCRIBED
    assert platform.subscribe_keys == [url_base64_to_bytes(PUBLIC_KEY)]
    assert store.records[ENDPOINT]["keys"] == {"p256dh": "p256dh-key", "auth": "auth-secret"}
    assert lifecycle.busy is False


@pytest.mark.asyncio
async def test_subscribe_permission_refused():
    platform = FakePlatform(grant="denied")
    store = FakeStore()
    lifecycle = SubscriptionLifecycle(platform, store, PUBLIC_KEY)
    await lifecycle.mount()
    assert await lifecycle.subscribe() is Status.DENIED
    assert platform.subscribe_keys == []
    assert store.upserts == []


@pytest.mark.asyncio
async def test_subscribe_store_failure_is_not_subscribed():
    lifecycle = SubscriptionLifecycle(FakePlatform(), FakeStore(fail_upsert=True), PUBLIC_KEY)
    await lifecycle.mount()
    assert await lifecycle.subscribe() is Status.IDLE
    assert lifecycle.busy is False


@pytest.mark.asyncio
async def test_subscribe_ignored_while_busy():
    platform = FakePlatform()
    lifecycle = SubscriptionLifecycle(platform, FakeStore(), PUBLIC_KEY)
    await lifecycle.mount()
    lifecycle.busy = True
    await lifecycle.subscribe()
    assert platform.subscribe_keys == []


@pytest.mark.asyncio
async def test_unsubscribe_cancels_device_then_store():
    platform = FakePlatform(subscription=_device())
    store = FakeStore(records={ENDPOINT: {"id": 1, "endpoint": ENDPOINT, "keys": {}}})
    lifecycle = SubscriptionLifecycle(platform, store, PUBLIC_KEY)
    await lifecycle.mount()

    order = []
    platform.events = order
    store.events = order
    assert await lifecycle.unsubscribe() is Status.IDLE
    assert order == [("device-unsubscribe", ENDPOINT), ("store-delete", ENDPOINT)]
    assert ENDPOINT not in store.records


@pytest.mark.asyncio
async def test_unsubscribe_store_failure_still_idle():
    platform = FakePlatform(subscription=_device())
    store = FakeStore(records={ENDPOINT: {"id": 1, "endpoint": ENDPOINT, "keys": {}}}, fail_delete=True)
    lifecycle = SubscriptionLifecycle(platform, store, PUBLIC_KEY)
    await lifecycle.mount()
    assert await lifecycle.unsubscribe() is Status.IDLE
    assert platform.subscription is None
    # Server row is left behind
    assert ENDPOINT in store.records


@pytest.mark.asyncio
async def test_unsubscribe_refused_by_device_keeps_subscription():
    platform = FakePlatform(subscription=_device(), cancels=False)
    store = FakeStore(records={ENDPOINT: {"id": 1, "endpoint": ENDPOINT, "keys": {}}})
    lifecycle = SubscriptionLifecycle(platform, store, PUBLIC_KEY)
    await lifecycle.mount()
    assert await lifecycle.unsubscribe() is Status.SUBSCRIBED
    assert lifecycle.device_endpoint == ENDPOINT
    assert ENDPOINT in store.records
    assert ("store-delete", ENDPOINT) not in store.events
    assert lifecycle.busy is False


@pytest.mark.asyncio
async def test_lookup_failure_keeps_subscribed_status():
    store = FakeStore(records={ENDPOINT: {"id": 7, "endpoint": ENDPOINT, "keys": {}}})
    lifecycle = SubscriptionLifecycle(FakePlatform(subscription=_device()), store, PUBLIC_KEY)
    assert await lifecycle.mount() is Status.SUBSCRIBED
    store.fail_find = True
    await lifecycle.refresh()
    assert lifecycle.status is Status.SUBSCRIBED
    assert lifecycle.server_record["id"] == 7
    assert store.upserts == []


@pytest.mark.asyncio
async def test_lookup_failure_on_mount_stays_checking():
    lifecycle = SubscriptionLifecycle(FakePlatform(subscription=_device()), FakeStore(fail_find=True), PUBLIC_KEY)
    assert await lifecycle.mount() is Status.CHECKING

def test_public_key_must_be_65_bytes():
    with pytest.raises(ValueError):
        url_base64_to_bytes(base64.urlsafe_b64encode(b"\x04" * 10).decode())
    assert len(url_base64_to_bytes(PUBLIC_KEY)) == 65


@pytest.mark.asyncio
async def test_http_store_talks_to_push_api():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.url.params.get("endpoint")))
        if request.method == "POST":
            return httpx.Response(200, json={"id": 11})
        if request.url.path.endswith("/lookup"):
            return httpx.Response(200, content=b"null", headers={"content-type": "application/json"})
        if request.url.path.endswith("/vapid-public-key"):
            return httpx.Response(200, json={"public_key": PUBLIC_KEY})
        return httpx.Response(204)

    async with HttpSubscriptionStore("http://cup.test/", transport=httpx.MockTransport(handler)) as store:
        assert await store.upsert(ENDPOINT, {"p256dh": "a", "auth": "b"}) == 11
        assert await store.find_by_endpoint(ENDPOINT) is None
        await store.delete_by_endpoint(ENDPOINT)
        assert await store.fetch_public_key() == PUBLIC_KEY

    assert seen == [
        ("POST", "/push/subscriptions", None),
        ("GET", "/push/subscriptions/lookup", ENDPOINT),
        ("DELETE", "/push/subscriptions", ENDPOINT),
        ("GET", "/push/vapid-public-key", None),
    ]
