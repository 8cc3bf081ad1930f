"""HTTP adapter for SubscriptionStoreClient, talking to this service's /push API."""
from __future__ import annotations

import httpx


class HttpSubscriptionStore:
    def __init__(self, base_url: str, request_timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._request_timeout),
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpSubscriptionStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("HttpSubscriptionStore is not open")
        return self._client

    async def upsert(self, endpoint: str, keys: dict) -> int:
        resp = await self._http().post("/push/subscriptions", json={"endpoint": endpoint, "keys": keys})
        resp.raise_for_status()
        return resp.json()["id"]

    async def find_by_endpoint(self, endpoint: str) -> dict | None:
        resp = await self._http().get("/push/subscriptions/lookup", params={"endpoint": endpoint})
        resp.raise_for_status()
        return resp.json()

    async def delete_by_endpoint(self, endpoint: str) -> None:
        resp = await self._http().delete("/push/subscriptions", params={"endpoint": endpoint})
        resp.raise_for_status()

    async def fetch_public_key(self) -> str:
        resp = await self._http().get("/push/vapid-public-key")
        resp.raise_for_status()
        return resp.json()["public_key"]
