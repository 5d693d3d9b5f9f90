"""Async HTTP client for the BabyTrack sync endpoints."""

import logging
from typing import Any

import httpx

from babytrack.config import settings

logger = logging.getLogger(__name__)


class SyncApiClient:
    """Thin async wrapper around ``/api/v1/sync``.

    Every call is bounded by ``timeout``; a timeout surfaces as
    ``httpx.TimeoutException`` and is handled by callers like any other
    transport failure. Non-2xx responses raise ``httpx.HTTPStatusError``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.SYNC_SERVER_URL).rstrip("/")
        self.token = token if token is not None else settings.SYNC_API_TOKEN
        self.timeout = timeout if timeout is not None else settings.SYNC_TIMEOUT_SECONDS
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            resp = await client.request(method, f"/api/v1/sync{path}", headers=headers, **kwargs)
            resp.raise_for_status()
            return resp.json()

    async def push(self, client_id: str, events: list[dict[str, Any]]) -> dict[str, Any]:
        """Submit queued events. Returns the server's per-event outcome."""
        return await self._request(
            "POST", "/push", json={"client_id": client_id, "events": events},
        )

    async def pull(
        self,
        last_sync: str | None = None,
        client_id: str | None = None,
    ) -> dict[str, Any]:
        """Fetch server changes recorded after ``last_sync``."""
        params = {}
        if last_sync:
            params["last_sync"] = last_sync
        if client_id:
            params["client_id"] = client_id
        return await self._request("GET", "/pull", params=params)

    async def status(self) -> dict[str, Any]:
        return await self._request("GET", "/status")
