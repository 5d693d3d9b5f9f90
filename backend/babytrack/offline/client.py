"""Device-side entry point tying the local store to the sync server."""

import logging
from dataclasses import dataclass

import httpx

from babytrack.offline.api import SyncApiClient
from babytrack.offline.pull import PullReconciler, PullResult
from babytrack.offline.push import PushResult, PushSynchronizer
from babytrack.offline.store import LocalStore

logger = logging.getLogger(__name__)


@dataclass
class FullSyncResult:
    push: PushResult
    pull: PullResult


class SyncClient:
    """Bundles the local store, API client, push synchronizer and pull reconciler.

    When to sync (button, reconnect, timer) is up to the caller.
    """

    def __init__(self, store: LocalStore, api: SyncApiClient, max_retries: int | None = None):
        self.store = store
        self.api = api
        self.pusher = PushSynchronizer(store, api, max_retries=max_retries)
        self.puller = PullReconciler(store, api)

    @classmethod
    async def open(
        cls,
        local_url: str | None = None,
        client_id: str | None = None,
        api: SyncApiClient | None = None,
        **engine_kwargs,
    ) -> "SyncClient":
        store = await LocalStore.open(local_url, client_id=client_id, **engine_kwargs)
        return cls(store, api or SyncApiClient())

    async def close(self) -> None:
        await self.store.close()

    async def push(self) -> PushResult:
        return await self.pusher.run()

    async def pull(self) -> PullResult:
        return await self.puller.pull_all()

    async def full_sync(self) -> FullSyncResult:
        """Push local changes first, then pull everything newer than the checkpoint."""
        pushed = await self.push()
        pulled = await self.pull()
        return FullSyncResult(push=pushed, pull=pulled)

    async def server_status(self) -> dict | None:
        try:
            return await self.api.status()
        except httpx.HTTPError as exc:
            logger.warning("Could not fetch sync status: %s", exc)
            return None
