"""Pull reconciler: folds server-side changes into the local mirror."""

import logging
from dataclasses import dataclass, field

import httpx

from babytrack.offline.api import SyncApiClient
from babytrack.offline.store import LocalStore
from babytrack.schemas.sync import SyncPullResponse

logger = logging.getLogger(__name__)

# Upper bound on pages per pull_all() so a misbehaving server cannot spin us
MAX_PAGES = 100


@dataclass
class PullResult:
    applied: int = 0
    skipped: int = 0
    pages: int = 0
    server_time: str | None = None
    has_more: bool = False
    error: str | None = None


@dataclass
class PullPage:
    events: list[dict] = field(default_factory=list)
    server_time: str | None = None
    has_more: bool = False


class PullReconciler:
    def __init__(self, store: LocalStore, api: SyncApiClient):
        self.store = store
        self.api = api

    async def fetch(self, last_sync: str | None = None) -> PullPage:
        """One pull request.

        Transport failures propagate as httpx errors, a reply that is not a
        pull page as pydantic.ValidationError.
        """
        reply = SyncPullResponse.model_validate(
            await self.api.pull(last_sync, client_id=self.store.client_id)
        )
        return PullPage(
            events=reply.events,
            server_time=reply.server_time,
            has_more=reply.has_more,
        )

    async def apply_events(self, events: list[dict]) -> tuple[int, int]:
        """Apply pulled events in order. One bad event never stops the rest."""
        applied = skipped = 0
        for event in events:
            try:
                ok = await self.store.apply_server_event(event)
            except Exception:
                event_id = event.get("id") if isinstance(event, dict) else None
                logger.exception("Failed to apply pulled event %s", event_id)
                ok = False
            if ok:
                applied += 1
            else:
                skipped += 1
        return applied, skipped

    async def pull(self, last_sync: str | None = None) -> PullResult:
        """Fetch and apply a single page starting at ``last_sync``."""
        page = await self.fetch(last_sync)
        applied, skipped = await self.apply_events(page.events)
        return PullResult(
            applied=applied,
            skipped=skipped,
            pages=1,
            server_time=page.server_time,
            has_more=page.has_more,
        )

    async def pull_all(self) -> PullResult:
        """Pull from the stored checkpoint until the server has nothing more.

        The checkpoint advances after every applied page; a transport
        failure ends the run and leaves it where it was.
        """
        result = PullResult()
        checkpoint = await self.store.get_checkpoint()

        while result.pages < MAX_PAGES:
            try:
                page = await self.pull(checkpoint)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Pull from server failed: %s", exc)
                result.error = str(exc) or type(exc).__name__
                break

            result.pages += 1
            result.applied += page.applied
            result.skipped += page.skipped
            result.has_more = page.has_more
            if page.server_time:
                checkpoint = page.server_time
                result.server_time = checkpoint
                await self.store.set_checkpoint(checkpoint)
            if not page.has_more:
                break

        logger.info(
            "Pull finished: %d applied, %d skipped over %d page(s)",
            result.applied, result.skipped, result.pages,
        )
        return result
