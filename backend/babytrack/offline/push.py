"""Push synchronizer: drains the mutation queue to the server in order."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from babytrack.config import settings
from babytrack.offline.api import SyncApiClient
from babytrack.offline.models import PendingEvent
from babytrack.offline.store import LocalStore
from babytrack.schemas import to_rfc3339
from babytrack.schemas.sync import SyncPushResponse

logger = logging.getLogger(__name__)


class SyncInProgressError(RuntimeError):
    """A push run was requested while another one is still draining the queue."""


class EventRejectedError(Exception):
    """The server answered but listed the event among its failures."""


@dataclass
class PushResult:
    synced: int = 0
    failed: int = 0
    deferred: int = 0


def event_to_wire(event: PendingEvent, entity_id: str | None) -> dict[str, Any]:
    wire: dict[str, Any] = {
        "id": event.id,
        "type": event.entity_type,
        "action": event.action,
        "entity_id": entity_id or "",
        "timestamp": to_rfc3339(event.timestamp),
        "client_id": event.client_id,
    }
    if event.payload is not None:
        wire["data"] = event.payload
    return wire


class PushSynchronizer:
    """Submit queued events one by one, oldest first, and reconcile outcomes.

    An event at or past ``max_retries`` stays queued but is no longer sent.
    Once an event for a record fails in a run, later events for that same
    record wait for the next run so they can never overtake it.
    """

    def __init__(
        self,
        store: LocalStore,
        api: SyncApiClient,
        max_retries: int | None = None,
    ):
        self.store = store
        self.api = api
        self.max_retries = max_retries if max_retries is not None else settings.SYNC_MAX_RETRIES
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run(self) -> PushResult:
        """Drain the queue once. Raises SyncInProgressError if already running."""
        if self._lock.locked():
            raise SyncInProgressError("A push is already in progress")
        async with self._lock:
            return await self._drain()

    async def _drain(self) -> PushResult:
        result = PushResult()
        blocked: set[tuple[str, str | None]] = set()

        for event in await self.store.queue.list():
            key = await self._record_key(event)
            if key in blocked:
                result.deferred += 1
                continue

            if event.retry_count >= self.max_retries:
                logger.warning(
                    "Event %s (%s %s) exhausted %d retries, leaving it queued",
                    event.id, event.entity_type, event.action, event.retry_count,
                )
                result.failed += 1
                blocked.add(key)
                continue

            try:
                server_id = await self._submit(event)
            except (httpx.HTTPError, EventRejectedError, ValueError, KeyError) as exc:
                logger.warning("Failed to sync event %s: %s", event.id, exc)
                await self.store.queue.increment_retry(event.id, error=str(exc) or type(exc).__name__)
                result.failed += 1
                blocked.add(key)
                continue

            try:
                await self.store.confirm(event, server_id)
            except Exception:
                # Server has it; the resubmission next run is acknowledged by receipt
                logger.exception("Failed to record confirmation of event %s", event.id)
                result.failed += 1
                blocked.add(key)
                continue
            result.synced += 1

        logger.info(
            "Push finished: %d synced, %d failed, %d deferred",
            result.synced, result.failed, result.deferred,
        )
        return result

    async def _record_key(self, event: PendingEvent) -> tuple[str, str | None]:
        """Record identity for ordering: a placeholder and its server id share one key."""
        if not event.entity_key:
            return event.entity_type, None
        return event.entity_type, await self.store.resolve_entity_id(event.entity_key)

    async def _submit(self, event: PendingEvent) -> str | None:
        """Send one event. Returns the server-assigned id for a create.

        A reply that is not a push outcome raises pydantic.ValidationError.
        """
        entity_id = None
        if event.entity_id:
            entity_id = await self.store.resolve_entity_id(event.entity_id)

        reply = SyncPushResponse.model_validate(await self.api.push(
            self.store.client_id, [event_to_wire(event, entity_id)],
        ))
        if event.id in (reply.failed_ids or []):
            raise EventRejectedError(f"server rejected event {event.id}")
        return (reply.results or {}).get(event.id)
