"""Durable FIFO queue of local mutations not yet confirmed by the server."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from babytrack.offline.models import PendingEvent

logger = logging.getLogger(__name__)


class MutationQueue:
    """Ordered log of pending events in the local store.

    Every method takes an optional ``session``: pass one to join the
    caller's transaction (the local write and its enqueue must commit
    together), omit it to run in a transaction of its own.
    """

    def __init__(self, sessions: async_sessionmaker[AsyncSession], client_id: str):
        self._sessions = sessions
        self.client_id = client_id

    @asynccontextmanager
    async def _transaction(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if session is not None:
            yield session
            return
        async with self._sessions.begin() as own:
            yield own

    async def enqueue(
        self,
        entity_type: str,
        action: str,
        entity_id: str | None,
        payload: dict | None,
        *,
        local_id: str | None = None,
        session: AsyncSession | None = None,
    ) -> PendingEvent:
        """Append one event with a fresh id, the current time and zero retries."""
        async with self._transaction(session) as s:
            last_seq = (await s.execute(select(func.max(PendingEvent.seq)))).scalar()
            event = PendingEvent(
                id=str(uuid.uuid4()),
                seq=(last_seq or 0) + 1,
                entity_type=entity_type,
                action=action,
                entity_id=entity_id or None,
                local_id=local_id,
                payload=payload,
                timestamp=datetime.now(timezone.utc),
                client_id=self.client_id,
                retry_count=0,
            )
            s.add(event)
            await s.flush()
        logger.debug("Queued %s %s event %s", entity_type, action, event.id)
        return event

    async def list(self, session: AsyncSession | None = None) -> list[PendingEvent]:
        """All queued events, oldest first."""
        async with self._transaction(session) as s:
            result = await s.execute(select(PendingEvent).order_by(PendingEvent.seq))
            return list(result.scalars().all())

    async def get(self, event_id: str, session: AsyncSession | None = None) -> PendingEvent | None:
        async with self._transaction(session) as s:
            return await s.get(PendingEvent, event_id)

    async def remove(self, event_id: str, session: AsyncSession | None = None) -> None:
        """Drop an event. Removing an id that is not queued is a no-op."""
        async with self._transaction(session) as s:
            await s.execute(delete(PendingEvent).where(PendingEvent.id == event_id))

    async def increment_retry(
        self,
        event_id: str,
        error: str | None = None,
        session: AsyncSession | None = None,
    ) -> None:
        """Bump the retry count by exactly one. No-op if the event is gone."""
        async with self._transaction(session) as s:
            values: dict = {"retry_count": PendingEvent.retry_count + 1}
            if error is not None:
                values["last_error"] = error[:500]
            await s.execute(
                update(PendingEvent).where(PendingEvent.id == event_id).values(**values)
            )

    async def clear(self, session: AsyncSession | None = None) -> None:
        async with self._transaction(session) as s:
            await s.execute(delete(PendingEvent))

    async def count(self, session: AsyncSession | None = None) -> int:
        async with self._transaction(session) as s:
            return (await s.execute(select(func.count()).select_from(PendingEvent))).scalar_one()

    async def exhausted(self, max_retries: int, session: AsyncSession | None = None) -> list[PendingEvent]:
        """Events past the retry cap, left for the user to resolve."""
        async with self._transaction(session) as s:
            result = await s.execute(
                select(PendingEvent)
                .where(PendingEvent.retry_count >= max_retries)
                .order_by(PendingEvent.seq)
            )
            return list(result.scalars().all())

    async def has_pending_for(
        self,
        entity_ids: Iterable[str],
        *,
        exclude_event_id: str | None = None,
        session: AsyncSession | None = None,
    ) -> bool:
        """Whether any queued event still targets one of ``entity_ids``."""
        ids = [i for i in entity_ids if i]
        if not ids:
            return False
        async with self._transaction(session) as s:
            query = select(PendingEvent.id).where(
                or_(PendingEvent.entity_id.in_(ids), PendingEvent.local_id.in_(ids))
            )
            if exclude_event_id is not None:
                query = query.where(PendingEvent.id != exclude_event_id)
            return (await s.execute(query.limit(1))).first() is not None
