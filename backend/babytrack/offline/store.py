"""Local transactional store: domain mirrors plus the mutation queue.

Two commits move a change through the device:

1. ``record()`` applies the change to the local mirror and enqueues its
   event in one transaction (``pending_sync`` becomes true).
2. ``confirm()`` runs after the server accepted the event: it marks the
   record synced and dequeues the event, again in one transaction.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from babytrack.config import settings
from babytrack.database import build_engine
from babytrack.models.enums import EntityType, SyncAction
from babytrack.offline.models import (
    LOCAL_MODELS,
    IdMapping,
    LocalBase,
    PendingEvent,
    SyncCheckpoint,
)
from babytrack.offline.queue import MutationQueue

logger = logging.getLogger(__name__)

CHECKPOINT_KEY = "last_pull"
CLIENT_ID_KEY = "client_id"

# Actions each entity type accepts. Mirrors what the server can replay.
SUPPORTED_ACTIONS: dict[EntityType, frozenset[SyncAction]] = {
    entity_type: frozenset({SyncAction.CREATE, SyncAction.UPDATE, SyncAction.DELETE})
    for entity_type in EntityType
}
SUPPORTED_ACTIONS[EntityType.MEDICATION] = frozenset(
    {SyncAction.CREATE, SyncAction.UPDATE, SyncAction.DELETE, SyncAction.DEACTIVATE}
)
SUPPORTED_ACTIONS[EntityType.MEDICATION_LOG] = frozenset({SyncAction.CREATE})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _child_id(data: dict | None) -> str | None:
    value = (data or {}).get("child_id")
    return str(value) if value else None


async def _read_setting(session: AsyncSession, key: str) -> str | None:
    row = await session.get(SyncCheckpoint, key)
    return row.value if row else None


class LocalStore:
    def __init__(self, engine: AsyncEngine, client_id: str):
        self.engine = engine
        self.sessions = async_sessionmaker(engine, expire_on_commit=False)
        self.client_id = client_id
        self.queue = MutationQueue(self.sessions, client_id)

    @classmethod
    async def open(
        cls,
        url: str | None = None,
        client_id: str | None = None,
        **engine_kwargs,
    ) -> "LocalStore":
        """Create the local tables if needed and settle this device's client id.

        A generated client id is persisted so it survives restarts.
        """
        engine = build_engine(url or settings.LOCAL_DATABASE_URL, **engine_kwargs)
        async with engine.begin() as conn:
            await conn.run_sync(LocalBase.metadata.create_all)

        sessions = async_sessionmaker(engine, expire_on_commit=False)
        async with sessions.begin() as session:
            stored = await _read_setting(session, CLIENT_ID_KEY)
            resolved = client_id or settings.SYNC_CLIENT_ID or stored or str(uuid.uuid4())
            if resolved != stored:
                await session.merge(SyncCheckpoint(key=CLIENT_ID_KEY, value=resolved))
        return cls(engine, resolved)

    async def close(self) -> None:
        await self.engine.dispose()

    # ------------------------------------------------------------------
    # Commit 1: optimistic local mutation + enqueue
    # ------------------------------------------------------------------

    async def record(
        self,
        entity_type: EntityType | str,
        action: SyncAction | str,
        entity_id: str | None = None,
        payload: dict | None = None,
    ) -> str:
        """Apply a user's change locally and queue it for the server.

        Returns the id of the affected local record (a fresh placeholder for
        creates). Raises ValueError for an unsupported type/action pair or an
        update/deactivate of a record that does not exist locally.
        """
        entity_type = EntityType(entity_type)
        action = SyncAction(action)
        if action not in SUPPORTED_ACTIONS[entity_type]:
            raise ValueError(f"{entity_type.value} does not support {action.value}")
        if action != SyncAction.CREATE and not entity_id:
            raise ValueError(f"entity_id is required for {action.value}")

        model = LOCAL_MODELS[entity_type]
        async with self.sessions.begin() as session:
            if action == SyncAction.CREATE:
                local_id = str(uuid.uuid4())
                session.add(model(
                    id=local_id,
                    child_id=_child_id(payload),
                    data=dict(payload or {}),
                    pending_sync=True,
                ))
                await self.queue.enqueue(
                    entity_type.value, action.value, None, payload,
                    local_id=local_id, session=session,
                )
                return local_id

            record = await session.get(model, entity_id)
            if action == SyncAction.DELETE:
                # Optimistic: gone locally now, retried against the server later
                if record is not None:
                    await session.delete(record)
                await self.queue.enqueue(
                    entity_type.value, action.value, entity_id, None, session=session,
                )
                return entity_id

            if record is None:
                raise ValueError(f"{entity_type.value} {entity_id} not found locally")
            if action == SyncAction.DEACTIVATE:
                record.data = {**record.data, "active": False}
                payload = None
            else:
                record.data = dict(payload or {})
                record.child_id = _child_id(payload) or record.child_id
            record.pending_sync = True
            await self.queue.enqueue(
                entity_type.value, action.value, entity_id, payload, session=session,
            )
            return entity_id

    # ------------------------------------------------------------------
    # Commit 2: server confirmation + dequeue
    # ------------------------------------------------------------------

    async def resolve_entity_id(self, entity_id: str) -> str:
        """Translate a create's placeholder id to its server id, if known."""
        async with self.sessions() as session:
            mapping = await session.get(IdMapping, entity_id)
        return mapping.server_id if mapping else entity_id

    async def confirm(self, event: PendingEvent, server_id: str | None = None) -> str | None:
        """Mark the event's record synced and drop the event, atomically.

        For a create, ``server_id`` is the id the server assigned: the local
        placeholder record is renamed and the mapping remembered so events
        queued against the placeholder still reach the right entity.
        """
        entity_type = EntityType(event.entity_type)
        model = LOCAL_MODELS[entity_type]

        async with self.sessions.begin() as session:
            if event.action == SyncAction.CREATE.value:
                target = event.local_id
                if server_id and event.local_id and server_id != event.local_id:
                    session.add(IdMapping(
                        local_id=event.local_id,
                        entity_type=event.entity_type,
                        server_id=server_id,
                    ))
                    if await session.get(model, server_id) is not None:
                        # A pull already brought the server copy; it wins
                        await session.execute(delete(model).where(model.id == event.local_id))
                    else:
                        await session.execute(
                            update(model).where(model.id == event.local_id).values(id=server_id)
                        )
                    target = server_id
            else:
                mapping = await session.get(IdMapping, event.entity_id) if event.entity_id else None
                target = mapping.server_id if mapping else event.entity_id

            aliases = {target, event.local_id, event.entity_id}
            await self.mark_entity_as_synced(
                session, model, target, aliases, exclude_event_id=event.id,
            )
            await self.queue.remove(event.id, session=session)
        return target

    async def mark_entity_as_synced(
        self,
        session: AsyncSession,
        model: type,
        entity_id: str | None,
        aliases: set[str | None],
        *,
        exclude_event_id: str | None = None,
    ) -> None:
        """Clear ``pending_sync`` unless another queued event still targets the record."""
        if not entity_id:
            return
        if await self.queue.has_pending_for(
            [a for a in aliases if a], exclude_event_id=exclude_event_id, session=session,
        ):
            return
        await session.execute(
            update(model)
            .where(model.id == entity_id)
            .values(pending_sync=False, synced_at=_utcnow())
        )

    # ------------------------------------------------------------------
    # Pull side
    # ------------------------------------------------------------------

    async def apply_server_event(self, event: dict) -> bool:
        """Fold one pulled event into the local mirror.

        create/update replace the whole record (last writer wins), delete
        removes it and tolerates an already-absent record. Returns False
        when the event was skipped: unknown type or action, missing id, or
        the record still has local changes waiting to be pushed.
        """
        try:
            entity_type = EntityType(event.get("type"))
            action = SyncAction(event.get("action"))
        except ValueError:
            logger.info(
                "Skipping pulled event %s with unknown type/action %s/%s",
                event.get("id"), event.get("type"), event.get("action"),
            )
            return False

        entity_id = event.get("entity_id")
        if not entity_id:
            logger.info("Skipping pulled event %s without entity_id", event.get("id"))
            return False

        model = LOCAL_MODELS[entity_type]
        async with self.sessions.begin() as session:
            local_ids = (await session.execute(
                select(IdMapping.local_id).where(IdMapping.server_id == entity_id)
            )).scalars().all()
            if await self.queue.has_pending_for([entity_id, *local_ids], session=session):
                logger.info(
                    "Skipping pulled %s for %s %s: local changes pending",
                    action.value, entity_type.value, entity_id,
                )
                return False

            if action == SyncAction.DELETE:
                await session.execute(delete(model).where(model.id == entity_id))
            elif action in (SyncAction.CREATE, SyncAction.UPDATE):
                data = {**(event.get("data") or {}), "id": entity_id}
                await session.merge(model(
                    id=entity_id,
                    child_id=_child_id(data),
                    data=data,
                    pending_sync=False,
                    synced_at=_utcnow(),
                ))
            else:
                logger.info(
                    "Skipping pulled event %s: %s is not replayed locally",
                    event.get("id"), action.value,
                )
                return False
        return True

    async def get_checkpoint(self) -> str | None:
        async with self.sessions() as session:
            return await _read_setting(session, CHECKPOINT_KEY)

    async def set_checkpoint(self, server_time: str) -> None:
        async with self.sessions.begin() as session:
            await session.merge(SyncCheckpoint(key=CHECKPOINT_KEY, value=server_time))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, entity_type: EntityType | str, entity_id: str):
        model = LOCAL_MODELS[EntityType(entity_type)]
        async with self.sessions() as session:
            return await session.get(model, entity_id)

    async def list_records(self, entity_type: EntityType | str, child_id: str | None = None) -> list:
        model = LOCAL_MODELS[EntityType(entity_type)]
        query = select(model)
        if child_id is not None:
            query = query.where(model.child_id == child_id)
        async with self.sessions() as session:
            result = await session.execute(query.order_by(model.updated_at.desc()))
            return list(result.scalars().all())

    async def pending_count(self) -> int:
        return await self.queue.count()

    async def failed_events(self, max_retries: int | None = None) -> list[PendingEvent]:
        return await self.queue.exhausted(max_retries or settings.SYNC_MAX_RETRIES)
