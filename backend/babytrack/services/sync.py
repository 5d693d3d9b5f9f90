"""Offline sync service: replays queued client events and serves pulls."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from babytrack.config import settings
from babytrack.models.enums import SyncAction, SyncDirection
from babytrack.models.sync import ChangeRecord, SyncLog, SyncReceipt
from babytrack.schemas import to_rfc3339
from babytrack.schemas.sync import SyncEvent
from babytrack.services.sync_handlers import Collaborators, resolve_route

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SyncService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.collaborators = Collaborators.for_session(db)

    async def process_push(
        self,
        events: list[SyncEvent],
        user_id: str,
        client_id: str,
    ) -> dict:
        """Apply a batch of client events in order, each in its own savepoint.

        A failing event is rolled back and reported in ``failed_ids``; it never
        stops the events after it. ``results`` maps the event id of every
        applied create to the id the server assigned.
        """
        processed = 0
        failed_ids: list[str] = []
        results: dict[str, str] = {}

        for event in events:
            try:
                async with self.db.begin_nested():
                    entity_id = await self._apply_event(event, user_id, client_id)
            except Exception as exc:
                logger.warning(
                    "Failed to apply sync event %s (%s/%s): %s",
                    event.id, event.type, event.action, exc,
                )
                failed_ids.append(event.id)
                continue

            processed += 1
            if event.action == SyncAction.CREATE.value and entity_id is not None:
                results[event.id] = str(entity_id)

        server_time = _utcnow()
        self.db.add(SyncLog(
            id=uuid.uuid4(),
            user_id=user_id,
            client_id=client_id,
            direction=SyncDirection.PUSH,
            total=len(events),
            processed=processed,
            failed=len(failed_ids),
            created_at=server_time,
        ))
        logger.info(
            "Sync push from %s/%s: %d processed, %d failed",
            user_id, client_id, processed, len(failed_ids),
        )

        response: dict = {
            "processed": processed,
            "failed": len(failed_ids),
            "server_time": to_rfc3339(server_time),
        }
        if failed_ids:
            response["failed_ids"] = failed_ids
        if results:
            response["results"] = results
        return response

    async def _apply_event(
        self,
        event: SyncEvent,
        user_id: str,
        client_id: str,
    ) -> uuid.UUID | None:
        """Route one event to its collaborator. Returns the affected entity id."""
        entity_type, action, handler = resolve_route(event.type, event.action)

        # At-least-once delivery: a resubmitted event is acknowledged, not replayed
        receipt = await self.db.get(SyncReceipt, event.id)
        if receipt is not None:
            logger.info("Sync event %s already applied, skipping", event.id)
            return receipt.entity_id

        entity_id = None
        if handler.needs_entity:
            if not event.entity_id:
                raise ValueError(f"entity_id is required for {action.value}")
            entity_id = uuid.UUID(event.entity_id)

        payload = handler.decode(event.data)
        record = await handler.apply(self.collaborators, user_id, entity_id, payload)
        if record is not None:
            entity_id = record.id

        now = _utcnow()
        self.db.add(SyncReceipt(
            event_id=event.id,
            entity_type=entity_type,
            action=action,
            entity_id=entity_id,
            user_id=user_id,
            client_id=client_id,
            processed_at=now,
        ))
        self.db.add(ChangeRecord(
            id=uuid.uuid4(),
            event_id=event.id,
            entity_type=entity_type,
            # Deactivation reaches other devices as a plain replace
            action=SyncAction.UPDATE if action == SyncAction.DEACTIVATE else action,
            entity_id=entity_id,
            data=handler.snapshot(record),
            client_id=client_id,
            user_id=user_id,
            recorded_at=now,
        ))
        await self.db.flush()
        return entity_id

    async def get_pull_data(
        self,
        user_id: str,
        since: datetime | None = None,
        client_id: str | None = None,
        limit: int | None = None,
    ) -> dict:
        """Journal entries recorded after ``since``, oldest first.

        Entries written by ``client_id`` itself are left out. Only entries
        older than the settle lag are served, so a push still committing
        cannot land behind a checkpoint handed out here. When more than
        ``limit`` remain, ``server_time`` is the timestamp of the last entry
        returned so the next request resumes right after it; otherwise it is
        the settle horizon.
        """
        limit = limit or settings.SYNC_PULL_PAGE_SIZE
        horizon = _utcnow() - timedelta(seconds=settings.SYNC_PULL_SETTLE_SECONDS)

        query = select(ChangeRecord).where(ChangeRecord.recorded_at <= horizon)
        if since is not None:
            query = query.where(ChangeRecord.recorded_at > _as_utc(since))
        if client_id:
            query = query.where(ChangeRecord.client_id != client_id)
        result = await self.db.execute(
            query.order_by(ChangeRecord.recorded_at, ChangeRecord.id).limit(limit + 1)
        )
        rows = list(result.scalars().all())

        has_more = len(rows) > limit
        if has_more:
            page = rows[:limit]
            # Never cut through a run of equal timestamps: the next request
            # filters with ">" and would skip the rest of the run
            boundary = rows[limit].recorded_at
            trimmed = [r for r in page if r.recorded_at != boundary]
            if trimmed:
                page = trimmed
            else:
                # Whole page is one run; serve all of it even past the limit
                run = await self.db.execute(
                    query.where(ChangeRecord.recorded_at == _as_utc(boundary)).order_by(ChangeRecord.id)
                )
                page = list(run.scalars().all())
            server_time = to_rfc3339(page[-1].recorded_at)
        else:
            page = rows
            server_time = to_rfc3339(horizon)

        events = []
        for r in page:
            event = {
                "id": r.event_id,
                "type": r.entity_type.value,
                "action": r.action.value,
                "entity_id": str(r.entity_id),
                "timestamp": to_rfc3339(r.recorded_at),
                "client_id": r.client_id,
            }
            if r.data is not None:
                event["data"] = r.data
            events.append(event)

        self.db.add(SyncLog(
            id=uuid.uuid4(),
            user_id=user_id,
            client_id=client_id,
            direction=SyncDirection.PULL,
            total=len(events),
            processed=len(events),
            failed=0,
            created_at=_utcnow(),
        ))

        return {
            "events": events,
            "server_time": server_time,
            "has_more": has_more,
        }

    async def get_sync_status(self, user_id: str) -> dict:
        """Last sync time for the caller and how many events their last push left behind."""
        result = await self.db.execute(
            select(func.max(SyncLog.created_at)).where(SyncLog.user_id == user_id)
        )
        last_sync = result.scalar_one_or_none()

        result = await self.db.execute(
            select(SyncLog.failed)
            .where(
                SyncLog.user_id == user_id,
                SyncLog.direction == SyncDirection.PUSH,
            )
            .order_by(SyncLog.created_at.desc())
            .limit(1)
        )
        pending = result.scalar_one_or_none() or 0

        return {
            "last_sync": to_rfc3339(last_sync) if last_sync else "",
            "pending": pending,
            "server_time": to_rfc3339(_utcnow()),
        }

    async def prune(self, older_than_days: int | None = None) -> dict:
        """Drop journal entries and receipts past the retention window."""
        days = older_than_days if older_than_days is not None else settings.SYNC_RETENTION_DAYS
        cutoff = _utcnow() - timedelta(days=days)

        changes = await self.db.execute(
            delete(ChangeRecord).where(ChangeRecord.recorded_at < cutoff)
        )
        receipts = await self.db.execute(
            delete(SyncReceipt).where(SyncReceipt.processed_at < cutoff)
        )
        logs = await self.db.execute(
            delete(SyncLog).where(SyncLog.created_at < cutoff)
        )
        return {
            "changes": changes.rowcount,
            "receipts": receipts.rowcount,
            "logs": logs.rowcount,
        }
