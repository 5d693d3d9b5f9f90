"""Celery task that keeps the sync journal and push receipts bounded."""

import asyncio
import logging

from babytrack.celery_app import celery
from babytrack.database import async_session_factory

logger = logging.getLogger(__name__)


@celery.task(name="babytrack.tasks.sync.prune_sync_bookkeeping", bind=True, max_retries=2)
def prune_sync_bookkeeping(self, older_than_days: int | None = None):
    """Delete change journal rows, receipts and sync logs past retention.

    Devices that have not pulled within the window fall back to a full pull
    (no checkpoint) to rebuild their local mirror.
    """
    logger.info("Pruning sync bookkeeping...")
    try:
        counts = asyncio.run(_run_prune(older_than_days))
    except Exception as exc:
        logger.exception("Sync prune failed: %s", exc)
        raise self.retry(exc=exc, countdown=600)
    logger.info(
        "Sync prune removed %d changes, %d receipts, %d logs",
        counts["changes"], counts["receipts"], counts["logs"],
    )
    return counts


async def _run_prune(older_than_days: int | None) -> dict:
    from babytrack.services.sync import SyncService

    async with async_session_factory() as session:
        counts = await SyncService(session).prune(older_than_days)
        await session.commit()
    return counts
