"""Offline sync endpoints for family devices."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from babytrack.config import settings
from babytrack.core.deps import get_current_user_id
from babytrack.core.rate_limit import RateLimiter
from babytrack.database import get_db
from babytrack.schemas.sync import (
    SyncPullResponse,
    SyncPushRequest,
    SyncPushResponse,
    SyncStatusResponse,
)
from babytrack.services.sync import SyncService

router = APIRouter(prefix="/sync", tags=["sync"])

_push_rate_limit = RateLimiter(
    max_calls=settings.SYNC_PUSH_RATE_LIMIT_PER_MINUTE,
    window_seconds=60,
    key="sync_push",
    by="user",
)


@router.post("/push", response_model=SyncPushResponse, response_model_exclude_none=True)
async def sync_push(
    data: SyncPushRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
    _rl: None = Depends(_push_rate_limit),
):
    """Receive a batch of queued client events and apply them in order.

    Each event succeeds or fails on its own; the response lists the ids that
    failed and, for creates, the server id assigned to each event.
    """
    if len(data.events) > settings.SYNC_MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=422,
            detail=f"A push may carry at most {settings.SYNC_MAX_BATCH_SIZE} events.",
        )
    svc = SyncService(db)
    return await svc.process_push(
        events=data.events,
        user_id=user_id,
        client_id=data.client_id,
    )


@router.get("/pull", response_model=SyncPullResponse)
async def sync_pull(
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
    last_sync: datetime | None = Query(None, description="Checkpoint from the previous pull"),
    client_id: str | None = Query(None, max_length=100, description="Leave out this device's own changes"),
):
    """Changes recorded on the server since ``last_sync``, oldest first.

    Re-request with the returned ``server_time`` while ``has_more`` is true.
    """
    svc = SyncService(db)
    return await svc.get_pull_data(
        user_id=user_id,
        since=last_sync,
        client_id=client_id,
    )


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Get current sync status for the authenticated caller."""
    svc = SyncService(db)
    return await svc.get_sync_status(user_id=user_id)
