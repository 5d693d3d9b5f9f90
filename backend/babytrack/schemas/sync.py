"""Pydantic schemas for offline sync endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SyncEvent(BaseModel):
    """One queued client mutation as it travels over the wire.

    ``type`` and ``action`` stay plain strings: an unknown value is a
    per-event failure for the dispatcher, never a rejected batch.
    """

    id: str = Field(min_length=1, max_length=64, description="Client-generated unique ID for this event")
    type: str = Field(description="Entity type (e.g., feeding, medication_log)")
    action: str = Field(description="create, update, delete or deactivate")
    entity_id: str | None = Field(default=None, description="Server ID of the target entity; empty for create")
    data: dict[str, Any] | None = Field(default=None, description="Action-specific payload")
    timestamp: datetime = Field(description="When the event was created on the client")
    client_id: str | None = Field(default=None, max_length=100)


class SyncPushRequest(BaseModel):
    client_id: str = Field(min_length=1, max_length=100)
    events: list[SyncEvent]


class SyncPushResponse(BaseModel):
    processed: int
    failed: int
    failed_ids: list[str] | None = None
    results: dict[str, str] | None = None
    server_time: str


class SyncPullResponse(BaseModel):
    events: list[dict[str, Any]]
    server_time: str
    has_more: bool


class SyncStatusResponse(BaseModel):
    last_sync: str
    pending: int
    server_time: str
