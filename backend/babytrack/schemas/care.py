"""Feeding, sleep, and note request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from babytrack.models.enums import FeedingType, SleepType


class FeedingCreate(BaseModel):
    child_id: uuid.UUID
    type: FeedingType
    start_time: datetime
    end_time: datetime | None = None
    amount: float | None = Field(default=None, ge=0)
    unit: str | None = Field(default=None, max_length=10)
    side: str | None = Field(default=None, max_length=10)
    notes: str | None = None


class FeedingRead(BaseModel):
    id: uuid.UUID
    child_id: uuid.UUID
    type: FeedingType
    start_time: datetime
    end_time: datetime | None
    amount: float | None
    unit: str | None
    side: str | None
    notes: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SleepCreate(BaseModel):
    child_id: uuid.UUID
    type: SleepType
    start_time: datetime
    end_time: datetime | None = None
    quality: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = None


class SleepRead(BaseModel):
    id: uuid.UUID
    child_id: uuid.UUID
    type: SleepType
    start_time: datetime
    end_time: datetime | None
    quality: int | None
    notes: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class NoteCreate(BaseModel):
    child_id: uuid.UUID
    title: str | None = Field(default=None, max_length=200)
    content: str = Field(min_length=1)
    tags: list[str] | None = None
    pinned: bool = False


class NoteUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str = Field(min_length=1)
    tags: list[str] | None = None
    pinned: bool = False


class NoteRead(BaseModel):
    id: uuid.UUID
    child_id: uuid.UUID
    author_id: str
    title: str | None
    content: str
    tags: list[str] | None
    pinned: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
