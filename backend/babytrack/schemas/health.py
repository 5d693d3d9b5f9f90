"""Vaccination and appointment request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from babytrack.models.enums import AppointmentType


class VaccinationCreate(BaseModel):
    child_id: uuid.UUID
    name: str = Field(min_length=1, max_length=200)
    dose: int = Field(ge=1)
    scheduled_at: datetime


class VaccinationRead(BaseModel):
    id: uuid.UUID
    child_id: uuid.UUID
    name: str
    dose: int
    scheduled_at: datetime
    administered_at: datetime | None
    provider: str | None
    location: str | None
    lot_number: str | None
    notes: str | None
    completed: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class AppointmentCreate(BaseModel):
    child_id: uuid.UUID
    type: AppointmentType
    title: str = Field(min_length=1, max_length=200)
    provider: str | None = None
    location: str | None = None
    scheduled_at: datetime
    duration: int = Field(default=30, ge=0)
    notes: str | None = None


class AppointmentRead(BaseModel):
    id: uuid.UUID
    child_id: uuid.UUID
    type: AppointmentType
    title: str
    provider: str | None
    location: str | None
    scheduled_at: datetime
    duration: int
    notes: str | None
    completed: bool
    cancelled: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
