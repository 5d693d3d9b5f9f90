"""Medication request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class MedicationCreate(BaseModel):
    child_id: uuid.UUID
    name: str = Field(min_length=1, max_length=200)
    dosage: str = Field(min_length=1, max_length=50)
    unit: str = Field(min_length=1, max_length=20)
    frequency: str = Field(min_length=1, max_length=50)
    instructions: str | None = None
    start_date: datetime
    end_date: datetime | None = None


class MedicationRead(BaseModel):
    id: uuid.UUID
    child_id: uuid.UUID
    name: str
    dosage: str
    unit: str
    frequency: str
    instructions: str | None
    start_date: datetime
    end_date: datetime | None
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class MedicationLogCreate(BaseModel):
    medication_id: uuid.UUID
    given_at: datetime
    dosage: str = Field(min_length=1, max_length=50)
    notes: str | None = None


class MedicationLogRead(BaseModel):
    id: uuid.UUID
    medication_id: uuid.UUID
    child_id: uuid.UUID
    given_at: datetime
    given_by: str
    dosage: str
    notes: str | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
