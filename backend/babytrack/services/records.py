"""Shared create/get/list/update/delete plumbing for the tracked entities."""

import uuid
from typing import Any, Generic, TypeVar

from pydantic import BaseModel as Schema
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from babytrack.models.base import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class RecordService(Generic[ModelT]):
    """CRUD over one model. Subclasses set ``model`` and ``label``."""

    model: type[ModelT]
    label: str = "record"

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: Schema, **extra: Any) -> ModelT:
        record = self.model(id=uuid.uuid4(), **data.model_dump(), **extra)
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def get(self, record_id: uuid.UUID) -> ModelT | None:
        return await self.db.get(self.model, record_id)

    async def get_or_raise(self, record_id: uuid.UUID) -> ModelT:
        record = await self.get(record_id)
        if record is None:
            raise ValueError(f"{self.label} {record_id} not found")
        return record

    async def list(self, child_id: uuid.UUID | None = None, limit: int = 100) -> list[ModelT]:
        query = select(self.model)
        if child_id is not None:
            query = query.where(self.model.child_id == child_id)
        query = query.order_by(self.model.created_at.desc()).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update(self, record_id: uuid.UUID, data: Schema) -> ModelT:
        """Replace the client-editable fields of a record (last writer wins)."""
        record = await self.get_or_raise(record_id)
        for field, value in data.model_dump().items():
            setattr(record, field, value)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def delete(self, record_id: uuid.UUID) -> None:
        record = await self.get_or_raise(record_id)
        await self.db.delete(record)
        await self.db.flush()
