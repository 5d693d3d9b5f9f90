"""Server-side sync bookkeeping: push receipts, change journal, sync log."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from babytrack.database import Base
from babytrack.models.base import JSONType, UUIDPrimaryKeyMixin
from babytrack.models.enums import EntityType, SyncAction, SyncDirection


class SyncReceipt(Base):
    """One row per client event already applied. Keyed by the client event id."""

    __tablename__ = "sync_receipt"

    event_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    entity_type: Mapped[EntityType] = mapped_column(nullable=False)
    action: Mapped[SyncAction] = mapped_column(nullable=False)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    client_id: Mapped[str] = mapped_column(String(100), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_sync_receipt_processed", "processed_at"),
    )


class ChangeRecord(UUIDPrimaryKeyMixin, Base):
    """Append-only journal of applied changes, served to other devices on pull."""

    __tablename__ = "change_record"

    event_id: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[EntityType] = mapped_column(nullable=False)
    action: Mapped[SyncAction] = mapped_column(nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    client_id: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_change_record_recorded", "recorded_at"),
        Index("ix_change_record_entity", "entity_type", "entity_id"),
    )


class SyncLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "sync_log"

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    client_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    direction: Mapped[SyncDirection] = mapped_column(nullable=False)
    total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_sync_log_user_created", "user_id", "created_at"),
    )
