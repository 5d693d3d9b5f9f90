"""Device-local tables: domain mirrors, the pending event queue, id map, checkpoint.

These live in their own declarative base so they are created in the local
SQLite file and never in the server database.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from babytrack.models.enums import EntityType


class LocalBase(DeclarativeBase):
    pass


class LocalRecordMixin:
    """A mirrored record. ``data`` holds the server-visible fields verbatim."""

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    child_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    pending_sync: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False,
    )


class LocalFeeding(LocalRecordMixin, LocalBase):
    __tablename__ = "feedings"


class LocalSleep(LocalRecordMixin, LocalBase):
    __tablename__ = "sleep"


class LocalMedication(LocalRecordMixin, LocalBase):
    __tablename__ = "medications"


class LocalMedicationLog(LocalRecordMixin, LocalBase):
    __tablename__ = "medication_logs"


class LocalNote(LocalRecordMixin, LocalBase):
    __tablename__ = "notes"


class LocalVaccination(LocalRecordMixin, LocalBase):
    __tablename__ = "vaccinations"


class LocalAppointment(LocalRecordMixin, LocalBase):
    __tablename__ = "appointments"


LOCAL_MODELS: dict[EntityType, type[LocalRecordMixin]] = {
    EntityType.FEEDING: LocalFeeding,
    EntityType.SLEEP: LocalSleep,
    EntityType.MEDICATION: LocalMedication,
    EntityType.MEDICATION_LOG: LocalMedicationLog,
    EntityType.NOTE: LocalNote,
    EntityType.VACCINATION: LocalVaccination,
    EntityType.APPOINTMENT: LocalAppointment,
}


class PendingEvent(LocalBase):
    """One local mutation awaiting server confirmation.

    Only ``retry_count`` and ``last_error`` ever change after insert; both
    stay on the device. ``local_id`` is the placeholder id a create gave its
    record, so the confirmation can rename it to the server id.
    """

    __tablename__ = "pending_events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    local_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    client_id: Mapped[str] = mapped_column(String(100), nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_pending_events_entity_ts", "entity_id", "timestamp"),
        Index("ix_pending_events_local_id", "local_id"),
    )

    @property
    def entity_key(self) -> str | None:
        """The local identity of the record this event touches."""
        return self.local_id if self.local_id else self.entity_id


class IdMapping(LocalBase):
    """Placeholder id of a confirmed create -> the id the server assigned."""

    __tablename__ = "id_mappings"

    local_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    server_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)


class SyncCheckpoint(LocalBase):
    """Small key/value table: pull checkpoint and this device's client id."""

    __tablename__ = "sync_checkpoints"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(200), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False,
    )
