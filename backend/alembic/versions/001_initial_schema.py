"""Initial schema - tracked entities and sync bookkeeping.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENTITY_TYPES = ("FEEDING", "SLEEP", "MEDICATION", "MEDICATION_LOG", "NOTE", "VACCINATION", "APPOINTMENT")
SYNC_ACTIONS = ("CREATE", "UPDATE", "DELETE", "DEACTIVATE")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # --- Daily care ---

    op.create_table(
        "feeding",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.Enum("BREAST", "BOTTLE", "FORMULA", "SOLID", name="feedingtype"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("amount", sa.Float, nullable=True),
        sa.Column("unit", sa.String(10), nullable=True),
        sa.Column("side", sa.String(10), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_feeding_child_start", "feeding", ["child_id", "start_time"])

    op.create_table(
        "sleep",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.Enum("NAP", "NIGHT", name="sleeptype"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("quality", sa.Integer, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sleep_child_start", "sleep", ["child_id", "start_time"])

    op.create_table(
        "note",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("author_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("tags", postgresql.JSONB, nullable=True),
        sa.Column("pinned", sa.Boolean, server_default="false"),
        *_timestamps(),
    )
    op.create_index("ix_note_child", "note", ["child_id"])
    op.create_index("ix_note_author", "note", ["author_id"])

    # --- Medications ---

    op.create_table(
        "medication",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("dosage", sa.String(50), nullable=False),
        sa.Column("unit", sa.String(20), nullable=False),
        sa.Column("frequency", sa.String(50), nullable=False),
        sa.Column("instructions", sa.Text, nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("active", sa.Boolean, server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_medication_child", "medication", ["child_id"])
    op.create_index("ix_medication_active", "medication", ["active"])

    op.create_table(
        "medication_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "medication_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("medication.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("given_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("given_by", sa.String(64), nullable=False),
        sa.Column("dosage", sa.String(50), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_medication_log_medication", "medication_log", ["medication_id", "given_at"])

    # --- Health ---

    op.create_table(
        "vaccination",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("dose", sa.Integer, nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("administered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("provider", sa.String(200), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("lot_number", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("completed", sa.Boolean, server_default="false"),
        *_timestamps(),
    )
    op.create_index("ix_vaccination_child_scheduled", "vaccination", ["child_id", "scheduled_at"])

    op.create_table(
        "appointment",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "type",
            sa.Enum("WELL_VISIT", "SICK_VISIT", "SPECIALIST", "DENTAL", "OTHER", name="appointmenttype"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("provider", sa.String(200), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("completed", sa.Boolean, server_default="false"),
        sa.Column("cancelled", sa.Boolean, server_default="false"),
        *_timestamps(),
    )
    op.create_index("ix_appointment_child_scheduled", "appointment", ["child_id", "scheduled_at"])

    # --- Sync bookkeeping ---

    entity_type = sa.Enum(*ENTITY_TYPES, name="entitytype")
    sync_action = sa.Enum(*SYNC_ACTIONS, name="syncaction")

    op.create_table(
        "sync_receipt",
        sa.Column("event_id", sa.String(64), primary_key=True),
        sa.Column("entity_type", entity_type, nullable=False),
        sa.Column("action", sync_action, nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(100), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sync_receipt_processed", "sync_receipt", ["processed_at"])

    op.create_table(
        "change_record",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("event_id", sa.String(64), nullable=False),
        sa.Column("entity_type", entity_type, nullable=False),
        sa.Column("action", sync_action, nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("data", postgresql.JSONB, nullable=True),
        sa.Column("client_id", sa.String(100), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_change_record_recorded", "change_record", ["recorded_at"])
    op.create_index("ix_change_record_entity", "change_record", ["entity_type", "entity_id"])

    op.create_table(
        "sync_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(100), nullable=True),
        sa.Column("direction", sa.Enum("PUSH", "PULL", name="syncdirection"), nullable=False),
        sa.Column("total", sa.Integer, nullable=False),
        sa.Column("processed", sa.Integer, nullable=False),
        sa.Column("failed", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sync_log_user_created", "sync_log", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_table("sync_log")
    op.drop_table("change_record")
    op.drop_table("sync_receipt")
    op.drop_table("appointment")
    op.drop_table("vaccination")
    op.drop_table("medication_log")
    op.drop_table("medication")
    op.drop_table("note")
    op.drop_table("sleep")
    op.drop_table("feeding")
    for enum_name in (
        "syncdirection", "syncaction", "entitytype",
        "appointmenttype", "sleeptype", "feedingtype",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
