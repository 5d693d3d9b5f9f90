"""Medication service: prescriptions, deactivation, and dose logging."""

import uuid

from sqlalchemy import select

from babytrack.models.medication import Medication, MedicationLog
from babytrack.schemas.medication import MedicationLogCreate
from babytrack.services.records import RecordService


class MedicationService(RecordService[Medication]):
    model = Medication
    label = "Medication"

    async def deactivate(self, medication_id: uuid.UUID) -> Medication:
        medication = await self.get_or_raise(medication_id)
        medication.active = False
        await self.db.flush()
        await self.db.refresh(medication)
        return medication

    async def log_medication(
        self, given_by: str, data: MedicationLogCreate,
    ) -> MedicationLog:
        """Record one administered dose. The child comes from the medication."""
        medication = await self.get_or_raise(data.medication_id)

        log = MedicationLog(
            id=uuid.uuid4(),
            medication_id=medication.id,
            child_id=medication.child_id,
            given_at=data.given_at,
            given_by=given_by,
            dosage=data.dosage,
            notes=data.notes,
        )
        self.db.add(log)
        await self.db.flush()
        await self.db.refresh(log)
        return log

    async def get_logs(self, medication_id: uuid.UUID) -> list[MedicationLog]:
        result = await self.db.execute(
            select(MedicationLog)
            .where(MedicationLog.medication_id == medication_id)
            .order_by(MedicationLog.given_at.desc())
        )
        return list(result.scalars().all())
