"""All BabyTrack server database models.

Import all models here so Alembic and SQLAlchemy can discover them.
"""

from babytrack.models.base import Base, BaseModel  # noqa: F401

# Daily care
from babytrack.models.care import Feeding, Note, SleepRecord  # noqa: F401

# Medications
from babytrack.models.medication import Medication, MedicationLog  # noqa: F401

# Health
from babytrack.models.health import Appointment, Vaccination  # noqa: F401

# Sync bookkeeping
from babytrack.models.sync import ChangeRecord, SyncLog, SyncReceipt  # noqa: F401
