"""All enum types for the BabyTrack data model."""

import enum


# --- Sync Enums ---

class EntityType(str, enum.Enum):
    FEEDING = "feeding"
    SLEEP = "sleep"
    MEDICATION = "medication"
    MEDICATION_LOG = "medication_log"
    NOTE = "note"
    VACCINATION = "vaccination"
    APPOINTMENT = "appointment"


class SyncAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    DEACTIVATE = "deactivate"


class SyncDirection(str, enum.Enum):
    PUSH = "push"
    PULL = "pull"


# --- Care Enums ---

class FeedingType(str, enum.Enum):
    BREAST = "breast"
    BOTTLE = "bottle"
    FORMULA = "formula"
    SOLID = "solid"


class SleepType(str, enum.Enum):
    NAP = "nap"
    NIGHT = "night"


# --- Health Enums ---

class AppointmentType(str, enum.Enum):
    WELL_VISIT = "well_visit"
    SICK_VISIT = "sick_visit"
    SPECIALIST = "specialist"
    DENTAL = "dental"
    OTHER = "other"
