"""Sleep service."""

from babytrack.models.care import SleepRecord
from babytrack.services.records import RecordService


class SleepService(RecordService[SleepRecord]):
    model = SleepRecord
    label = "Sleep record"
