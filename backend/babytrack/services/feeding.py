"""Feeding service."""

from babytrack.models.care import Feeding
from babytrack.services.records import RecordService


class FeedingService(RecordService[Feeding]):
    model = Feeding
    label = "Feeding"
