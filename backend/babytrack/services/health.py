"""Vaccination and appointment services."""

from babytrack.models.health import Appointment, Vaccination
from babytrack.services.records import RecordService


class VaccinationService(RecordService[Vaccination]):
    model = Vaccination
    label = "Vaccination"


class AppointmentService(RecordService[Appointment]):
    model = Appointment
    label = "Appointment"
