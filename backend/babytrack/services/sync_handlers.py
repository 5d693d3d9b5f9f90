"""Routing table for sync events: (entity type, action) -> collaborator call.

Adding an entity type means adding rows here; the dispatch loop in
:mod:`babytrack.services.sync` never changes. Payloads are decoded with the
handler's request schema only after the route is known.
"""

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from babytrack.models.enums import EntityType, SyncAction
from babytrack.schemas.care import (
    FeedingCreate,
    FeedingRead,
    NoteCreate,
    NoteRead,
    NoteUpdate,
    SleepCreate,
    SleepRead,
)
from babytrack.schemas.health import (
    AppointmentCreate,
    AppointmentRead,
    VaccinationCreate,
    VaccinationRead,
)
from babytrack.schemas.medication import (
    MedicationCreate,
    MedicationLogCreate,
    MedicationLogRead,
    MedicationRead,
)
from babytrack.services.feeding import FeedingService
from babytrack.services.health import AppointmentService, VaccinationService
from babytrack.services.medication import MedicationService
from babytrack.services.note import NoteService
from babytrack.services.records import RecordService
from babytrack.services.sleep import SleepService


@dataclass
class Collaborators:
    """The domain services one push batch is applied against."""

    feeding: FeedingService
    sleep: SleepService
    medication: MedicationService
    note: NoteService
    vaccination: VaccinationService
    appointment: AppointmentService

    @classmethod
    def for_session(cls, db: AsyncSession) -> "Collaborators":
        return cls(
            feeding=FeedingService(db),
            sleep=SleepService(db),
            medication=MedicationService(db),
            note=NoteService(db),
            vaccination=VaccinationService(db),
            appointment=AppointmentService(db),
        )


# (collaborators, caller_id, entity_id, decoded payload) -> record or None
ApplyFn = Callable[[Collaborators, str, uuid.UUID | None, BaseModel | None], Awaitable[Any]]


@dataclass(frozen=True)
class EventHandler:
    apply: ApplyFn
    request_model: type[BaseModel] | None
    read_model: type[BaseModel] | None
    needs_entity: bool

    def decode(self, data: dict | None) -> BaseModel | None:
        """Validate the payload against this route's request shape.

        Raises pydantic.ValidationError (a ValueError) on a bad payload.
        """
        if self.request_model is None:
            return None
        return self.request_model.model_validate(data or {})

    def snapshot(self, record: Any) -> dict | None:
        if record is None or self.read_model is None:
            return None
        return self.read_model.model_validate(record).model_dump(mode="json")


def _service(attr: str) -> Callable[[Collaborators], RecordService]:
    return lambda c: getattr(c, attr)


def _crud_routes(
    entity_type: EntityType,
    attr: str,
    create_model: type[BaseModel],
    update_model: type[BaseModel],
    read_model: type[BaseModel],
) -> dict[tuple[EntityType, SyncAction], EventHandler]:
    svc = _service(attr)

    async def create(c, caller_id, entity_id, payload):
        return await svc(c).create(payload)

    async def update(c, caller_id, entity_id, payload):
        return await svc(c).update(entity_id, payload)

    async def delete(c, caller_id, entity_id, payload):
        await svc(c).delete(entity_id)

    return {
        (entity_type, SyncAction.CREATE): EventHandler(create, create_model, read_model, False),
        (entity_type, SyncAction.UPDATE): EventHandler(update, update_model, read_model, True),
        (entity_type, SyncAction.DELETE): EventHandler(delete, None, None, True),
    }


async def _create_note(c: Collaborators, caller_id: str, entity_id, payload):
    return await c.note.create_for(caller_id, payload)


async def _deactivate_medication(c: Collaborators, caller_id: str, entity_id, payload):
    return await c.medication.deactivate(entity_id)


async def _log_medication(c: Collaborators, caller_id: str, entity_id, payload):
    return await c.medication.log_medication(caller_id, payload)


def build_routes() -> dict[tuple[EntityType, SyncAction], EventHandler]:
    routes: dict[tuple[EntityType, SyncAction], EventHandler] = {}
    routes.update(_crud_routes(EntityType.FEEDING, "feeding", FeedingCreate, FeedingCreate, FeedingRead))
    routes.update(_crud_routes(EntityType.SLEEP, "sleep", SleepCreate, SleepCreate, SleepRead))
    routes.update(_crud_routes(
        EntityType.APPOINTMENT, "appointment", AppointmentCreate, AppointmentCreate, AppointmentRead,
    ))
    routes.update(_crud_routes(
        EntityType.VACCINATION, "vaccination", VaccinationCreate, VaccinationCreate, VaccinationRead,
    ))
    routes.update(_crud_routes(
        EntityType.MEDICATION, "medication", MedicationCreate, MedicationCreate, MedicationRead,
    ))
    routes[(EntityType.MEDICATION, SyncAction.DEACTIVATE)] = EventHandler(
        _deactivate_medication, None, MedicationRead, True,
    )
    routes[(EntityType.MEDICATION_LOG, SyncAction.CREATE)] = EventHandler(
        _log_medication, MedicationLogCreate, MedicationLogRead, False,
    )
    routes.update(_crud_routes(EntityType.NOTE, "note", NoteCreate, NoteUpdate, NoteRead))
    routes[(EntityType.NOTE, SyncAction.CREATE)] = EventHandler(
        _create_note, NoteCreate, NoteRead, False,
    )
    return routes


ROUTES = build_routes()


def resolve_route(entity_type: str, action: str) -> tuple[EntityType, SyncAction, EventHandler]:
    """Look up the handler for a wire (type, action) pair.

    Raises ValueError for an unknown type, an unknown action, or an action
    the entity type does not support.
    """
    try:
        etype = EntityType(entity_type)
    except ValueError:
        raise ValueError(f"Unknown event type: {entity_type}")
    try:
        act = SyncAction(action)
    except ValueError:
        raise ValueError(f"Unknown action: {action}")
    handler = ROUTES.get((etype, act))
    if handler is None:
        raise ValueError(f"Unsupported action for {etype.value}: {act.value}")
    return etype, act, handler
