"""Note service: notes are always attributed to the caller who wrote them."""

from babytrack.models.care import Note
from babytrack.schemas.care import NoteCreate
from babytrack.services.records import RecordService


class NoteService(RecordService[Note]):
    model = Note
    label = "Note"

    async def create_for(self, author_id: str, data: NoteCreate) -> Note:
        return await self.create(data, author_id=author_id)
