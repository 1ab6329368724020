"""Notes attached to leads, contacts, companies and customers."""

from __future__ import annotations

from typing import Optional, Sequence

from ..errors import EmptyResponseError
from ..filters import NotesFilter
from ..models import Note
from .base import BaseService, parse_list_page


class NotesService(BaseService):
    @staticmethod
    def _path(entity_type: str, entity_id: int) -> str:
        return f"/{entity_type}/{entity_id}/notes"

    async def list(
        self, entity_type: str, entity_id: int, filter: Optional[NotesFilter] = None
    ) -> list[Note]:
        params = filter.to_params() if filter is not None else None
        payload = await self.client.get_json(self._path(entity_type, entity_id), params=params)
        return parse_list_page(payload, "notes", Note).items

    async def get_by_id(self, entity_type: str, entity_id: int, note_id: int) -> Optional[Note]:
        return await self._get_one(f"{self._path(entity_type, entity_id)}/{note_id}", Note)

    async def create(self, entity_type: str, note: Note) -> Note:
        if not note.entity_id:
            raise ValueError("note entity_id is required")
        created = await self.create_batch(entity_type, note.entity_id, [note])
        if not created:
            raise EmptyResponseError("no note returned from API")
        return created[0]

    async def create_batch(self, entity_type: str, entity_id: int, notes: Sequence[Note]) -> list[Note]:
        body = {"notes": [note.to_payload() for note in notes]}
        payload = await self.client.post_json(self._path(entity_type, entity_id), body)
        return parse_list_page(payload, "notes", Note).items
