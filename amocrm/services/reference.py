"""Read-only reference data: pipelines, catalogs, task types, tags, events."""

from __future__ import annotations

from typing import Optional

from ..filters import EventsFilter, TagsFilter
from ..models import Catalog, Event, Pipeline, Tag, TaskType, TaskTypeItem
from .base import BaseService, parse_list_page

# amoCRM's built-in task types; the API does not list them
DEFAULT_TASK_TYPES = (
    TaskTypeItem(id=TaskType.CALL, name="Звонок"),
    TaskTypeItem(id=TaskType.MEET, name="Встреча"),
    TaskTypeItem(id=TaskType.MAIL, name="Написать письмо"),
)


class PipelinesService(BaseService):
    async def list(self) -> list[Pipeline]:
        payload = await self.client.get_json("/leads/pipelines")
        return parse_list_page(payload, "pipelines", Pipeline).items


class CatalogsService(BaseService):
    async def list(self) -> list[Catalog]:
        payload = await self.client.get_json("/catalogs")
        return parse_list_page(payload, "catalogs", Catalog).items


class TaskTypesService(BaseService):
    async def list(self) -> list[TaskTypeItem]:
        return list(DEFAULT_TASK_TYPES)


class TagsService(BaseService):
    async def list(self, entity_type: str, filter: Optional[TagsFilter] = None) -> list[Tag]:
        params = filter.to_params() if filter is not None else None
        payload = await self.client.get_json(f"/{entity_type}/tags", params=params)
        return parse_list_page(payload, "tags", Tag).items


class EventsService(BaseService):
    async def list(self, filter: Optional[EventsFilter] = None) -> list[Event]:
        params = filter.to_params() if filter is not None else None
        payload = await self.client.get_json("/events", params=params)
        return parse_list_page(payload, "events", Event).items
