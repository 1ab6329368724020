"""
Shared plumbing for the per-entity services: list-page parsing and the
create/update envelope every CRM entity endpoint uses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from ..errors import EmptyResponseError
from ..models import AmoModel, Links, ListPage

if TYPE_CHECKING:
    from ..client import AmoCRMClient

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_list_page(payload: Optional[dict], key: str, model: Type[ModelT]) -> ListPage:
    """Turn a HAL list response into a ListPage.

    amoCRM answers an out-of-range page with 204 No Content, which arrives
    here as None and yields an empty page with no links.
    """
    if not payload:
        return ListPage[model]()

    embedded = payload.get("_embedded") or {}
    raw_items = embedded.get(key) or []
    page = payload.get("_page")

    return ListPage[model](
        items=[model.model_validate(raw) for raw in raw_items],
        links=Links.model_validate(payload.get("_links") or {}),
        page=page if isinstance(page, int) else None,
        page_count=payload.get("_page_count"),
        total_items=payload.get("_total_items"),
    )


class BaseService:
    def __init__(self, client: "AmoCRMClient"):
        self.client = client

    async def _get_one(self, path: str, model: Type[ModelT], params=None) -> Optional[ModelT]:
        payload = await self.client.get_json(path, params=params)
        if payload is None:
            return None
        return model.model_validate(payload)


class EntityService(BaseService):
    """CRUD over a collection endpoint such as /contacts or /leads.

    Subclasses set `path`, `key` (the `_embedded` key and request envelope
    name), `model` and `noun`.
    """
    path: str = ""
    key: str = ""
    model: Type[AmoModel] = AmoModel
    noun: str = "entity"

    def _envelope(self, entities: Sequence[AmoModel]) -> dict[str, Any]:
        return {self.key: [entity.to_payload() for entity in entities]}

    async def list_with_response(self, filter=None) -> ListPage:
        """One page of the collection, including pagination links."""
        params = filter.to_params() if filter is not None else None
        payload = await self.client.get_json(self.path, params=params)
        return parse_list_page(payload, self.key, self.model)

    async def list(self, filter=None) -> list:
        page = await self.list_with_response(filter)
        return page.items

    async def get_by_id(self, entity_id: int, with_: str = ""):
        params = {"with": with_} if with_ else None
        return await self._get_one(f"{self.path}/{entity_id}", self.model, params=params)

    async def create(self, entity):
        created = await self.create_batch([entity])
        if not created:
            raise EmptyResponseError(f"no {self.noun} returned from API")
        return created[0]

    async def create_batch(self, entities: Sequence[AmoModel]) -> list:
        payload = await self.client.post_json(self.path, self._envelope(entities))
        items = parse_list_page(payload, self.key, self.model).items
        logger.info(f"Created {len(items)} amoCRM {self.key}")
        return items

    async def update(self, entity):
        if not getattr(entity, "id", None):
            raise ValueError(f"{self.noun} ID is required for update")
        updated = await self.update_batch([entity])
        if not updated:
            raise EmptyResponseError(f"no {self.noun} returned from API")
        return updated[0]

    async def update_batch(self, entities: Sequence[AmoModel]) -> list:
        for i, entity in enumerate(entities):
            if not getattr(entity, "id", None):
                raise ValueError(f"{self.noun} ID is required for update at index {i}")
        payload = await self.client.patch_json(self.path, self._envelope(entities))
        return parse_list_page(payload, self.key, self.model).items
