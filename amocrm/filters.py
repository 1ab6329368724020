"""
List filters.

Each filter renders to amoCRM's bracketed query parameters
(`filter[pipeline_id]=1`, `order[created_at]=asc`, ...) as a list of
(key, value) pairs, ready to hand to httpx as `params`.
"""

from dataclasses import dataclass, field
from typing import Optional

Params = list[tuple[str, str]]


def _paging(limit: int, page: int) -> Params:
    params: Params = []
    if limit > 0:
        params.append(("limit", str(limit)))
    if page > 0:
        params.append(("page", str(page)))
    return params


def _range(params: Params, name: str, bounds: Optional[dict[str, int]]) -> None:
    if not bounds:
        return
    for edge in ("from", "to"):
        if edge in bounds:
            params.append((f"filter[{name}][{edge}]", str(bounds[edge])))


@dataclass
class ContactsFilter:
    query: str = ""
    limit: int = 0
    page: int = 0
    with_: str = ""  # comma-separated: leads, customers, catalog_elements
    order: str = ""  # created_at, updated_at, id

    def to_params(self) -> Params:
        params: Params = []
        if self.query:
            params.append(("query", self.query))
        params.extend(_paging(self.limit, self.page))
        if self.with_:
            params.append(("with", self.with_))
        if self.order:
            params.append((f"order[{self.order}]", "asc"))
        return params


@dataclass
class CompaniesFilter(ContactsFilter):
    """Same query surface as contacts; `with_` also accepts `contacts`."""


@dataclass
class LeadsFilter:
    query: str = ""
    limit: int = 0
    page: int = 0
    with_: str = ""  # contacts, catalog_elements, loss_reason
    order: str = ""  # created_at, updated_at, id, closed_at
    status_ids: list[int] = field(default_factory=list)
    pipeline_id: int = 0
    updated_at: Optional[dict[str, int]] = None  # {"from": ts, "to": ts}

    def to_params(self) -> Params:
        params: Params = []
        if self.query:
            params.append(("query", self.query))
        params.extend(_paging(self.limit, self.page))
        if self.with_:
            params.append(("with", self.with_))
        if self.order:
            params.append((f"order[{self.order}]", "asc"))
        if self.pipeline_id > 0:
            params.append(("filter[pipeline_id]", str(self.pipeline_id)))
        for i, status_id in enumerate(self.status_ids):
            params.append((f"filter[statuses][{i}][status_id]", str(status_id)))
            if self.pipeline_id > 0:
                params.append((f"filter[statuses][{i}][pipeline_id]", str(self.pipeline_id)))
        _range(params, "updated_at", self.updated_at)
        return params


@dataclass
class TasksFilter:
    limit: int = 0
    page: int = 0
    order: str = ""
    responsible_user_id: int = 0
    is_completed: Optional[bool] = None
    entity_type: str = ""
    entity_id: int = 0

    def to_params(self) -> Params:
        params = _paging(self.limit, self.page)
        if self.order:
            params.append((f"order[{self.order}]", "asc"))
        if self.responsible_user_id > 0:
            params.append(("filter[responsible_user_id]", str(self.responsible_user_id)))
        if self.is_completed is not None:
            params.append(("filter[is_completed]", "1" if self.is_completed else "0"))
        if self.entity_type:
            params.append(("filter[entity_type]", self.entity_type))
        if self.entity_id > 0:
            params.append(("filter[entity_id]", str(self.entity_id)))
        return params


@dataclass
class NotesFilter:
    limit: int = 0
    page: int = 0
    note_types: list[str] = field(default_factory=list)

    def to_params(self) -> Params:
        params = _paging(self.limit, self.page)
        for note_type in self.note_types:
            params.append(("filter[note_type][]", note_type))
        return params


@dataclass
class EventsFilter:
    limit: int = 0
    page: int = 0
    entity_type: str = ""
    entity_id: int = 0
    types: list[str] = field(default_factory=list)
    created_at: Optional[dict[str, int]] = None

    def to_params(self) -> Params:
        params = _paging(self.limit, self.page)
        if self.entity_type:
            params.append(("filter[entity]", self.entity_type))
        if self.entity_id > 0:
            params.append(("filter[entity_id]", str(self.entity_id)))
        for event_type in self.types:
            params.append(("filter[type][]", event_type))
        _range(params, "created_at", self.created_at)
        return params


@dataclass
class UsersFilter:
    limit: int = 0
    page: int = 0
    with_: str = ""  # role, group, uuid, amojo_id, user_rank, phone_number

    def to_params(self) -> Params:
        params = _paging(self.limit, self.page)
        if self.with_:
            params.append(("with", self.with_))
        return params


@dataclass
class RolesFilter(UsersFilter):
    """`with_` accepts `users`."""


@dataclass
class TagsFilter:
    limit: int = 0
    page: int = 0

    def to_params(self) -> Params:
        return _paging(self.limit, self.page)
