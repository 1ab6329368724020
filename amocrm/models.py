"""
amoCRM entity models.

Pydantic models mirroring the v4 JSON payloads. HAL fields (`_links`,
`_embedded`) are exposed as `links` / `embedded`. Unset fields stay None and
are left out of request bodies, so a partial model is a partial update.
"""

from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, field_validator


class EntityType:
    """Entity path segments. Plain constants so they format straight into URLs."""
    CONTACTS = "contacts"
    COMPANIES = "companies"
    LEADS = "leads"
    CUSTOMERS = "customers"

    ALL = frozenset({CONTACTS, COMPANIES, LEADS, CUSTOMERS})


class TaskType:
    CALL = 1
    MEET = 2
    MAIL = 3


class NoteType:
    COMMON = "common"
    CALL_IN = "call_in"
    CALL_OUT = "call_out"
    SMS_IN = "sms_in"
    SMS_OUT = "sms_out"
    SERVICE_MESSAGE = "service_message"


class AmoModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict:
        """JSON-ready dict for request bodies (aliases on, None dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ==================== Links ====================

class Link(AmoModel):
    href: str = ""


class Links(AmoModel):
    self_link: Link = Field(default_factory=Link, alias="self")
    next: Link = Field(default_factory=Link)
    prev: Link = Field(default_factory=Link)

    def has_self(self) -> bool:
        return bool(self.self_link.href)

    def has_next(self) -> bool:
        return bool(self.next.href)


# ==================== Custom fields ====================

FieldScalar = Union[StrictBool, StrictInt, StrictFloat, str]


class FieldValue(AmoModel):
    """One value of a custom field.

    `value` is a scalar for text/number/checkbox/date fields, or a flat object
    for composite fields such as legal entities and addresses.
    """
    value: Union[FieldScalar, dict[str, Optional[FieldScalar]], None] = None
    enum_id: Optional[int] = None
    enum_code: Optional[str] = None
    enum: Optional[str] = None


class CustomFieldValue(AmoModel):
    field_id: Optional[int] = None
    field_name: Optional[str] = None
    field_code: Optional[str] = None
    field_type: Optional[str] = None
    values: list[FieldValue] = Field(default_factory=list)


class Tag(AmoModel):
    id: Optional[int] = None
    name: str


class Embedded(AmoModel):
    tags: Optional[list[Tag]] = None
    companies: Optional[list["Company"]] = None
    contacts: Optional[list["Contact"]] = None
    leads: Optional[list["Lead"]] = None
    catalog_elements: Optional[list[dict[str, Any]]] = None


# ==================== CRM entities ====================

class Contact(AmoModel):
    id: Optional[int] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    responsible_user_id: Optional[int] = None
    group_id: Optional[int] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    closest_task_at: Optional[int] = None
    custom_fields_values: Optional[list[CustomFieldValue]] = None
    account_id: Optional[int] = None
    links: Optional[Links] = Field(default=None, alias="_links")
    embedded: Optional[Embedded] = Field(default=None, alias="_embedded")


class Company(AmoModel):
    id: Optional[int] = None
    name: Optional[str] = None
    responsible_user_id: Optional[int] = None
    group_id: Optional[int] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    closest_task_at: Optional[int] = None
    custom_fields_values: Optional[list[CustomFieldValue]] = None
    account_id: Optional[int] = None
    links: Optional[Links] = Field(default=None, alias="_links")
    embedded: Optional[Embedded] = Field(default=None, alias="_embedded")


class Lead(AmoModel):
    """A lead (deal)."""
    id: Optional[int] = None
    name: Optional[str] = None
    price: Optional[int] = None
    responsible_user_id: Optional[int] = None
    group_id: Optional[int] = None
    status_id: Optional[int] = None
    pipeline_id: Optional[int] = None
    loss_reason_id: Optional[int] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    closed_at: Optional[int] = None
    closest_task_at: Optional[int] = None
    is_closed: Optional[bool] = None
    custom_fields_values: Optional[list[CustomFieldValue]] = None
    score: Optional[int] = None
    account_id: Optional[int] = None
    labor_cost: Optional[int] = None
    links: Optional[Links] = Field(default=None, alias="_links")
    embedded: Optional[Embedded] = Field(default=None, alias="_embedded")


class TaskResult(AmoModel):
    text: str = ""


class Task(AmoModel):
    id: Optional[int] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    responsible_user_id: Optional[int] = None
    group_id: Optional[int] = None
    entity_id: Optional[int] = None
    entity_type: Optional[str] = None  # leads, contacts, companies, customers
    is_completed: Optional[bool] = None
    task_type_id: Optional[int] = None
    text: Optional[str] = None
    duration: Optional[int] = None
    complete_till: Optional[int] = None
    result: Optional[TaskResult] = None
    account_id: Optional[int] = None

    @field_validator("result", mode="before")
    @classmethod
    def _normalize_result(cls, value):
        # The API sends {"text": ...}, [{"text": ...}], [] or null
        if value is None or isinstance(value, TaskResult):
            return value
        if isinstance(value, list):
            return value[0] if value else {}
        return value


class NoteParams(AmoModel):
    """Note payload. Which keys are set depends on the note type."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    text: Optional[str] = None
    service: Optional[str] = None
    phone: Optional[str] = None
    uniq: Optional[str] = None
    duration: Optional[int] = None
    source: Optional[str] = None
    link: Optional[str] = None


class Note(AmoModel):
    id: Optional[int] = None
    entity_id: Optional[int] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    responsible_user_id: Optional[int] = None
    group_id: Optional[int] = None
    note_type: str = NoteType.COMMON
    params: Optional[NoteParams] = None
    account_id: Optional[int] = None


# ==================== Users, roles, account ====================

class EntityRights(AmoModel):
    view: Optional[str] = None
    edit: Optional[str] = None
    add: Optional[str] = None
    delete: Optional[str] = None
    export: Optional[str] = None


class TaskRights(AmoModel):
    edit: Optional[str] = None
    delete: Optional[str] = None


class StatusEntityRights(AmoModel):
    view: Optional[str] = None
    edit: Optional[str] = None
    delete: Optional[str] = None
    export: Optional[str] = None


class StatusRights(AmoModel):
    entity_type: Optional[str] = None
    pipeline_id: Optional[int] = None
    status_id: Optional[int] = None
    rights: Optional[StatusEntityRights] = None


class RoleRights(AmoModel):
    leads: Optional[EntityRights] = None
    contacts: Optional[EntityRights] = None
    companies: Optional[EntityRights] = None
    tasks: Optional[TaskRights] = None
    mail_access: Optional[bool] = None
    catalog_access: Optional[bool] = None
    status_rights: Optional[list[StatusRights]] = None


class Rights(RoleRights):
    is_admin: Optional[bool] = None
    is_free: Optional[bool] = None
    is_active: Optional[bool] = None
    group_id: Optional[int] = None
    role_id: Optional[int] = None


class Group(AmoModel):
    id: int
    name: str


class RoleShort(AmoModel):
    id: int
    name: str
    links: Optional[Links] = Field(default=None, alias="_links")


class UserEmbedded(AmoModel):
    roles: Optional[list[RoleShort]] = None
    groups: Optional[list[Group]] = None


class User(AmoModel):
    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    lang: Optional[str] = None
    rights: Optional[Rights] = None
    uuid: Optional[str] = None
    amojo_id: Optional[str] = None
    user_rank: Optional[str] = None
    phone_number: Optional[str] = None
    embedded: Optional[UserEmbedded] = Field(default=None, alias="_embedded")
    links: Optional[Links] = Field(default=None, alias="_links")


class UserShort(AmoModel):
    id: int


class RoleEmbedded(AmoModel):
    users: Optional[list[UserShort]] = None


class Role(AmoModel):
    id: Optional[int] = None
    name: Optional[str] = None
    rights: Optional[RoleRights] = None
    embedded: Optional[RoleEmbedded] = Field(default=None, alias="_embedded")
    links: Optional[Links] = Field(default=None, alias="_links")


class AccountEmbedded(AmoModel):
    users: Optional[list[User]] = None
    groups: Optional[list[Group]] = None


class Account(AmoModel):
    id: int
    name: str
    subdomain: str
    created_at: Optional[int] = None
    created_by: Optional[int] = None
    updated_at: Optional[int] = None
    updated_by: Optional[int] = None
    current_user_id: Optional[int] = None
    country: Optional[str] = None
    currency: Optional[str] = None
    customers_mode: Optional[str] = None
    is_unsorted_on: Optional[bool] = None
    mobile_feature_version: Optional[int] = None
    is_loss_reason_enabled: Optional[bool] = None
    is_helpbot_enabled: Optional[bool] = None
    is_technical_account: Optional[bool] = None
    contact_name_display_order: Optional[int] = None
    amojo_id: Optional[str] = None
    uuid: Optional[str] = None
    version: Optional[int] = None
    embedded: Optional[AccountEmbedded] = Field(default=None, alias="_embedded")


# ==================== Pipelines, catalogs, misc ====================

class Status(AmoModel):
    id: int
    name: str
    sort: Optional[int] = None
    is_editable: Optional[bool] = None
    pipeline_id: Optional[int] = None
    color: Optional[str] = None
    type: Optional[int] = None
    account_id: Optional[int] = None


class PipelineEmbedded(AmoModel):
    statuses: list[Status] = Field(default_factory=list)


class Pipeline(AmoModel):
    id: int
    name: str
    sort: Optional[int] = None
    is_main: Optional[bool] = None
    is_unsorted_on: Optional[bool] = None
    is_archive: Optional[bool] = None
    account_id: Optional[int] = None
    embedded: PipelineEmbedded = Field(default_factory=PipelineEmbedded, alias="_embedded")


class Catalog(AmoModel):
    id: Optional[int] = None
    name: str
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    sort: Optional[int] = None
    type: Optional[str] = None
    can_add_elements: Optional[bool] = None
    can_show_in_cards: Optional[bool] = None
    can_link_multiple: Optional[bool] = None
    can_be_deleted: Optional[bool] = None
    sdk_widget_code: Optional[str] = None
    account_id: Optional[int] = None


class TaskTypeItem(AmoModel):
    id: int
    name: str


class Event(AmoModel):
    id: Union[int, str]
    type: str
    entity_id: Optional[int] = None
    entity_type: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[int] = None
    value_before: Optional[Union[list[dict[str, Any]], dict[str, Any]]] = None
    value_after: Optional[Union[list[dict[str, Any]], dict[str, Any]]] = None
    account_id: Optional[int] = None


class Webhook(AmoModel):
    id: Optional[Union[int, str]] = None
    destination: str
    settings: list[str] = Field(default_factory=list)
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    account_id: Optional[int] = None
    created_by: Optional[int] = None
    sort: Optional[int] = None
    disabled: Optional[bool] = None


# ==================== List responses ====================

ItemT = TypeVar("ItemT")


class ListPage(BaseModel, Generic[ItemT]):
    """One page of a list endpoint: the items plus the HAL pagination links."""
    items: list[ItemT] = Field(default_factory=list)
    links: Links = Field(default_factory=Links)
    page: Optional[int] = None
    page_count: Optional[int] = None
    total_items: Optional[int] = None

    def has_data(self) -> bool:
        return bool(self.items) or self.links.has_self()


Embedded.model_rebuild()
Contact.model_rebuild()
Company.model_rebuild()
Lead.model_rebuild()
