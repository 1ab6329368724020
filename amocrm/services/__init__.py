"""
Per-entity API services.
Each service is bound to an AmoCRMClient and exposed as one of its attributes.
"""

from .base import BaseService, EntityService, parse_list_page
from .entities import ContactsService, CompaniesService, LeadsService, TasksService
from .notes import NotesService
from .account import AccountService, UsersService, RolesService
from .reference import PipelinesService, CatalogsService, TaskTypesService, TagsService, EventsService
from .webhooks import WebhooksService


__all__ = [
    "BaseService",
    "EntityService",
    "parse_list_page",
    "ContactsService",
    "CompaniesService",
    "LeadsService",
    "TasksService",
    "NotesService",
    "AccountService",
    "UsersService",
    "RolesService",
    "PipelinesService",
    "CatalogsService",
    "TaskTypesService",
    "TagsService",
    "EventsService",
    "WebhooksService",
]
