"""
amoCRM API v4 client.
Async client, entity services, token storage and page-count discovery.
"""

from .auth import OAuth2Config, Token
from .client import AmoCRMClient
from .config import ClientSettings
from .errors import (
    AmoCRMAPIError,
    AmoCRMAuthError,
    AmoCRMConfigError,
    AmoCRMConnectionError,
    AmoCRMError,
    AmoCRMNotFoundError,
    AmoCRMRateLimitError,
    AmoCRMServerError,
    EmptyResponseError,
    PaginationError,
    ProbeError,
    SearchCancelledError,
    TokenError,
)
from .filters import (
    CompaniesFilter,
    ContactsFilter,
    EventsFilter,
    LeadsFilter,
    NotesFilter,
    RolesFilter,
    TagsFilter,
    TasksFilter,
    UsersFilter,
)
from .models import (
    Account,
    Company,
    Contact,
    CustomFieldValue,
    EntityType,
    FieldValue,
    Lead,
    Links,
    ListPage,
    Note,
    NoteType,
    Pipeline,
    Role,
    Task,
    TaskType,
    User,
    Webhook,
)
from .pagination import (
    DEFAULT_MAX_PAGE,
    CancelToken,
    ConcurrentBoundaryFinder,
    PaginationService,
    Probe,
    SequentialBoundaryFinder,
    find_total_pages,
    find_total_pages_concurrent,
)
from .rate_limiter import RateLimiter
from .storage import FileTokenStorage, MemoryTokenStorage, TokenStorage


__all__ = [
    "AmoCRMClient",
    "ClientSettings",
    "OAuth2Config",
    "Token",
    "RateLimiter",
    "TokenStorage",
    "FileTokenStorage",
    "MemoryTokenStorage",
    # Pagination
    "DEFAULT_MAX_PAGE",
    "CancelToken",
    "ConcurrentBoundaryFinder",
    "PaginationService",
    "Probe",
    "SequentialBoundaryFinder",
    "find_total_pages",
    "find_total_pages_concurrent",
    # Errors
    "AmoCRMError",
    "AmoCRMAPIError",
    "AmoCRMAuthError",
    "AmoCRMConfigError",
    "AmoCRMConnectionError",
    "AmoCRMNotFoundError",
    "AmoCRMRateLimitError",
    "AmoCRMServerError",
    "EmptyResponseError",
    "PaginationError",
    "ProbeError",
    "SearchCancelledError",
    "TokenError",
    # Filters
    "CompaniesFilter",
    "ContactsFilter",
    "EventsFilter",
    "LeadsFilter",
    "NotesFilter",
    "RolesFilter",
    "TagsFilter",
    "TasksFilter",
    "UsersFilter",
    # Models
    "Account",
    "Company",
    "Contact",
    "CustomFieldValue",
    "EntityType",
    "FieldValue",
    "Lead",
    "Links",
    "ListPage",
    "Note",
    "NoteType",
    "Pipeline",
    "Role",
    "Task",
    "TaskType",
    "User",
    "Webhook",
]
