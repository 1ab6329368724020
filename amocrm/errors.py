"""Error types raised by the amoCRM client."""

from typing import Optional


class AmoCRMError(Exception):
    """Base class for every error raised by this package."""
    pass


class AmoCRMConfigError(AmoCRMError):
    """Raised when the client is missing a subdomain or credentials."""


class AmoCRMConnectionError(AmoCRMError):
    """Raised for timeouts and transport failures."""


class AmoCRMAPIError(AmoCRMError):
    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        self.message = message
        super().__init__(f"API error (status {status_code}): {message}")


class AmoCRMAuthError(AmoCRMAPIError):
    """Raised when amoCRM returns 401/403."""


class AmoCRMNotFoundError(AmoCRMAPIError):
    """Raised when amoCRM returns 404."""


class AmoCRMRateLimitError(AmoCRMAPIError):
    """Raised when amoCRM returns 429."""


class AmoCRMServerError(AmoCRMAPIError):
    """Raised for 5xx errors from amoCRM."""


class TokenError(AmoCRMError):
    """Raised when no OAuth2 token is available or a token grant fails."""


class EmptyResponseError(AmoCRMError):
    """Raised when a create/update call returns no entity."""


class PaginationError(AmoCRMError):
    pass


class ProbeError(PaginationError):
    """A page probe failed. The original exception is chained as __cause__."""

    def __init__(self, page: int, cause: Optional[BaseException] = None):
        self.page = page
        self.cause = cause
        super().__init__(f"failed to check page {page}: {cause}")


class SearchCancelledError(PaginationError):
    """The caller's cancel token fired while a page search was running."""

    def __init__(self, reason: str = "cancelled"):
        self.reason = reason
        super().__init__(f"page search {reason}")


def error_for_status(status_code: int, message: str) -> AmoCRMAPIError:
    """Map an HTTP status to the matching AmoCRMAPIError subclass."""
    if status_code in {401, 403}:
        return AmoCRMAuthError(status_code, message)
    if status_code == 404:
        return AmoCRMNotFoundError(status_code, message)
    if status_code == 429:
        return AmoCRMRateLimitError(status_code, message)
    if 500 <= status_code <= 599:
        return AmoCRMServerError(status_code, message)
    return AmoCRMAPIError(status_code, message)
