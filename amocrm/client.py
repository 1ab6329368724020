"""
amoCRM API v4 client.

Supports:
- Permanent (long-lived) tokens, recommended for server integrations
- OAuth 2.0 with automatic token refresh and persisted tokens
- Rate limiting (7 requests per second by default)
- One shared httpx.AsyncClient, safe for concurrent requests

Example:
    async with AmoCRMClient("mycompany", permanent_token="...") as client:
        account = await client.account.get()
        pages = await client.pagination.find_total_pages(
            client.pagination.create_contacts_page_checker()
        )
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from .auth import AuthService, OAuth2Config, Token, request_token
from .config import API_VERSION, DEFAULT_DOMAIN, DEFAULT_RATE_LIMIT, DEFAULT_TIMEOUT, USER_AGENT, ClientSettings
from .errors import AmoCRMAPIError, AmoCRMConfigError, AmoCRMConnectionError, TokenError, error_for_status
from .pagination import PaginationService
from .rate_limiter import RateLimiter
from .services import (
    AccountService,
    CatalogsService,
    CompaniesService,
    ContactsService,
    EventsService,
    LeadsService,
    NotesService,
    PipelinesService,
    RolesService,
    TagsService,
    TasksService,
    TaskTypesService,
    UsersService,
    WebhooksService,
)
from .storage import FileTokenStorage, TokenStorage

logger = logging.getLogger(__name__)


class AmoCRMClient:
    """Async client for one amoCRM account."""

    def __init__(
        self,
        subdomain: str,
        *,
        domain: str = DEFAULT_DOMAIN,
        permanent_token: Optional[str] = None,
        oauth2: Optional[OAuth2Config] = None,
        token_storage: Optional[TokenStorage] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        rate_limit: int = DEFAULT_RATE_LIMIT,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
    ):
        if not subdomain:
            raise AmoCRMConfigError("subdomain is required")
        if permanent_token and oauth2 is not None:
            raise AmoCRMConfigError("Configure either a permanent token or OAuth2, not both")

        self.subdomain = subdomain
        self.domain = domain
        self.base_url = f"https://{self.account_domain}/api/{API_VERSION}"
        self.permanent_token = permanent_token
        self.oauth2 = oauth2
        self.token_storage = token_storage
        self.debug = debug

        self._owns_http = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self.rate_limiter = rate_limiter or RateLimiter(max_requests=rate_limit)

        self._token: Optional[Token] = None
        self._token_loaded = False
        self._token_lock = asyncio.Lock()

        self.account = AccountService(self)
        self.contacts = ContactsService(self)
        self.companies = CompaniesService(self)
        self.leads = LeadsService(self)
        self.tasks = TasksService(self)
        self.notes = NotesService(self)
        self.webhooks = WebhooksService(self)
        self.catalogs = CatalogsService(self)
        self.users = UsersService(self)
        self.roles = RolesService(self)
        self.pipelines = PipelinesService(self)
        self.task_types = TaskTypesService(self)
        self.tags = TagsService(self)
        self.events = EventsService(self)
        self.auth = AuthService(self)
        self.pagination = PaginationService(self)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs) -> "AmoCRMClient":
        oauth2 = None
        storage = None
        if not settings.permanent_token and settings.uses_oauth2:
            oauth2 = OAuth2Config(
                client_id=settings.client_id,
                client_secret=settings.client_secret,
                redirect_uri=settings.redirect_uri or "",
            )
            if settings.token_dir:
                storage = FileTokenStorage(settings.token_dir, settings.token_encryption_key)

        return cls(
            settings.subdomain,
            domain=settings.domain,
            permanent_token=settings.permanent_token,
            oauth2=oauth2,
            token_storage=storage,
            rate_limit=settings.rate_limit,
            timeout=settings.timeout,
            debug=settings.debug,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **kwargs) -> "AmoCRMClient":
        return cls.from_settings(ClientSettings.from_env(env_file), **kwargs)

    @property
    def account_domain(self) -> str:
        return f"{self.subdomain}.{self.domain}"

    @property
    def token_url(self) -> str:
        return f"https://{self.account_domain}/oauth2/access_token"

    @property
    def token(self) -> Optional[Token]:
        return self._token

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "AmoCRMClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ==================== Tokens ====================

    async def set_token(self, token: Token, persist: bool = True, strict: bool = False) -> None:
        """Install a token; with `persist`, also write it to token storage.

        Storage failures raise only when `strict`; otherwise they are logged
        and the in-memory token stays in use.
        """
        self._token = token
        self._token_loaded = True
        if not persist or self.token_storage is None:
            return
        try:
            await self.token_storage.save(self.account_domain, token)
        except Exception as e:
            if strict:
                raise TokenError(f"failed to save token: {e}") from e
            logger.warning(f"Failed to save amoCRM token for {self.account_domain}: {e}")

    async def _load_token(self) -> Optional[Token]:
        if self._token is None and not self._token_loaded and self.token_storage is not None:
            self._token = await self.token_storage.load(self.account_domain)
            self._token_loaded = True
        return self._token

    async def refresh_token(self, stale: Optional[Token] = None) -> Token:
        """Trade the refresh token for a new access token.

        `stale` is the token a failed request used; when another coroutine
        has already replaced it, that newer token is returned as-is.
        """
        if self.oauth2 is None:
            raise TokenError("OAuth2 is not configured")

        async with self._token_lock:
            current = await self._load_token()
            if stale is not None and current is not None and current is not stale:
                return current
            if current is None or not current.refresh_token:
                raise TokenError("no refresh token available")

            token = await request_token(self.http, self.token_url, {
                "client_id": self.oauth2.client_id,
                "client_secret": self.oauth2.client_secret,
                "grant_type": "refresh_token",
                "refresh_token": current.refresh_token,
                "redirect_uri": self.oauth2.redirect_uri,
            })
            await self.set_token(token)
            logger.info(f"Refreshed amoCRM token for {self.account_domain}")
            return token

    async def _authorization(self) -> str:
        if self.permanent_token:
            return f"Bearer {self.permanent_token}"

        if self.oauth2 is not None:
            token = await self._load_token()
            if token is None:
                raise TokenError("no OAuth2 token available")
            if token.is_expired():
                token = await self.refresh_token(stale=token)
            return f"Bearer {token.access_token}"

        raise AmoCRMConfigError("no authentication method configured")

    # ==================== HTTP ====================

    async def _request(
        self,
        method: str,
        path: str,
        params=None,
        json: Any = None,
        retry_auth: bool = True,
    ) -> Any:
        """Rate-limited, authenticated request. Returns parsed JSON, or None for 204."""
        await self.rate_limiter.acquire(self.base_url)

        url = f"{self.base_url}{path}"
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            "Authorization": await self._authorization(),
        }
        used_token = self._token

        if self.debug:
            logger.debug(f"API Request: {method} {url} params={params}")

        try:
            response = await self.http.request(method, url, params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise AmoCRMConnectionError(f"Request timed out: {method} {url}") from e
        except httpx.RequestError as e:
            raise AmoCRMConnectionError(f"Request failed: {method} {url}: {e}") from e

        if self.debug:
            logger.debug(f"API Response: {response.status_code} {url}")

        if response.status_code == 401 and self.oauth2 is not None and retry_auth:
            logger.info("amoCRM returned 401, refreshing token and retrying")
            await self.refresh_token(stale=used_token)
            return await self._request(method, path, params=params, json=json, retry_auth=False)

        if response.status_code >= 400:
            logger.error(f"amoCRM API error: {response.status_code} {method} {url} - {response.text[:500]}")
            raise error_for_status(response.status_code, response.text)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise AmoCRMAPIError(response.status_code, f"invalid JSON response: {response.text[:200]}") from e

    async def get_json(self, path: str, params=None) -> Any:
        return await self._request("GET", path, params=params)

    async def post_json(self, path: str, body: Any) -> Any:
        return await self._request("POST", path, json=body)

    async def patch_json(self, path: str, body: Any) -> Any:
        return await self._request("PATCH", path, json=body)

    async def delete(self, path: str, body: Any = None) -> None:
        await self._request("DELETE", path, json=body)
