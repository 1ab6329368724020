"""
OAuth 2.0 support: the token model and the authorization-code flow.
Refresh-and-retry on 401 lives in AmoCRMClient; this module owns the grants.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from .errors import AmoCRMConnectionError, TokenError

if TYPE_CHECKING:
    from .client import AmoCRMClient

logger = logging.getLogger(__name__)


class OAuth2Config(BaseModel):
    client_id: str
    client_secret: str
    redirect_uri: str = ""


class Token(BaseModel):
    access_token: str
    refresh_token: str = ""
    token_type: str = "Bearer"
    expires_in: int = 0
    # None when the grant did not say; a 401 then triggers the refresh
    expires_at: Optional[datetime] = None

    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at

    @classmethod
    def from_grant(cls, payload: Dict[str, Any]) -> "Token":
        """Build a token from an /oauth2/access_token response body."""
        expires_in = int(payload.get("expires_in", 0) or 0)
        expires_at = None
        if expires_in > 0:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token", ""),
            token_type=payload.get("token_type", "Bearer"),
            expires_in=expires_in,
            expires_at=expires_at,
        )


async def request_token(
    http: httpx.AsyncClient, token_url: str, form: Dict[str, str]
) -> Token:
    """POST a grant to the token endpoint and parse the issued token."""
    try:
        response = await http.post(
            token_url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except httpx.TimeoutException as e:
        raise AmoCRMConnectionError(f"Token request timed out: {token_url}") from e
    except httpx.RequestError as e:
        raise AmoCRMConnectionError(f"Token request failed: {e}") from e

    if response.status_code != 200:
        logger.error(f"amoCRM token grant failed: {response.status_code} {response.text[:500]}")
        raise TokenError(f"token request failed with status {response.status_code}: {response.text}")

    try:
        return Token.from_grant(response.json())
    except (ValueError, KeyError) as e:
        raise TokenError(f"failed to decode token: {e}") from e


class AuthService:
    """Authorization-code flow for OAuth2-configured clients."""

    def __init__(self, client: "AmoCRMClient"):
        self.client = client

    def _require_oauth2(self) -> OAuth2Config:
        if self.client.oauth2 is None:
            raise TokenError("OAuth2 is not configured")
        return self.client.oauth2

    def authorization_url(self, state: str = "", mode: str = "") -> str:
        """URL to send the user to. `mode` is `popup` or `post_message`."""
        oauth2 = self._require_oauth2()
        params = {
            "client_id": oauth2.client_id,
            "redirect_uri": oauth2.redirect_uri,
            "response_type": "code",
        }
        if state:
            params["state"] = state
        if mode:
            params["mode"] = mode
        return f"https://{self.client.account_domain}/oauth?{urlencode(params)}"

    async def exchange_code(self, code: str) -> Token:
        """Exchange an authorization code for access and refresh tokens."""
        oauth2 = self._require_oauth2()
        token = await request_token(self.client.http, self.client.token_url, {
            "client_id": oauth2.client_id,
            "client_secret": oauth2.client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": oauth2.redirect_uri,
        })
        await self.client.set_token(token, persist=True, strict=True)
        logger.info(f"Obtained amoCRM token for {self.client.account_domain}")
        return token

    async def refresh_token(self) -> Token:
        return await self.client.refresh_token()

    @property
    def current_token(self) -> Optional[Token]:
        return self.client.token
