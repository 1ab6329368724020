"""
Client configuration.
Defaults for the amoCRM API plus an environment-backed settings model.
"""

import os
import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# amoCRM REST API
DEFAULT_DOMAIN = "amocrm.ru"
API_VERSION = "v4"
USER_AGENT = "amocrm-python/1.0"

# amoCRM allows 7 requests per second per integration
DEFAULT_RATE_LIMIT = 7
DEFAULT_RATE_LIMIT_WINDOW = 1.0  # seconds

DEFAULT_TIMEOUT = 30.0


def _strip_or_none(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _env_int(name: str, default: int) -> int:
    raw = _strip_or_none(os.environ.get(name))
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = _strip_or_none(os.environ.get(name))
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (_strip_or_none(os.environ.get(name)) or "").lower()
    if not raw:
        return default
    return raw in {"1", "true", "t", "yes", "y", "on"}


class ClientSettings(BaseModel):
    """Everything needed to build an AmoCRMClient."""
    subdomain: str = ""
    domain: str = DEFAULT_DOMAIN
    permanent_token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None
    rate_limit: int = DEFAULT_RATE_LIMIT
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False
    token_dir: Optional[str] = None
    token_encryption_key: Optional[str] = None

    @property
    def uses_oauth2(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "ClientSettings":
        """Read AMOCRM_* variables, loading a .env file first if present."""
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        return cls(
            subdomain=_strip_or_none(os.environ.get("AMOCRM_SUBDOMAIN")) or "",
            domain=_strip_or_none(os.environ.get("AMOCRM_DOMAIN")) or DEFAULT_DOMAIN,
            permanent_token=_strip_or_none(os.environ.get("AMOCRM_TOKEN")),
            client_id=_strip_or_none(os.environ.get("AMOCRM_CLIENT_ID")),
            client_secret=_strip_or_none(os.environ.get("AMOCRM_CLIENT_SECRET")),
            redirect_uri=_strip_or_none(os.environ.get("AMOCRM_REDIRECT_URI")),
            rate_limit=_env_int("AMOCRM_RATE_LIMIT", DEFAULT_RATE_LIMIT),
            timeout=_env_float("AMOCRM_TIMEOUT", DEFAULT_TIMEOUT),
            debug=_env_bool("AMOCRM_DEBUG"),
            token_dir=_strip_or_none(os.environ.get("AMOCRM_TOKEN_DIR")),
            token_encryption_key=_strip_or_none(os.environ.get("AMOCRM_TOKEN_ENCRYPTION_KEY")),
        )
