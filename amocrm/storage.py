"""
Token persistence.

FileTokenStorage keeps one `<domain>.json` per account. With an encryption
key the file is Fernet-encrypted (AES-128-CBC + HMAC), so refresh tokens are
not left in plaintext on disk. Generate a key with:
    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from .auth import Token
from .errors import AmoCRMConfigError, TokenError

logger = logging.getLogger(__name__)


class TokenStorage(ABC):
    """Where OAuth2 tokens live between processes. Keyed by account domain."""

    @abstractmethod
    async def save(self, domain: str, token: Token) -> None:
        """Persist the token, replacing any previous one."""

    @abstractmethod
    async def load(self, domain: str) -> Optional[Token]:
        """Return the stored token, or None if there is none."""

    async def has_token(self, domain: str) -> bool:
        return await self.load(domain) is not None


class MemoryTokenStorage(TokenStorage):
    def __init__(self):
        self._tokens: dict[str, Token] = {}

    async def save(self, domain: str, token: Token) -> None:
        self._tokens[domain] = token

    async def load(self, domain: str) -> Optional[Token]:
        return self._tokens.get(domain)


class FileTokenStorage(TokenStorage):
    def __init__(self, directory, encryption_key: Optional[str] = None):
        self.directory = Path(directory)
        self._fernet = None
        if encryption_key:
            try:
                self._fernet = Fernet(encryption_key.encode())
            except (ValueError, TypeError) as e:
                raise AmoCRMConfigError(f"Invalid token encryption key: {e}") from e

    def _path(self, domain: str) -> Path:
        return self.directory / f"{domain}.json"

    def _write(self, domain: str, token: Token) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        data = token.model_dump_json(indent=2).encode()
        if self._fernet:
            data = self._fernet.encrypt(data)
        path = self._path(domain)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(data)

    def _read(self, domain: str) -> Optional[Token]:
        path = self._path(domain)
        if not path.exists():
            return None
        data = path.read_bytes()
        if self._fernet:
            try:
                data = self._fernet.decrypt(data)
            except InvalidToken as e:
                raise TokenError(f"Cannot decrypt token file {path}: wrong key or corrupted file") from e
        try:
            return Token.model_validate_json(data)
        except ValidationError as e:
            raise TokenError(f"failed to unmarshal token from {path}: {e}") from e

    async def save(self, domain: str, token: Token) -> None:
        await asyncio.to_thread(self._write, domain, token)
        logger.debug(f"Saved amoCRM token for {domain}")

    async def load(self, domain: str) -> Optional[Token]:
        return await asyncio.to_thread(self._read, domain)

    async def has_token(self, domain: str) -> bool:
        return await asyncio.to_thread(self._path(domain).exists)
