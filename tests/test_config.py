"""
Config Tests
Tests ClientSettings.from_env against patched environment variables.
"""
import pytest
import sys
import os
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from amocrm.config import DEFAULT_DOMAIN, DEFAULT_RATE_LIMIT, DEFAULT_TIMEOUT, ClientSettings

ENV_VARS = [
    "AMOCRM_SUBDOMAIN",
    "AMOCRM_DOMAIN",
    "AMOCRM_TOKEN",
    "AMOCRM_CLIENT_ID",
    "AMOCRM_CLIENT_SECRET",
    "AMOCRM_REDIRECT_URI",
    "AMOCRM_RATE_LIMIT",
    "AMOCRM_TIMEOUT",
    "AMOCRM_DEBUG",
    "AMOCRM_TOKEN_DIR",
    "AMOCRM_TOKEN_ENCRYPTION_KEY",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch("amocrm.config.load_dotenv"):
        yield monkeypatch


class TestClientSettingsFromEnv:
    def test_defaults(self, clean_env):
        settings = ClientSettings.from_env()
        assert settings.subdomain == ""
        assert settings.domain == DEFAULT_DOMAIN
        assert settings.permanent_token is None
        assert settings.rate_limit == DEFAULT_RATE_LIMIT
        assert settings.timeout == DEFAULT_TIMEOUT
        assert not settings.debug
        assert not settings.uses_oauth2

    def test_permanent_token(self, clean_env):
        clean_env.setenv("AMOCRM_SUBDOMAIN", " mycompany ")
        clean_env.setenv("AMOCRM_TOKEN", "long-lived")
        settings = ClientSettings.from_env()
        assert settings.subdomain == "mycompany"
        assert settings.permanent_token == "long-lived"

    def test_oauth2(self, clean_env):
        clean_env.setenv("AMOCRM_CLIENT_ID", "id")
        clean_env.setenv("AMOCRM_CLIENT_SECRET", "secret")
        clean_env.setenv("AMOCRM_TOKEN_DIR", "/tmp/amocrm-tokens")
        settings = ClientSettings.from_env()
        assert settings.uses_oauth2
        assert settings.token_dir == "/tmp/amocrm-tokens"

    def test_numbers_and_flags(self, clean_env):
        clean_env.setenv("AMOCRM_RATE_LIMIT", "3")
        clean_env.setenv("AMOCRM_TIMEOUT", "12.5")
        clean_env.setenv("AMOCRM_DEBUG", "yes")
        settings = ClientSettings.from_env()
        assert settings.rate_limit == 3
        assert settings.timeout == 12.5
        assert settings.debug

    def test_invalid_numbers_fall_back(self, clean_env):
        clean_env.setenv("AMOCRM_RATE_LIMIT", "fast")
        clean_env.setenv("AMOCRM_TIMEOUT", "soon")
        settings = ClientSettings.from_env()
        assert settings.rate_limit == DEFAULT_RATE_LIMIT
        assert settings.timeout == DEFAULT_TIMEOUT

    def test_env_file(self, clean_env):
        with patch("amocrm.config.load_dotenv") as load:
            ClientSettings.from_env("custom.env")
        load.assert_called_once_with("custom.env")
