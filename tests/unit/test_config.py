"""Unit tests for the configuration module."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from discord_vault_sync.config import Settings, get_settings


def _make_settings(**overrides) -> Settings:
    """Create Settings isolated from any .env file."""
    defaults = {"_env_file": None}
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    """Remove DISCORD_SYNC_* variables from the test environment."""
    for key in list(os.environ):
        if key.upper().startswith("DISCORD_SYNC_"):
            monkeypatch.delenv(key, raising=False)


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        settings = _make_settings()
        assert settings.vault_path == Path(".")
        assert settings.settings_file == ".discord-sync/data.json"
        assert settings.bot_token is None
        assert settings.channel_id is None
        assert settings.api_base == "https://discord.com/api/v10"
        assert settings.max_retries == 3
        assert settings.failure_policy == "skip"
        assert settings.log_level == "INFO"

    def test_settings_path_is_under_vault(self, tmp_path):
        settings = _make_settings(vault_path=tmp_path)
        assert settings.settings_path == tmp_path / ".discord-sync" / "data.json"


class TestEnvironment:
    """Tests for environment variable loading."""

    def test_prefixed_variables_are_read(self, monkeypatch):
        monkeypatch.setenv("DISCORD_SYNC_CHANNEL_ID", "1234")
        monkeypatch.setenv("DISCORD_SYNC_BOT_TOKEN", "secret")
        monkeypatch.setenv("DISCORD_SYNC_MAX_RETRIES", "5")

        settings = _make_settings()

        assert settings.channel_id == "1234"
        assert settings.bot_token.get_secret_value() == "secret"
        assert settings.max_retries == 5

    def test_token_is_masked_in_repr(self):
        settings = _make_settings(bot_token="secret")
        assert "secret" not in repr(settings)


class TestValidation:
    """Tests for field validation."""

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(max_retries=-1)

    def test_zero_timeout_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(request_timeout=0)

    def test_unknown_failure_policy_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(failure_policy="ignore")


class TestIsDevelopment:
    """Tests for the is_development property."""

    def test_development(self):
        assert _make_settings(environment="Development").is_development is True

    def test_production(self):
        assert _make_settings().is_development is False


class TestGetSettings:
    """Tests for the cached accessor."""

    def test_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
