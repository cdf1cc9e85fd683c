"""Configuration management for Discord Vault Sync."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from discord_vault_sync.constants import (
    DEFAULT_SETTINGS_FILE,
    DISCORD_API_BASE,
    MAX_RETRIES,
    MESSAGE_PROCESSING_DELAY,
    REQUEST_INTERVAL_DELAY,
    REQUEST_TIMEOUT,
    RETRY_BASE_DELAY,
)


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables.

    These describe how the engine runs. What it syncs (token, channel,
    directories, cursor) lives in the vault's persisted ``SyncSettings``;
    ``bot_token`` and ``channel_id`` here only override those values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DISCORD_SYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    # Vault
    vault_path: Path = Field(default=Path("."), description="Root directory of the vault")
    settings_file: str = Field(
        default=DEFAULT_SETTINGS_FILE,
        description="Vault-relative path of the persisted plugin settings",
    )

    # Discord overrides
    bot_token: SecretStr | None = Field(default=None, description="Discord bot token override")
    channel_id: str | None = Field(default=None, description="Discord channel ID override")

    # Remote API
    api_base: str = Field(default=DISCORD_API_BASE, description="Discord REST API base URL")
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0, description="HTTP timeout")
    max_retries: int = Field(default=MAX_RETRIES, ge=0, description="Retries per request")
    retry_base_delay: float = Field(
        default=RETRY_BASE_DELAY, ge=0, description="Base backoff delay in seconds"
    )

    # Throttling
    message_delay: float = Field(
        default=MESSAGE_PROCESSING_DELAY, ge=0, description="Delay between messages"
    )
    page_delay: float = Field(default=REQUEST_INTERVAL_DELAY, ge=0, description="Delay between pages")
    failure_policy: Literal["skip", "retry"] = Field(
        default="skip", description="What happens to messages that fail to process"
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def settings_path(self) -> Path:
        """Absolute path of the persisted plugin settings file."""
        return self.vault_path / self.settings_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
