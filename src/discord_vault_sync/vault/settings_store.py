"""Persisted plugin settings and sync cursor.

Stored as a camelCase JSON blob so it stays compatible with the data
file the Obsidian plugin writes.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from discord_vault_sync.constants import (
    DEFAULT_CLIPPING_DIRECTORY,
    DEFAULT_MESSAGE_DIRECTORY,
    DEFAULT_MESSAGE_PREFIX,
)
from discord_vault_sync.logging import get_logger

log = get_logger("discord_vault_sync.vault.settings_store")


class SyncSettings(BaseModel):
    """What to sync and where the last run stopped."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    message_directory_name: str = DEFAULT_MESSAGE_DIRECTORY
    clipping_directory_name: str = DEFAULT_CLIPPING_DIRECTORY
    bot_token: str = ""
    channel_id: str = ""
    message_prefix: str = DEFAULT_MESSAGE_PREFIX
    enable_auto_sync_on_startup: bool = True
    last_processed_message_id: str | None = None

    @field_validator("bot_token", "channel_id", mode="before")
    @classmethod
    def strip_credentials(cls, v: Any) -> Any:
        """Trim whitespace pasted along with credentials."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("message_directory_name", mode="before")
    @classmethod
    def default_message_directory(cls, v: Any) -> Any:
        return _or_default(v, DEFAULT_MESSAGE_DIRECTORY)

    @field_validator("clipping_directory_name", mode="before")
    @classmethod
    def default_clipping_directory(cls, v: Any) -> Any:
        return _or_default(v, DEFAULT_CLIPPING_DIRECTORY)

    @field_validator("message_prefix", mode="before")
    @classmethod
    def default_message_prefix(cls, v: Any) -> Any:
        return _or_default(v, DEFAULT_MESSAGE_PREFIX)

    @field_validator("last_processed_message_id", mode="before")
    @classmethod
    def blank_cursor_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_configured(self) -> bool:
        """Whether both the bot token and channel ID are set."""
        return bool(self.bot_token and self.channel_id)


def _or_default(value: Any, default: str) -> Any:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip() or default
    return value


class SettingsStore:
    """Reads and writes :class:`SyncSettings` as a JSON file."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> SyncSettings:
        """Load settings, filling missing keys with defaults.

        A missing file yields defaults. An unreadable file is logged and
        also yields defaults; notes are never overwritten, so re-syncing
        from the beginning is safe.
        """
        if not self._path.exists():
            return SyncSettings()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("settings file does not contain an object")
            return SyncSettings.model_validate(raw)
        except (OSError, ValueError, ValidationError) as exc:
            log.warning("settings_load_failed", path=str(self._path), error=str(exc))
            return SyncSettings()

    def save(self, settings: SyncSettings) -> None:
        """Atomically write settings to disk."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(
            settings.model_dump(by_alias=True), ensure_ascii=False, indent=2
        )
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, str(self._path))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        log.debug(
            "settings_saved",
            path=str(self._path),
            cursor=settings.last_processed_message_id,
        )
