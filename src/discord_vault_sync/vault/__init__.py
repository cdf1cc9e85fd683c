"""Local vault persistence: document store, sink, and plugin settings."""

from discord_vault_sync.vault.settings_store import SettingsStore, SyncSettings
from discord_vault_sync.vault.sink import DocumentSink
from discord_vault_sync.vault.store import Vault

__all__ = [
    "DocumentSink",
    "SettingsStore",
    "SyncSettings",
    "Vault",
]
