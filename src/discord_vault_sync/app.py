"""Application wiring.

Builds the vault, settings store, parser, and orchestrator from runtime
``Settings`` and exposes the two host entry points: startup auto-sync and
the "sync now" command.
"""

from __future__ import annotations

import asyncio

import httpx

from discord_vault_sync.config import Settings
from discord_vault_sync.discord.client import ChannelClient
from discord_vault_sync.discord.retry import SleepFn
from discord_vault_sync.logging import get_logger
from discord_vault_sync.notices import LogNotifier, Notifier
from discord_vault_sync.parser import MessageClassifier, MessageParser
from discord_vault_sync.sync import FailurePolicy, SyncOrchestrator, SyncResult
from discord_vault_sync.vault import DocumentSink, SettingsStore, SyncSettings, Vault

log = get_logger("discord_vault_sync.app")


def load_sync_settings(store: SettingsStore, config: Settings) -> SyncSettings:
    """Load persisted settings and apply environment overrides."""
    sync_settings = store.load()
    overrides: dict[str, str] = {}
    if config.bot_token is not None:
        overrides["bot_token"] = config.bot_token.get_secret_value().strip()
    if config.channel_id:
        overrides["channel_id"] = config.channel_id.strip()
    if overrides:
        sync_settings = sync_settings.model_copy(update=overrides)
    return sync_settings


class DiscordSyncApp:
    """The host-facing sync application."""

    def __init__(
        self,
        config: Settings,
        *,
        notifier: Notifier | None = None,
        parser: MessageClassifier | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._config = config
        self._notifier = notifier or LogNotifier()
        self._http_client = http_client
        self._sleep = sleep
        self._store = SettingsStore(config.settings_path)
        self._vault = Vault(config.vault_path)
        self._sync_settings = load_sync_settings(self._store, config)
        self._orchestrator = SyncOrchestrator(
            client_factory=self._build_client,
            parser=parser or MessageParser(),
            sink=DocumentSink(self._vault),
            store=self._store,
            settings=self._sync_settings,
            notifier=self._notifier,
            sleep=sleep,
            message_delay=config.message_delay,
            page_delay=config.page_delay,
            failure_policy=FailurePolicy(config.failure_policy),
        )

    @property
    def sync_settings(self) -> SyncSettings:
        return self._sync_settings

    @property
    def orchestrator(self) -> SyncOrchestrator:
        return self._orchestrator

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    def _build_client(self, sync_settings: SyncSettings) -> ChannelClient:
        return ChannelClient(
            sync_settings.bot_token,
            sync_settings.channel_id,
            http_client=self._http_client,
            api_base=self._config.api_base,
            timeout=self._config.request_timeout,
            max_retries=self._config.max_retries,
            retry_base_delay=self._config.retry_base_delay,
            sleep=self._sleep,
            notifier=self._notifier,
        )

    async def start(self) -> SyncResult | None:
        """Host startup hook: sync once if auto-sync is enabled.

        Errors are logged and never reach the host.
        """
        if not self._sync_settings.enable_auto_sync_on_startup:
            log.info("auto_sync_disabled")
            return None
        log.info("auto_sync_started")
        try:
            return await self.sync_now()
        except Exception:
            log.exception("auto_sync_failed")
            return None

    async def sync_now(self) -> SyncResult:
        """The "sync now" command."""
        return await self._orchestrator.sync()
