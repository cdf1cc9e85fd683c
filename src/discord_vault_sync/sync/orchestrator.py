"""Sync orchestrator.

Drives the poll loop for one channel:

1. Fetch a page of messages newer than the cursor (newest first).
2. Process the page oldest first: classify, transform, save.
3. Advance the cursor to the page's newest message and persist it.
4. Repeat until an empty page, then post a summary to the channel.

Runs are single-flight. A second ``sync()`` while one is active returns
immediately without touching the network.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from discord_vault_sync.constants import (
    MESSAGE_PROCESSING_DELAY,
    REQUEST_INTERVAL_DELAY,
    SUMMARY_NO_MESSAGES,
    SUMMARY_SAVED_TEMPLATE,
)
from discord_vault_sync.discord.models import ChannelMessage, is_newer
from discord_vault_sync.discord.retry import SleepFn
from discord_vault_sync.errors import MessageProcessingError, RunAlreadyActive
from discord_vault_sync.logging import bind_run_context, clear_run_context, get_logger
from discord_vault_sync.notices import Notifier
from discord_vault_sync.parser import MessageClassifier, ProcessedMessage
from discord_vault_sync.sync.state import RunState, RunStateMachine
from discord_vault_sync.vault.settings_store import SettingsStore, SyncSettings
from discord_vault_sync.vault.sink import DocumentSink

log = get_logger("discord_vault_sync.sync.orchestrator")

NOT_CONFIGURED_NOTICE = "Discord Sync: Bot token or channel ID is not configured."
ALREADY_RUNNING_NOTICE = "Discord Sync: a sync is already running."
FAILURE_NOTICE = "Failed to sync Discord messages. Check logs for details."


class ChannelApi(Protocol):
    """Remote operations the orchestrator needs from the channel client."""

    async def fetch_messages_since(self, cursor: str | None = None) -> list[ChannelMessage]: ...

    async def post_summary(self, text: str) -> bool: ...


ClientFactory = Callable[[SyncSettings], ChannelApi]


class SyncStatus(StrEnum):
    """Outcome of a ``sync()`` call."""

    COMPLETED = "completed"
    ALREADY_RUNNING = "already_running"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"


class MessageOutcome(StrEnum):
    """Outcome of processing a single message."""

    PROCESSED = "processed"
    SKIPPED = "skipped"  # Bot author or empty document
    EXISTING = "existing"  # Note already in the vault
    FAILED = "failed"  # Classifier/transformer error


class FailurePolicy(StrEnum):
    """What happens to a message whose processing failed.

    ``SKIP`` lets the page cursor move past it, so it is never retried.
    ``RETRY`` stops the cursor just before it and ends the run, so the
    next run starts with that message again.
    """

    SKIP = "skip"
    RETRY = "retry"


@dataclass
class SyncResult:
    """Summary of one sync invocation."""

    status: SyncStatus
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    pages: int = 0
    cursor_before: str | None = None
    cursor_after: str | None = None
    error: str | None = None
    failed_message_ids: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": str(self.status),
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "pages": self.pages,
            "cursor_before": self.cursor_before,
            "cursor_after": self.cursor_after,
            "error": self.error,
            "failed_message_ids": list(self.failed_message_ids),
        }


def summary_text(processed: int) -> str:
    """Text of the completion message posted to the channel."""
    if processed == 0:
        return SUMMARY_NO_MESSAGES
    return SUMMARY_SAVED_TEMPLATE.format(count=processed)


class SyncOrchestrator:
    """Mirrors new channel messages into the vault, one run at a time."""

    def __init__(
        self,
        *,
        client_factory: ClientFactory,
        parser: MessageClassifier,
        sink: DocumentSink,
        store: SettingsStore,
        settings: SyncSettings,
        notifier: Notifier | None = None,
        sleep: SleepFn = asyncio.sleep,
        message_delay: float = MESSAGE_PROCESSING_DELAY,
        page_delay: float = REQUEST_INTERVAL_DELAY,
        failure_policy: FailurePolicy = FailurePolicy.SKIP,
        on_state_change: Callable[[RunState], None] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client_factory: Builds the channel client for a run from the
                current settings. Only called once settings are validated.
            parser: Message classifier/transformer.
            sink: Destination for processed messages.
            store: Persists ``settings`` (and with it the cursor).
            settings: Live plugin settings. The cursor is read from and
                written to ``last_processed_message_id``.
            notifier: Receives user-visible notices.
            sleep: Awaitable sleep used for throttling.
            message_delay: Seconds to wait after each message.
            page_delay: Seconds to wait after each page.
            failure_policy: Cursor behaviour for failed messages.
            on_state_change: Called with every new run state.
        """
        self._client_factory = client_factory
        self._parser = parser
        self._sink = sink
        self._store = store
        self._settings = settings
        self._notifier = notifier
        self._sleep = sleep
        self._message_delay = message_delay
        self._page_delay = page_delay
        self._failure_policy = FailurePolicy(failure_policy)
        self._machine = RunStateMachine(on_change=on_state_change)
        self._active = False
        self._persisted_cursor = settings.last_processed_message_id

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._machine.state

    @property
    def is_running(self) -> bool:
        return self._active

    @property
    def settings(self) -> SyncSettings:
        return self._settings

    def _acquire(self) -> None:
        """Take the single-flight lock.

        Raises:
            RunAlreadyActive: Another run holds the lock.
        """
        if self._active:
            raise RunAlreadyActive("A sync run is already in progress")
        self._active = True

    def _release(self) -> None:
        if self._machine.state in (RunState.RUNNING, RunState.DRAINING):
            self._machine.transition(RunState.FAILED)
        if self._machine.state != RunState.IDLE:
            self._machine.transition(RunState.IDLE)
        self._active = False

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def sync(self) -> SyncResult:
        """Run one sync to completion.

        Never raises for sync failures; the outcome is in the result.
        """
        cursor = self._settings.last_processed_message_id

        try:
            self._acquire()
        except RunAlreadyActive:
            log.info("sync_already_running")
            self._notify(ALREADY_RUNNING_NOTICE)
            return SyncResult(
                status=SyncStatus.ALREADY_RUNNING, cursor_before=cursor, cursor_after=cursor
            )

        if not self._settings.is_configured:
            self._active = False
            log.warning("sync_not_configured")
            self._notify(NOT_CONFIGURED_NOTICE)
            return SyncResult(
                status=SyncStatus.NOT_CONFIGURED, cursor_before=cursor, cursor_after=cursor
            )

        self._persisted_cursor = cursor
        bind_run_context()
        try:
            self._machine.transition(RunState.RUNNING)
            return await self._run(cursor)
        finally:
            self._release()
            clear_run_context()

    async def _run(self, cursor: str | None) -> SyncResult:
        result = SyncResult(status=SyncStatus.COMPLETED, cursor_before=cursor, cursor_after=cursor)
        log.info("sync_started", cursor=cursor, channel_id=self._settings.channel_id)

        try:
            client = self._client_factory(self._settings)
            self._machine.transition(RunState.DRAINING)
            await self._drain(client, result)
        except Exception as exc:
            self._machine.transition(RunState.FAILED)
            result.status = SyncStatus.FAILED
            result.error = str(exc)
            log.exception(
                "sync_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                processed=result.processed,
                cursor=result.cursor_after,
            )
            self._notify(FAILURE_NOTICE)
            return result

        self._machine.transition(RunState.COMPLETING)
        try:
            await client.post_summary(summary_text(result.processed))
        except Exception as exc:
            log.warning("summary_post_failed", error=str(exc))
        log.info("sync_completed", **result.to_dict())
        return result

    async def _drain(self, client: ChannelApi, result: SyncResult) -> None:
        """Fetch and process pages until the channel has nothing newer."""
        while True:
            cursor = result.cursor_after
            page = await client.fetch_messages_since(cursor)
            if not page:
                log.debug("no_more_messages", cursor=cursor)
                return

            result.pages += 1
            candidate = page[0].id
            log.info("page_fetched", count=len(page), after=cursor, newest=candidate)

            next_cursor, halted = await self._process_page(page, cursor, result)

            if next_cursor is not None and is_newer(next_cursor, cursor):
                self._persist_cursor(next_cursor)
                result.cursor_after = next_cursor
            elif not halted:
                # Refetching from the same cursor would loop forever
                log.warning("cursor_not_advanced", cursor=cursor, candidate=next_cursor)
                return

            if halted:
                return
            await self._sleep(self._page_delay)

    async def _process_page(
        self, page: list[ChannelMessage], cursor: str | None, result: SyncResult
    ) -> tuple[str | None, bool]:
        """Process one page oldest first.

        Returns:
            The cursor to advance to and whether draining must stop.
        """
        last_done = cursor
        for message in reversed(page):
            outcome = await self.process_message(message)
            if outcome == MessageOutcome.PROCESSED:
                result.processed += 1
            elif outcome in (MessageOutcome.SKIPPED, MessageOutcome.EXISTING):
                result.skipped += 1
            else:
                result.failed += 1
                result.failed_message_ids.append(message.id)
                if self._failure_policy == FailurePolicy.RETRY:
                    log.info("page_halted_for_retry", message_id=message.id, cursor=last_done)
                    return last_done, True
            last_done = message.id
            await self._sleep(self._message_delay)

        return page[0].id, False

    # ------------------------------------------------------------------
    # Per-message pipeline
    # ------------------------------------------------------------------

    async def process_message(self, message: ChannelMessage) -> MessageOutcome:
        """Classify, transform, and save one message.

        Classifier failures are contained here. Persistence conflicts
        propagate and fail the run.
        """
        if message.is_bot:
            log.debug("bot_message_skipped", message_id=message.id)
            return MessageOutcome.SKIPPED

        try:
            artifact = await self._transform(message)
        except MessageProcessingError as exc:
            log.warning("message_skipped", message_id=message.id, error=exc.reason)
            return MessageOutcome.FAILED

        if not artifact.document:
            log.debug("empty_document_skipped", message_id=message.id)
            return MessageOutcome.SKIPPED

        directory = (
            self._settings.clipping_directory_name
            if artifact.is_clipping
            else self._settings.message_directory_name
        )
        if not self._sink.save(directory, artifact, fallback_name=message.id):
            return MessageOutcome.EXISTING
        return MessageOutcome.PROCESSED

    async def _transform(self, message: ChannelMessage) -> ProcessedMessage:
        try:
            return await self._parser.process_message(
                message.content, self._settings.message_prefix, message.timestamp
            )
        except Exception as exc:
            raise MessageProcessingError(message.id, str(exc) or type(exc).__name__) from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _persist_cursor(self, cursor: str | None) -> None:
        """Save the cursor if it moved since the last write."""
        if cursor is None or cursor == self._persisted_cursor:
            return
        previous = self._settings.last_processed_message_id
        self._settings.last_processed_message_id = cursor
        try:
            self._store.save(self._settings)
        except Exception as exc:
            self._settings.last_processed_message_id = previous
            log.error("cursor_persist_failed", cursor=cursor, error=str(exc))
            raise
        self._persisted_cursor = cursor
        log.debug("cursor_persisted", cursor=cursor)

    def _notify(self, text: str) -> None:
        if self._notifier is not None:
            self._notifier.notify(text)
