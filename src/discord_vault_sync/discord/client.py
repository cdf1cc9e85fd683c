"""Discord channel REST client.

Lists the messages of one channel page by page and posts the
completion summary back to it. Every call runs through
:class:`RetryExecutor`.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from discord_vault_sync.constants import (
    DISCORD_API_BASE,
    DISCORD_USER_AGENT,
    MAX_RETRIES,
    MESSAGES_PER_REQUEST,
    REQUEST_TIMEOUT,
    RETRY_BASE_DELAY,
)
from discord_vault_sync.discord.models import ChannelMessage
from discord_vault_sync.discord.retry import RetryExecutor, SleepFn
from discord_vault_sync.errors import ConfigurationError, RemoteRequestFailed, SyncError
from discord_vault_sync.logging import get_logger
from discord_vault_sync.notices import Notifier

log = get_logger("discord_vault_sync.discord.client")


class ChannelClient:
    """Async client bound to a single Discord channel.

    Uses the injected ``httpx.AsyncClient`` when one is given; otherwise
    opens a short-lived client per request.
    """

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        executor: RetryExecutor | None = None,
        api_base: str = DISCORD_API_BASE,
        timeout: float = REQUEST_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
        sleep: SleepFn | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Initialize the channel client.

        Args:
            bot_token: Discord bot token (without the ``Bot`` scheme).
            channel_id: ID of the channel to mirror.
            http_client: Shared HTTP client; the caller owns its lifecycle.
            executor: Pre-built retry executor. Built from the remaining
                retry arguments when omitted.
            api_base: Discord REST API base URL.
            timeout: HTTP timeout in seconds for per-request clients.
            max_retries: Retries per request.
            retry_base_delay: Base backoff delay in seconds.
            sleep: Awaitable sleep used between retries.
            notifier: Receives rate-limit notices.
        """
        if not bot_token:
            raise ConfigurationError("bot_token is required")
        if not channel_id:
            raise ConfigurationError("channel_id is required")
        self._bot_token = bot_token
        self._channel_id = channel_id
        self._http_client = http_client
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

        if executor is None:
            kwargs: dict[str, Any] = {
                "max_retries": max_retries,
                "base_delay": retry_base_delay,
                "notifier": notifier,
            }
            if sleep is not None:
                kwargs["sleep"] = sleep
            executor = RetryExecutor(self._send, **kwargs)
        self._executor = executor

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def messages_url(self) -> str:
        """URL of the channel's message collection."""
        return f"{self._api_base}/channels/{self._channel_id}/messages"

    def _headers(self, *, has_body: bool = False) -> dict[str, str]:
        """Return authorization headers."""
        headers = {
            "Authorization": f"Bot {self._bot_token}",
            "User-Agent": DISCORD_USER_AGENT,
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Perform one HTTP round trip."""
        if self._http_client is not None:
            return await self._http_client.send(request)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.send(request)

    async def fetch_messages_since(self, cursor: str | None = None) -> list[ChannelMessage]:
        """Fetch up to one page of messages newer than ``cursor``.

        Args:
            cursor: ID of the last processed message. ``None`` starts from
                the beginning of the channel.

        Returns:
            Messages in Discord's native order (newest first). An empty
            list means there is nothing newer.
        """
        params: dict[str, Any] = {"limit": MESSAGES_PER_REQUEST}
        if cursor:
            params["after"] = cursor

        request = httpx.Request("GET", self.messages_url, params=params, headers=self._headers())
        response = await self._executor.execute(request)

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteRequestFailed(response.status_code, response.text) from exc
        if not isinstance(payload, list):
            raise RemoteRequestFailed(response.status_code, response.text)

        messages: list[ChannelMessage] = []
        for raw in payload:
            try:
                messages.append(ChannelMessage.model_validate(raw))
            except ValidationError as exc:
                log.warning("malformed_message_dropped", error=str(exc)[:200])

        log.debug(
            "messages_fetched",
            channel_id=self._channel_id,
            after=cursor,
            count=len(messages),
        )
        return messages

    async def post_summary(self, text: str) -> bool:
        """Post a notification message to the channel.

        Failures are logged and swallowed so that a failed summary never
        undoes work already persisted by the sync.

        Returns:
            True if Discord accepted the message.
        """
        request = httpx.Request(
            "POST",
            self.messages_url,
            json={"content": text},
            headers=self._headers(has_body=True),
        )
        try:
            await self._executor.execute(request)
        except SyncError as exc:
            log.warning("summary_post_failed", channel_id=self._channel_id, error=str(exc))
            return False
        log.info("summary_posted", channel_id=self._channel_id)
        return True
