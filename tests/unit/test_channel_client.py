"""Tests for the Discord channel client."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from discord_vault_sync.discord.client import ChannelClient
from discord_vault_sync.discord.models import ChannelMessage
from discord_vault_sync.errors import ConfigurationError, RemoteRequestFailed

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _raw_message(message_id: str, content: str = "hello", *, bot: bool = False) -> dict:
    return {
        "id": message_id,
        "content": content,
        "timestamp": "2025-05-24T13:51:41.933000+00:00",
        "author": {"id": "42", "username": "alice", "bot": bot},
        "attachments": [],
    }


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]


def _make_client(recorder: Recorder, **kwargs) -> ChannelClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    kwargs.setdefault("sleep", AsyncMock())
    return ChannelClient("test-token", "123", http_client=http_client, **kwargs)


# ===================================================================
# 1. Constructor tests
# ===================================================================


class TestConstructor:
    """Tests for ChannelClient.__init__."""

    def test_missing_token_raises_configuration_error(self):
        with pytest.raises(ConfigurationError, match="bot_token"):
            ChannelClient("", "123")

    def test_missing_channel_raises_configuration_error(self):
        with pytest.raises(ConfigurationError, match="channel_id"):
            ChannelClient("token", "")

    def test_messages_url_uses_api_base(self):
        client = ChannelClient("token", "999", api_base="http://localhost:8080/api/")
        assert client.messages_url == "http://localhost:8080/api/channels/999/messages"
        assert client.channel_id == "999"


# ===================================================================
# 2. fetch_messages_since tests
# ===================================================================


class TestFetchMessagesSince:
    """Tests for ChannelClient.fetch_messages_since."""

    @pytest.mark.asyncio
    async def test_without_cursor_omits_after(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        client = _make_client(recorder)

        await client.fetch_messages_since()

        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api/v10/channels/123/messages"
        assert request.url.params["limit"] == "100"
        assert "after" not in request.url.params

    @pytest.mark.asyncio
    async def test_with_cursor_sets_after(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        client = _make_client(recorder)

        await client.fetch_messages_since("1100")

        assert recorder.requests[0].url.params["after"] == "1100"

    @pytest.mark.asyncio
    async def test_sends_bot_authorization(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        client = _make_client(recorder)

        await client.fetch_messages_since()

        headers = recorder.requests[0].headers
        assert headers["Authorization"] == "Bot test-token"
        assert headers["User-Agent"].startswith("DiscordBot")

    @pytest.mark.asyncio
    async def test_returns_messages_in_native_order(self):
        recorder = Recorder(
            httpx.Response(200, json=[_raw_message("30"), _raw_message("20", bot=True)])
        )
        client = _make_client(recorder)

        messages = await client.fetch_messages_since()

        assert [m.id for m in messages] == ["30", "20"]
        assert all(isinstance(m, ChannelMessage) for m in messages)
        assert messages[1].is_bot is True

    @pytest.mark.asyncio
    async def test_empty_page(self):
        client = _make_client(Recorder(httpx.Response(200, json=[])))
        assert await client.fetch_messages_since("5") == []

    @pytest.mark.asyncio
    async def test_non_list_payload_raises(self):
        client = _make_client(Recorder(httpx.Response(200, json={"message": "odd"})))
        with pytest.raises(RemoteRequestFailed):
            await client.fetch_messages_since()

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        client = _make_client(Recorder(httpx.Response(200, text="<html>")))
        with pytest.raises(RemoteRequestFailed):
            await client.fetch_messages_since()

    @pytest.mark.asyncio
    async def test_malformed_entries_are_dropped(self):
        recorder = Recorder(
            httpx.Response(200, json=[_raw_message("30"), {"content": "no id"}])
        )
        client = _make_client(recorder)

        messages = await client.fetch_messages_since()

        assert [m.id for m in messages] == ["30"]

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried_with_notice(self):
        recorder = Recorder(
            httpx.Response(429, headers={"Retry-After": "2"}),
            httpx.Response(200, json=[_raw_message("1")]),
        )
        sleep = AsyncMock()
        notifier = MagicMock()
        client = _make_client(recorder, sleep=sleep, notifier=notifier)

        messages = await client.fetch_messages_since()

        assert [m.id for m in messages] == ["1"]
        assert len(recorder.requests) == 2
        sleep.assert_awaited_once_with(2.0)
        notifier.notify.assert_called_once()

    @pytest.mark.asyncio
    async def test_per_request_client_when_none_injected(self):
        """Without an injected client a short-lived AsyncClient is opened."""
        response = httpx.Response(
            200,
            json=[_raw_message("7")],
            request=httpx.Request("GET", "https://discord.com"),
        )
        with patch("discord_vault_sync.discord.client.httpx.AsyncClient") as mock_cls:
            instance = AsyncMock()
            instance.send.return_value = response
            mock_cls.return_value.__aenter__ = AsyncMock(return_value=instance)
            mock_cls.return_value.__aexit__ = AsyncMock(return_value=False)

            client = ChannelClient("token", "123", timeout=12.0)
            messages = await client.fetch_messages_since()

        assert [m.id for m in messages] == ["7"]
        mock_cls.assert_called_once_with(timeout=12.0)


# ===================================================================
# 3. post_summary tests
# ===================================================================


class TestPostSummary:
    """Tests for ChannelClient.post_summary."""

    @pytest.mark.asyncio
    async def test_posts_content_json(self):
        recorder = Recorder(httpx.Response(200, json={"id": "555"}))
        client = _make_client(recorder)

        assert await client.post_summary("✅ 2 new messages saved.") is True

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"content": "✅ 2 new messages saved."}

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self):
        recorder = Recorder(httpx.Response(500, text="down"))
        client = _make_client(recorder, max_retries=1)

        assert await client.post_summary("hello") is False
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_forbidden_is_not_retried(self):
        recorder = Recorder(httpx.Response(403, text="Missing Permissions"))
        client = _make_client(recorder)

        assert await client.post_summary("hello") is False
        assert len(recorder.requests) == 1
