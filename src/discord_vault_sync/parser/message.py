"""Default message parser.

Plain messages become notes named after their timestamp. Messages that
start with the configured prefix are commands; ``<prefix>url <link>``
captures the linked page as a clipping.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Protocol

from discord_vault_sync.errors import InvalidUrlError, UnknownCommandError
from discord_vault_sync.logging import get_logger
from discord_vault_sync.parser.clipping import clip_url, fetch_url_content

log = get_logger("discord_vault_sync.parser.message")

# Note names are rendered in Japan Standard Time.
NAME_TIMEZONE = timezone(timedelta(hours=9), name="JST")
NAME_FORMAT = "%Y%m%d_%H%M%S"

FetchUrlFn = Callable[[str], Awaitable[str]]


class ArtifactCategory(StrEnum):
    """Where a processed message is stored."""

    MESSAGE = "message"
    CLIPPING = "clipping"


@dataclass(frozen=True)
class ProcessedMessage:
    """A message converted into a storable Markdown document."""

    document: str
    is_clipping: bool
    name: str = ""

    @property
    def category(self) -> ArtifactCategory:
        return ArtifactCategory.CLIPPING if self.is_clipping else ArtifactCategory.MESSAGE


class MessageClassifier(Protocol):
    """Contract of the message classifier/transformer.

    Implementations may fetch embedded links and may raise; they must not
    touch sync state.
    """

    async def process_message(
        self, raw_text: str, prefix: str, timestamp: str
    ) -> ProcessedMessage: ...


def format_name(timestamp: str) -> str:
    """Convert an RFC 3339 timestamp into a JST file name.

    ``"2025-05-24T13:51:41.933000+00:00"`` becomes ``"20250524_225141"``.
    Timestamps that cannot be parsed are returned unchanged.
    """
    try:
        parsed = datetime.fromisoformat(timestamp)
    except ValueError:
        return timestamp
    if parsed.tzinfo is None:
        return timestamp
    return parsed.astimezone(NAME_TIMEZONE).strftime(NAME_FORMAT)


class MessageParser:
    """Classifies and transforms raw Discord message text."""

    def __init__(self, *, fetch_url: FetchUrlFn = fetch_url_content) -> None:
        self._fetch_url = fetch_url

    async def process_message(self, raw_text: str, prefix: str, timestamp: str) -> ProcessedMessage:
        """Turn one message into a note or clipping.

        Raises:
            UnknownCommandError: The prefixed command does not exist.
            InvalidUrlError: The ``url`` command has no usable link.
            ConversionError: The linked page has no extractable content.
        """
        text = raw_text.strip()
        prefix = prefix.strip()

        if prefix and text.startswith(prefix):
            return await self._handle_command(text[len(prefix) :].lstrip(), timestamp)

        return ProcessedMessage(document=text, is_clipping=False, name=format_name(timestamp))

    async def _handle_command(self, rest: str, timestamp: str) -> ProcessedMessage:
        parts = rest.split(" ", 2)
        command = parts[0]
        argument = parts[1] if len(parts) > 1 else None

        if command == "url":
            return await self._handle_url(argument, timestamp)
        raise UnknownCommandError(f"Unknown command: {command!r}")

    async def _handle_url(self, url: str | None, timestamp: str) -> ProcessedMessage:
        if not url or not url.startswith(("http://", "https://")):
            raise InvalidUrlError(f"Invalid URL: {url!r}")

        html = await self._fetch_url(url)
        document = clip_url(url, html)
        log.debug("url_clipped", url=url, length=len(document))
        return ProcessedMessage(document=document, is_clipping=True, name=format_name(timestamp))
