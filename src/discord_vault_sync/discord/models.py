"""Pydantic models for Discord channel messages."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MessageAuthor(BaseModel):
    """The subset of a Discord user object the sync needs."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    username: str | None = None
    bot: bool = False


class ChannelMessage(BaseModel):
    """A message as returned by ``GET /channels/{id}/messages``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1, description="Snowflake ID, also used as the sync cursor")
    content: str = ""
    timestamp: str = Field(description="ISO-8601 creation time")
    author: MessageAuthor | None = None

    @property
    def is_bot(self) -> bool:
        """Whether the message was written by a bot account."""
        return self.author is not None and self.author.bot


def is_newer(candidate: str, current: str | None) -> bool:
    """Return True if ``candidate`` is strictly newer than ``current``.

    Snowflakes are decimal strings, so they compare numerically. Anything
    else falls back to (length, text) ordering.
    """
    if current is None:
        return True
    if candidate.isdigit() and current.isdigit():
        return int(candidate) > int(current)
    return (len(candidate), candidate) > (len(current), current)
