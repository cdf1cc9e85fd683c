"""Discord REST access: message models, retry policy, and channel client."""

from discord_vault_sync.discord.client import ChannelClient
from discord_vault_sync.discord.models import ChannelMessage, MessageAuthor
from discord_vault_sync.discord.retry import RetryExecutor

__all__ = [
    "ChannelClient",
    "ChannelMessage",
    "MessageAuthor",
    "RetryExecutor",
]
