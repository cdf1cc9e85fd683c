"""Message classifier/transformer.

Turns raw message text into a Markdown document and decides whether it
is a plain note or a web clipping.
"""

from discord_vault_sync.parser.message import (
    ArtifactCategory,
    MessageClassifier,
    MessageParser,
    ProcessedMessage,
    format_name,
)

__all__ = [
    "ArtifactCategory",
    "MessageClassifier",
    "MessageParser",
    "ProcessedMessage",
    "format_name",
]
