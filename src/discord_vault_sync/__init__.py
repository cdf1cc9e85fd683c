"""Discord Vault Sync.

Mirrors messages from a single Discord channel into a local Markdown vault,
turning each message into a note or a web clipping exactly once.
"""

__version__ = "0.1.0"
