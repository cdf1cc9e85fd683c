"""Error taxonomy for the sync engine.

Network and per-message errors are contained at the smallest possible scope.
Only configuration errors, retry exhaustion, and persistence conflicts abort
a sync run.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all Discord Vault Sync errors."""


class ConfigurationError(SyncError):
    """Raised when the bot token or channel ID is missing."""


class RateLimited(SyncError):
    """Raised internally when Discord answers with HTTP 429."""

    def __init__(self, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        hint = f" (retry after {retry_after}s)" if retry_after is not None else ""
        super().__init__(f"Rate limited by Discord{hint}")


class RemoteRequestFailed(SyncError):
    """Raised when Discord answers with a non-2xx, non-429 status."""

    def __init__(self, status: int | None, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"Discord API error {status}: {body[:200]}")


class RetriesExhausted(SyncError):
    """Raised when every attempt of a request failed.

    Distinct from :class:`RemoteRequestFailed`, which signals a single
    failure that was not worth retrying.
    """

    def __init__(self, attempts: int, last_error: Exception | None = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Discord request failed after {attempts} attempts: {last_error}")


class MessageProcessingError(SyncError):
    """Raised when a single message cannot be turned into an artifact."""

    def __init__(self, message_id: str, reason: str) -> None:
        self.message_id = message_id
        self.reason = reason
        super().__init__(f"Failed to process message {message_id}: {reason}")


class PersistenceConflict(SyncError):
    """Raised when a vault path is occupied by something unexpected."""

    def __init__(self, path: str, reason: str = "exists and is not a directory") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot use vault path {path!r}: {reason}")


class RunAlreadyActive(SyncError):
    """Raised when a sync is requested while another one is in progress."""


# ---------------------------------------------------------------------------
# Message parser errors
# ---------------------------------------------------------------------------


class MessageParseError(SyncError):
    """Base class for failures of the message classifier/transformer."""


class InvalidUrlError(MessageParseError):
    """Raised when a clipping command has a missing or malformed URL."""


class UnknownCommandError(MessageParseError):
    """Raised when a prefixed message names a command that does not exist."""


class ConversionError(MessageParseError):
    """Raised when fetched HTML yields no Markdown content."""
