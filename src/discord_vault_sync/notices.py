"""User-visible transient notices.

The host shows these briefly (a toast, a status line). They never block
the sync beyond the call itself.
"""

from __future__ import annotations

from collections import deque
from typing import Protocol

from discord_vault_sync.logging import get_logger

log = get_logger("discord_vault_sync.notices")

MAX_RECENT_NOTICES = 20


class Notifier(Protocol):
    """Anything that can surface a short message to the user."""

    def notify(self, text: str) -> None: ...


class LogNotifier:
    """Notifier that logs each notice and remembers the most recent ones."""

    def __init__(self, *, max_recent: int = MAX_RECENT_NOTICES) -> None:
        self._recent: deque[str] = deque(maxlen=max_recent)

    def notify(self, text: str) -> None:
        self._recent.append(text)
        log.info("user_notice", text=text)

    @property
    def recent(self) -> list[str]:
        """Return recent notices, oldest first."""
        return list(self._recent)
