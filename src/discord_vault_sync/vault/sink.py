"""Idempotent persistence of processed messages as Markdown notes."""

from __future__ import annotations

import re
import time

from discord_vault_sync.constants import NOTE_EXTENSION
from discord_vault_sync.logging import get_logger
from discord_vault_sync.parser import ProcessedMessage
from discord_vault_sync.vault.store import Vault

log = get_logger("discord_vault_sync.vault.sink")

_ILLEGAL_NAME_CHARS = re.compile(r'[\\/:*?"<>|]')


def sanitize_name(name: str) -> str:
    """Make ``name`` safe to use as a single file name."""
    return _ILLEGAL_NAME_CHARS.sub("_", name).strip()


class DocumentSink:
    """Saves artifacts into category directories without ever overwriting."""

    def __init__(self, vault: Vault) -> None:
        self._vault = vault

    def note_path(
        self, category_dir: str, artifact: ProcessedMessage, fallback_name: str | None = None
    ) -> str:
        """Vault-relative path the artifact is stored under."""
        name = sanitize_name(artifact.name) or sanitize_name(fallback_name or "")
        if not name:
            name = str(int(time.time() * 1000))
        directory = category_dir.strip("/")
        return f"{directory}/{name}{NOTE_EXTENSION}" if directory else f"{name}{NOTE_EXTENSION}"

    def save(
        self,
        category_dir: str,
        artifact: ProcessedMessage,
        *,
        fallback_name: str | None = None,
    ) -> bool:
        """Persist ``artifact`` under ``category_dir`` if not already there.

        Args:
            category_dir: Vault-relative directory for the artifact's category.
            artifact: The processed message.
            fallback_name: Used when the artifact has no name (usually the
                source message ID). A millisecond timestamp is used when
                both are empty.

        Returns:
            True if a new note was written, False if one already existed.

        Raises:
            PersistenceConflict: A directory in the chain is occupied by a file.
        """
        if category_dir.strip("/"):
            self._vault.ensure_directory(category_dir.strip("/"))

        path = self.note_path(category_dir, artifact, fallback_name)
        created = self._vault.create_if_absent(path, artifact.document)
        if created:
            log.info("note_saved", path=path, category=str(artifact.category))
        else:
            log.info("note_exists", path=path)
        return created
