"""Filesystem-backed vault primitives.

All paths are vault-relative POSIX strings (``"Inbox/Discord"``).
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from discord_vault_sync.errors import PersistenceConflict
from discord_vault_sync.logging import get_logger

log = get_logger("discord_vault_sync.vault.store")


class Vault:
    """A directory tree of Markdown notes rooted at ``root``."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Path:
        """Map a vault-relative path to a filesystem path.

        Raises:
            PersistenceConflict: The path is absolute or climbs out of the vault.
        """
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise PersistenceConflict(path, "escapes the vault root")
        return self._root.joinpath(*relative.parts)

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def is_directory(self, path: str) -> bool:
        return self.resolve(path).is_dir()

    def ensure_directory(self, path: str) -> None:
        """Create ``path`` and any missing ancestors, top-down.

        A component that already exists as a directory is fine. A component
        that exists as anything else is a conflict.

        Raises:
            PersistenceConflict: A path component is not a directory.
        """
        self._ensure_root()
        current = PurePosixPath()
        for part in PurePosixPath(path).parts:
            current = current / part
            target = self.resolve(str(current))
            if target.is_dir():
                continue
            if target.exists():
                raise PersistenceConflict(str(current))
            try:
                target.mkdir()
            except FileExistsError:
                # Created by someone else between the check and mkdir
                if not target.is_dir():
                    raise PersistenceConflict(str(current)) from None
            log.debug("vault_directory_created", path=str(current))

    def create_if_absent(self, path: str, content: str) -> bool:
        """Write a new file unless something already occupies ``path``.

        Returns:
            True if the file was created, False if the path was taken.
        """
        target = self.resolve(path)
        try:
            with target.open("x", encoding="utf-8") as fh:
                fh.write(content)
        except FileExistsError:
            return False
        return True

    def read_text(self, path: str) -> str:
        return self.resolve(path).read_text(encoding="utf-8")

    def _ensure_root(self) -> None:
        if self._root.is_dir():
            return
        if self._root.exists():
            raise PersistenceConflict(str(self._root), "vault root is not a directory")
        self._root.mkdir(parents=True)
