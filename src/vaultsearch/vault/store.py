"""Document store contract and a plain-directory implementation."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from vaultsearch.vault.models import VaultFile

logger = logging.getLogger(__name__)


DEFAULT_EXTENSIONS = (".md",)

# Hidden directories (.git, .obsidian, .trash, the index config dir) are never notes.
DEFAULT_EXCLUDES = [
    ".*",
    "node_modules",
]


@runtime_checkable
class DocumentStore(Protocol):
    """What the indexer needs from the host application."""

    @property
    def config_dir(self) -> Path:
        """Private per-vault directory for the persisted index."""
        ...

    def list_files(self) -> list[VaultFile]:
        """Enumerate every indexable document with its current mtime."""
        ...

    def get_file(self, path: str) -> VaultFile | None:
        """Look up one document by vault path, or None if it does not exist."""
        ...

    def active_file(self) -> VaultFile | None:
        """The note currently open in the host, if any."""
        ...

    async def read(self, file: VaultFile) -> str:
        """Read a document's full text."""
        ...


class FileSystemVault:
    """DocumentStore over a directory of markdown notes."""

    def __init__(
        self,
        root: Path,
        config_dir_name: str = ".vaultsearch",
        extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
        extra_excludes: list[str] | None = None,
    ) -> None:
        """Initialize the vault.

        Args:
            root: Vault root directory.
            config_dir_name: Name of the private config directory under root.
            extensions: File suffixes treated as notes.
            extra_excludes: Additional fnmatch patterns matched against path components.
        """
        self.root = Path(root)
        self._config_dir = self.root / config_dir_name
        self._extensions = tuple(ext.lower() for ext in extensions)
        self._exclude_patterns = list(DEFAULT_EXCLUDES)
        if extra_excludes:
            self._exclude_patterns.extend(extra_excludes)
        self._active_path: str | None = None

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def _is_excluded(self, rel_path: str) -> bool:
        for part in rel_path.split("/"):
            for pattern in self._exclude_patterns:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False

    def _to_vault_file(self, file_path: Path) -> VaultFile:
        rel_path = file_path.relative_to(self.root).as_posix()
        stat = file_path.stat()
        return VaultFile(
            path=rel_path,
            basename=PurePosixPath(rel_path).stem,
            mtime=stat.st_mtime_ns // 1_000_000,
        )

    def list_files(self) -> list[VaultFile]:
        """Walk the vault and return all notes, sorted by path."""
        if not self.root.exists():
            return []

        resolved_root = self.root.resolve()
        files: list[VaultFile] = []
        for file_path in self.root.rglob("*"):
            if not file_path.is_file():
                continue
            if file_path.suffix.lower() not in self._extensions:
                continue
            rel_path = file_path.relative_to(self.root).as_posix()
            if self._is_excluded(rel_path):
                continue
            if not file_path.resolve().is_relative_to(resolved_root):
                continue
            try:
                files.append(self._to_vault_file(file_path))
            except OSError as e:
                # File vanished between listing and stat
                logger.debug(f"Skipping {rel_path}: {e}")
        files.sort(key=lambda f: f.path)
        return files

    def get_file(self, path: str) -> VaultFile | None:
        """Look up a note by vault-relative path.

        Absolute paths and paths leading outside the vault are not notes.
        """
        pure_path = PurePosixPath(path)
        if pure_path.is_absolute() or ".." in pure_path.parts:
            return None
        rel_path = pure_path.as_posix()
        if self._is_excluded(rel_path):
            return None
        file_path = self.root / rel_path
        if not file_path.is_file() or file_path.suffix.lower() not in self._extensions:
            return None
        # Symlinks may still point elsewhere
        if not file_path.resolve().is_relative_to(self.root.resolve()):
            return None
        return self._to_vault_file(file_path)

    def set_active_file(self, path: str | None) -> None:
        """Record which note the user currently has open."""
        self._active_path = path

    def active_file(self) -> VaultFile | None:
        if self._active_path is None:
            return None
        return self.get_file(self._active_path)

    async def read(self, file: VaultFile) -> str:
        file_path = self.root / file.path
        return await asyncio.to_thread(
            file_path.read_text, encoding="utf-8", errors="replace"
        )
