"""Data models for indexing state and results."""

from dataclasses import dataclass
from enum import Enum


class IndexState(Enum):
    """Lifecycle of the indexer."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"  # Stays failed until an explicit initialize or reindex


class IndexFileStatus(Enum):
    """Outcome of indexing a single file."""

    SKIPPED = "skipped"
    INDEXED = "indexed"
    FAILED = "failed"


@dataclass(frozen=True)
class IndexFileResult:
    """Result of indexing one file.

    ``chunk_count`` is set for INDEXED results, ``error`` for FAILED ones.
    """

    path: str
    status: IndexFileStatus
    chunk_count: int = 0
    error: Exception | None = None

    @classmethod
    def skipped(cls, path: str) -> "IndexFileResult":
        return cls(path=path, status=IndexFileStatus.SKIPPED)

    @classmethod
    def indexed(cls, path: str, chunk_count: int) -> "IndexFileResult":
        return cls(path=path, status=IndexFileStatus.INDEXED, chunk_count=chunk_count)

    @classmethod
    def failed(cls, path: str, error: Exception) -> "IndexFileResult":
        return cls(path=path, status=IndexFileStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is not IndexFileStatus.FAILED


@dataclass
class IndexVaultSummary:
    """Counts from one full vault scan."""

    total: int = 0
    indexed: int = 0
    skipped: int = 0
    removed: int = 0


@dataclass(frozen=True)
class IndexingStatus:
    """Status shown to the user while the index is built or used."""

    status: str  # initializing, indexing, ready or error
    message: str
    current: int = 0
    total: int = 0
