"""Incremental search index: chunking, storage, persistence and scheduling."""

from vaultsearch.indexing.chunking import ChunkingService, NoteDocument
from vaultsearch.indexing.embedding_store import EmbeddingStore
from vaultsearch.indexing.errors import (
    IndexCorruptedError,
    IndexNotInitializedError,
    IndexNotReadyError,
    SearchIndexError,
)
from vaultsearch.indexing.fulltext import FullTextIndex, SearchHit
from vaultsearch.indexing.models import (
    IndexFileResult,
    IndexFileStatus,
    IndexingStatus,
    IndexState,
    IndexVaultSummary,
)
from vaultsearch.indexing.persistence import IndexPersistence
from vaultsearch.indexing.scheduler import ReindexScheduler
from vaultsearch.indexing.service import IndexingService
from vaultsearch.indexing.state import SearchIndex

__all__ = [
    "ChunkingService",
    "NoteDocument",
    "EmbeddingStore",
    "IndexCorruptedError",
    "IndexNotInitializedError",
    "IndexNotReadyError",
    "SearchIndexError",
    "FullTextIndex",
    "SearchHit",
    "IndexFileResult",
    "IndexFileStatus",
    "IndexingStatus",
    "IndexState",
    "IndexVaultSummary",
    "IndexPersistence",
    "ReindexScheduler",
    "IndexingService",
    "SearchIndex",
]
