"""Shared in-memory state of the search index."""

from dataclasses import dataclass, field

from vaultsearch.indexing.embedding_store import EmbeddingStore
from vaultsearch.indexing.fulltext import FullTextIndex


@dataclass
class SearchIndex:
    """Everything that gets persisted together.

    ``file_mtimes`` is the ledger of which files are indexed and at which
    modification time (milliseconds). ``ready`` is set once the index has been
    loaded or built.
    """

    fulltext: FullTextIndex | None = None
    embeddings: EmbeddingStore = field(default_factory=EmbeddingStore)
    file_mtimes: dict[str, int] = field(default_factory=dict)
    ready: bool = False

    def reset(self) -> None:
        """Replace everything with a new empty index."""
        if self.fulltext is not None:
            self.fulltext.close()
        self.fulltext = FullTextIndex.create()
        self.embeddings = EmbeddingStore()
        self.file_mtimes = {}
