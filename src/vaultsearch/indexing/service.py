"""Incremental indexing of vault notes into the full-text index and embedding store."""

import logging

from vaultsearch.config import ChunkingOptions, EmbeddingServiceConfig
from vaultsearch.embeddings import EmbeddingService
from vaultsearch.indexing.chunking import ChunkingService, NoteDocument
from vaultsearch.indexing.errors import IndexNotInitializedError
from vaultsearch.indexing.models import (
    IndexFileResult,
    IndexFileStatus,
    IndexingStatus,
    IndexState,
    IndexVaultSummary,
)
from vaultsearch.indexing.persistence import IndexPersistence
from vaultsearch.indexing.state import SearchIndex
from vaultsearch.notices import Notifier, log_notice
from vaultsearch.vault import DocumentStore, VaultFile

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred during indexing"


class IndexingService:
    """Keeps the search index in sync with the notes in a vault.

    Files whose modification time matches the ledger are skipped without
    touching the index. Changed files have their old chunks removed, are
    re-chunked and (with vector search) re-embedded, then inserted again.

    The first failure puts the indexer in the FAILED state: the current scan
    stops and later files are skipped until ``reindex_all()`` or
    ``initialize_index()`` is called.
    """

    def __init__(
        self,
        vault: DocumentStore,
        index: SearchIndex,
        persistence: IndexPersistence,
        chunking_options: ChunkingOptions | None = None,
        embedding_config: EmbeddingServiceConfig | None = None,
        use_vector_search: bool = False,
        notifier: Notifier | None = None,
        embedding_service: EmbeddingService | None = None,
    ) -> None:
        """Initialize the indexing service.

        Args:
            vault: Source of notes.
            index: Shared index state (full-text index, embeddings, ledger).
            persistence: Saves and restores the index state.
            chunking_options: Chunk size and overlap.
            embedding_config: Provider settings; an embedding service is only
                created when this is given.
            use_vector_search: Whether to embed chunks while indexing.
            notifier: Shows user-visible notices.
            embedding_service: Pre-built embedding service (overrides
                embedding_config).
        """
        self._vault = vault
        self._index = index
        self._persistence = persistence
        self._chunker = ChunkingService(chunking_options)
        self._notify = notifier or log_notice
        self._use_vector_search = use_vector_search
        self._persistence.store_embeddings = use_vector_search

        if embedding_service is not None:
            self._embedding_service: EmbeddingService | None = embedding_service
        elif embedding_config is not None:
            self._embedding_service = EmbeddingService(embedding_config, notifier=self._notify)
        else:
            self._embedding_service = None

        self._state = IndexState.UNINITIALIZED
        self._last_error = ""
        self._current_file_index = 0
        self._total_files = 0

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def last_error(self) -> str:
        return self._last_error

    @property
    def index(self) -> SearchIndex:
        return self._index

    @property
    def persistence(self) -> IndexPersistence:
        return self._persistence

    @property
    def use_vector_search(self) -> bool:
        return self._use_vector_search

    @property
    def embedding_service(self) -> EmbeddingService | None:
        return self._embedding_service

    @property
    def chunking_options(self) -> ChunkingOptions:
        return self._chunker.options

    def is_index_ready(self) -> bool:
        return self._index.ready

    def is_indexing_failed(self) -> bool:
        return self._state is IndexState.FAILED

    def get_indexing_status(self) -> IndexingStatus:
        """Status for the host UI to poll."""
        if self._state is IndexState.INITIALIZING:
            return IndexingStatus(
                status="indexing",
                message=f"Indexing {self._current_file_index} of {self._total_files}...",
                current=self._current_file_index,
                total=self._total_files,
            )
        if self._state is IndexState.FAILED:
            return IndexingStatus(
                status="error",
                message=self._last_error or DEFAULT_ERROR_MESSAGE,
                current=self._current_file_index,
                total=self._total_files,
            )
        if self._state is IndexState.READY:
            return IndexingStatus(
                status="ready",
                message="Ready",
                current=self._current_file_index,
                total=self._total_files,
            )
        return IndexingStatus(status="initializing", message="Initializing...")

    def update_chunking_options(self, options: ChunkingOptions) -> None:
        """Use new chunk settings for files indexed from now on."""
        self._chunker.options = options

    def update_embedding_config(
        self, config: EmbeddingServiceConfig, use_vector_search: bool
    ) -> None:
        """Switch vector search on or off and update the provider settings."""
        self._use_vector_search = use_vector_search
        self._persistence.store_embeddings = use_vector_search

        if not use_vector_search:
            return
        if self._embedding_service is not None:
            self._embedding_service.update_config(config)
        else:
            self._embedding_service = EmbeddingService(config, notifier=self._notify)

    async def initialize_index(self, rebuild: bool = False) -> None:
        """Load the saved index (unless rebuilding), then scan the vault.

        A loaded index is still rescanned so notes changed since the last
        save are picked up. On success the index is saved.

        Args:
            rebuild: Ignore any saved index and index every note from scratch.

        Raises:
            Exception: Whatever made loading, scanning or saving fail. The
                indexer is left in the FAILED state.
        """
        if self._state is IndexState.INITIALIZING:
            logger.info("Indexing already in progress")
            return

        self._state = IndexState.INITIALIZING
        self._last_error = ""
        self._current_file_index = 0
        self._total_files = 0
        logger.info("Initializing search index")

        try:
            loaded = False
            if not rebuild:
                loaded = await self._persistence.load()
            if not loaded:
                self._index.ready = False
                self._index.reset()

            summary = await self.index_vault()

            self._index.ready = True
            self._state = IndexState.READY
            await self._persistence.save()
            logger.info(
                f"Search index initialized: {summary.indexed} indexed, "
                f"{summary.skipped} unchanged, {summary.removed} removed"
            )
        except Exception as e:
            self._fail(e)
            logger.error(f"Error initializing search index: {e}")
            raise

    async def index_vault(self) -> IndexVaultSummary:
        """Index every note in the vault.

        Stops at the first file that fails. After a complete scan, chunks of
        notes that no longer exist are removed.

        Raises:
            IndexNotInitializedError: If there is no full-text index yet.
            Exception: The error of the first file that failed.
        """
        if self._index.fulltext is None:
            raise IndexNotInitializedError("Search index not initialized")

        files = self._vault.list_files()
        summary = IndexVaultSummary(total=len(files))
        self._total_files = len(files)
        self._current_file_index = 0
        logger.info(f"Indexing vault ({len(files)} files)...")

        for file in files:
            if self._state is IndexState.FAILED:
                logger.info("Stopping indexing due to previous error")
                return summary

            self._current_file_index += 1
            result = await self.index_file(file)

            if result.status is IndexFileStatus.FAILED:
                assert result.error is not None
                raise result.error
            if result.status is IndexFileStatus.INDEXED:
                summary.indexed += 1
            else:
                summary.skipped += 1

        present = {file.path for file in files}
        for path in self._stale_paths(present):
            self._remove_chunks(path)
            self._index.file_mtimes.pop(path, None)
            summary.removed += 1
        if summary.removed:
            self._persistence.mark_dirty()

        logger.info(
            f"Indexed vault: {summary.indexed} indexed, {summary.skipped} skipped, "
            f"{summary.removed} removed"
        )
        return summary

    async def index_file(self, file: VaultFile) -> IndexFileResult:
        """Bring one note's chunks up to date.

        Order of operations: old chunks are deleted, new chunks are embedded,
        then inserted, then the ledger is updated. If anything fails no new
        chunk is inserted and the indexer enters the FAILED state.

        Raises:
            IndexNotInitializedError: If there is no full-text index yet.
        """
        fulltext = self._index.fulltext
        if fulltext is None:
            raise IndexNotInitializedError("Search index not initialized")

        if self._state is IndexState.FAILED:
            return IndexFileResult.skipped(file.path)

        if self._index.file_mtimes.get(file.path) == file.mtime:
            return IndexFileResult.skipped(file.path)

        removed_old = False
        embedded_ids: list[str] = []
        try:
            removed_old = self._remove_chunks(file.path) > 0

            content = await self._vault.read(file)
            document = NoteDocument(
                id=file.path,
                title=file.basename,
                path=file.path,
                content=content,
            )
            chunks = self._chunker.chunk_document(document)

            if self._use_vector_search and self._embedding_service is not None:
                for chunk in chunks:
                    embedding = await self._embedding_service.get_document_embedding(
                        chunk.content
                    )
                    chunk.embedding = embedding
                    self._index.embeddings.set(chunk.id, embedding)
                    embedded_ids.append(chunk.id)

            fulltext.insert_many(chunks)
        except Exception as e:
            for chunk_id in embedded_ids:
                self._index.embeddings.delete(chunk_id)
            if removed_old:
                # Old chunks are gone, so the file must be picked up by the next scan
                self._index.file_mtimes.pop(file.path, None)
                self._persistence.mark_dirty()
            logger.error(f"Error indexing file {file.path}: {e}")
            self._fail(e)
            return IndexFileResult.failed(file.path, e)

        self._index.file_mtimes[file.path] = file.mtime
        self._persistence.mark_dirty()
        logger.info(f"Indexed file {file.path} with {len(chunks)} chunks")
        return IndexFileResult.indexed(file.path, len(chunks))

    def remove_file(self, path: str) -> int:
        """Drop a deleted note from the index.

        Returns:
            Number of chunks removed. Always 0 while the index is not ready.
        """
        if not self._index.ready or self._index.fulltext is None:
            return 0

        removed = self._remove_chunks(path)
        was_indexed = self._index.file_mtimes.pop(path, None) is not None
        if removed or was_indexed:
            self._persistence.mark_dirty()
            logger.info(f"Removed {removed} chunks for deleted file {path}")
        return removed

    async def reindex_all(self) -> None:
        """Throw the index away and index every note again.

        This is the only way out of the FAILED state besides
        ``initialize_index()``.
        """
        if self._state is IndexState.INITIALIZING:
            logger.info("Indexing already in progress")
            return

        logger.info("Clearing index and reindexing all documents...")
        self._index.ready = False
        self._index.reset()
        self._state = IndexState.UNINITIALIZED
        self._last_error = ""

        await self.initialize_index(rebuild=True)
        logger.info("Reindexing completed successfully")

    async def cleanup(self) -> None:
        """Flush unsaved changes; call on shutdown."""
        await self._persistence.cleanup()

    def _remove_chunks(self, path: str) -> int:
        fulltext = self._index.fulltext
        if fulltext is None:
            return 0
        existing = fulltext.find_by_path(path)
        for document in existing:
            fulltext.delete_by_id(document.id)
            self._index.embeddings.delete(document.id)
        if existing:
            logger.debug(f"Removed {len(existing)} existing chunks for file {path}")
        return len(existing)

    def _stale_paths(self, present: set[str]) -> list[str]:
        fulltext = self._index.fulltext
        known = set(self._index.file_mtimes)
        if fulltext is not None:
            known |= fulltext.indexed_paths()
        return sorted(known - present)

    def _fail(self, error: Exception) -> None:
        self._state = IndexState.FAILED
        self._last_error = str(error) or type(error).__name__
