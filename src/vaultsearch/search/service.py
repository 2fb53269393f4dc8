"""Hybrid (keyword + vector) vault search that produces prompt context."""

import logging
from dataclasses import dataclass

from vaultsearch.constants import (
    DEFAULT_MAX_SEARCH_RESULTS,
    HYBRID_FETCH_MULTIPLIER,
    NO_RESULTS_MESSAGE,
    SEARCH_ERROR_MESSAGE,
    VECTOR_SCAN_LIMIT,
)
from vaultsearch.indexing import IndexingService, IndexNotReadyError, SearchHit
from vaultsearch.search.formatting import format_current_note, format_results
from vaultsearch.search.ranking import HybridMerger
from vaultsearch.vault import DocumentStore

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


@dataclass
class SearchOptions:
    """What to include in the context for one query."""

    use_vault_search: bool = True
    use_vector_search: bool = False
    use_current_note: bool = False


class SearchService:
    """Answers queries from the index built by an IndexingService.

    The service only reads the index. Keyword search uses the full-text
    index; hybrid search also scores stored chunk embeddings against an
    embedding of the query and merges both lists.
    """

    def __init__(
        self,
        indexer: IndexingService,
        vault: DocumentStore,
        max_search_results: int = DEFAULT_MAX_SEARCH_RESULTS,
        merger: HybridMerger | None = None,
    ) -> None:
        self._indexer = indexer
        self._vault = vault
        self._max_search_results = max_search_results
        self._merger = merger or HybridMerger()

    @property
    def max_search_results(self) -> int:
        return self._max_search_results

    def update_max_search_results(self, max_search_results: int) -> None:
        self._max_search_results = max_search_results

    async def search_vault(self, query: str, options: SearchOptions | None = None) -> str:
        """Build the context block for a query.

        Never raises: returns a "no relevant content" message when nothing is
        found (or the index is not ready) and an error message on failure.

        Args:
            query: The user's query.
            options: Which sources to use. Defaults to keyword vault search.

        Returns:
            Formatted context for the chat model.
        """
        options = options or SearchOptions()
        try:
            context = ""

            if options.use_current_note:
                context += await self._current_note_context()

            if options.use_vault_search and self._indexer.is_index_ready():
                logger.info("Searching vault...")
                results = await self.search(query, use_vector_search=options.use_vector_search)
                logger.info(f"Found {len(results)} results")

                if results:
                    if context:
                        context += CONTEXT_SEPARATOR
                    context += format_results(results, query)

            return context or NO_RESULTS_MESSAGE
        except Exception as e:
            logger.error(f"Error searching vault: {e}")
            return SEARCH_ERROR_MESSAGE

    async def search(self, query: str, use_vector_search: bool = False) -> list[SearchHit]:
        """Ranked hits for a query.

        Hybrid search runs when requested, enabled on the indexer, and an
        embedding service is configured. Otherwise keyword search only.

        Raises:
            IndexNotReadyError: If the index has not been loaded or built.
        """
        if not self._indexer.is_index_ready() or self._indexer.index.fulltext is None:
            raise IndexNotReadyError("Search index is not ready")

        limit = self._max_search_results
        hybrid = (
            use_vector_search
            and self._indexer.use_vector_search
            and self._indexer.embedding_service is not None
        )
        if not hybrid:
            logger.debug("Using keyword search...")
            return self.keyword_search(query, limit)

        logger.debug("Using hybrid search (vector + keyword)...")
        fetch_limit = limit * HYBRID_FETCH_MULTIPLIER
        vector_results = await self.vector_search(query, fetch_limit)
        keyword_results = self.keyword_search(query, fetch_limit)
        return self._merger.merge(vector_results, keyword_results, limit)

    def keyword_search(self, query: str, limit: int) -> list[SearchHit]:
        """Full-text search in the index's own ranking order."""
        fulltext = self._indexer.index.fulltext
        if fulltext is None:
            return []
        return fulltext.search(query, limit)

    async def vector_search(self, query: str, limit: int) -> list[SearchHit]:
        """Cosine similarity of the query against every stored chunk vector.

        Returns an empty list when there is nothing to compare against or the
        query cannot be embedded.
        """
        embedding_service = self._indexer.embedding_service
        index = self._indexer.index
        if embedding_service is None or len(index.embeddings) == 0 or index.fulltext is None:
            logger.warning(
                "Vector search not available: embedding service not initialized "
                "or no embeddings stored"
            )
            return []

        try:
            query_embedding = await embedding_service.get_query_embedding(query)

            results: list[SearchHit] = []
            for document in index.fulltext.all_documents(VECTOR_SCAN_LIMIT):
                document_embedding = index.embeddings.get(document.id)
                if document_embedding is None:
                    continue
                similarity = embedding_service.cosine_similarity(
                    query_embedding, document_embedding
                )
                results.append(SearchHit(document=document, score=similarity))
        except Exception as e:
            logger.error(f"Error performing vector search: {e}")
            return []

        results.sort(key=lambda hit: hit.score, reverse=True)
        return results[:limit]

    async def _current_note_context(self) -> str:
        active = self._vault.active_file()
        if active is None:
            logger.debug("No active file found")
            return ""

        try:
            content = await self._vault.read(active)
        except OSError as e:
            logger.error(f"Error getting current note content: {e}")
            return ""

        if not content:
            logger.debug("Active note is empty")
            return ""
        return format_current_note(active.basename, content)
