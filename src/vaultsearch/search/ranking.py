"""Merging of vector and keyword search results."""

from vaultsearch.indexing.fulltext import SearchHit


class HybridMerger:
    """Combines vector and keyword hits into one ranked list.

    Hits are keyed by chunk id. Vector hits are taken first; a keyword hit
    for the same chunk replaces it only when its score is strictly higher,
    so on a tie the vector hit is kept. Scores from the two sources are
    compared as-is (cosine similarity vs. negated BM25).
    """

    def merge(
        self,
        vector_results: list[SearchHit],
        keyword_results: list[SearchHit],
        limit: int,
    ) -> list[SearchHit]:
        """Merge both result lists.

        Args:
            vector_results: Hits from vector similarity search.
            keyword_results: Hits from full-text search.
            limit: Maximum number of hits to return.

        Returns:
            Unique hits sorted by score (highest first), at most limit long.
        """
        merged: dict[str, SearchHit] = {}

        for hit in vector_results:
            merged[hit.document.id] = hit

        for hit in keyword_results:
            existing = merged.get(hit.document.id)
            if existing is None or hit.score > existing.score:
                merged[hit.document.id] = hit

        ranked = sorted(merged.values(), key=lambda hit: hit.score, reverse=True)
        return ranked[: max(limit, 0)]
