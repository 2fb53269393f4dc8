"""Hybrid search and context formatting tests."""

from unittest.mock import patch

import pytest

from vaultsearch.embeddings import EmbeddingError
from vaultsearch.indexing import NoteDocument, SearchHit
from vaultsearch.search import HybridMerger, SearchOptions, SearchService, extract_snippet

NO_RESULTS = "No relevant content found in the vault."
SEARCH_ERROR = "Error searching vault."


def hit(doc_id: str, score: float, content: str = "") -> SearchHit:
    return SearchHit(
        document=NoteDocument(id=doc_id, title=doc_id, path=f"{doc_id}.md", content=content),
        score=score,
    )


class TestHybridMerger:
    """Tests for merging vector and keyword hits."""

    def test_keyword_overrides_only_when_strictly_greater(self):
        """A in both lists takes the keyword score 0.9; B from vectors keeps 0.8."""
        merged = HybridMerger().merge(
            vector_results=[hit("A", 0.6), hit("B", 0.8)],
            keyword_results=[hit("A", 0.9)],
            limit=5,
        )

        assert [(h.document.id, h.score) for h in merged] == [("A", 0.9), ("B", 0.8)]

    def test_tie_keeps_vector_hit(self):
        vector_hit = hit("A", 0.5, content="from vectors")
        keyword_hit = hit("A", 0.5, content="from keywords")

        merged = HybridMerger().merge([vector_hit], [keyword_hit], limit=5)

        assert merged == [vector_hit]

    def test_lower_keyword_score_ignored(self):
        merged = HybridMerger().merge([hit("A", 0.7)], [hit("A", 0.1)], limit=5)

        assert [h.score for h in merged] == [0.7]

    def test_keyword_only_hits_added(self):
        merged = HybridMerger().merge([hit("A", 0.2)], [hit("C", 3.5)], limit=5)

        assert [h.document.id for h in merged] == ["C", "A"]

    def test_truncates_to_limit(self):
        merged = HybridMerger().merge(
            [hit("A", 0.1), hit("B", 0.2)], [hit("C", 0.3), hit("D", 0.4)], limit=3
        )

        assert [h.document.id for h in merged] == ["D", "C", "B"]

    def test_empty_inputs(self):
        assert HybridMerger().merge([], [], limit=5) == []


class TestExtractSnippet:
    def test_short_content_shown_whole(self):
        assert extract_snippet("short note", "anything") == "\nshort note\n\n"

    def test_window_around_first_match(self):
        content = "a" * 600 + "Needle" + "b" * 600

        snippet = extract_snippet(content, "needle")

        assert snippet == f"\n{content[400:900]}...\n\n"

    def test_match_near_start(self):
        content = "needle " + "c" * 800

        snippet = extract_snippet(content, "NEEDLE")

        assert snippet == f"\n{content[:300]}...\n\n"

    def test_no_match_uses_start(self):
        content = "d" * 800

        assert extract_snippet(content, "missing") == f"\n{'d' * 500}...\n\n"


@pytest.fixture
async def keyword_setup(make_indexer, fake_vault):
    """Ready keyword-only indexer with three notes."""
    fake_vault.add("cats.md", "Cats are great pets and sleep all day.")
    fake_vault.add("dogs.md", "Dogs need daily walks.")
    fake_vault.add("fish.md", "Fish tanks need filters.")
    indexer = make_indexer()
    await indexer.initialize_index()
    return indexer, SearchService(indexer, fake_vault, max_search_results=5)


class TestKeywordSearch:
    async def test_not_ready_returns_no_results(self, make_indexer, fake_vault):
        service = SearchService(make_indexer(), fake_vault)

        assert await service.search_vault("cats") == NO_RESULTS

    async def test_formats_results(self, keyword_setup):
        _, service = keyword_setup

        context = await service.search_vault("cats")

        assert context.startswith("Search results from vault:\n\n## cats\nPath: cats.md\nScore: ")
        assert "\nCats are great pets and sleep all day.\n\n---\n\n" in context
        assert "dogs.md" not in context

    async def test_score_has_four_decimals(self, keyword_setup):
        _, service = keyword_setup
        hits = await service.search("cats")

        context = await service.search_vault("cats")

        assert f"Score: {hits[0].score:.4f}\n" in context

    async def test_no_match_returns_no_results(self, keyword_setup):
        _, service = keyword_setup

        assert await service.search_vault("volcano") == NO_RESULTS

    async def test_vault_search_disabled(self, keyword_setup):
        _, service = keyword_setup

        context = await service.search_vault("cats", SearchOptions(use_vault_search=False))

        assert context == NO_RESULTS

    async def test_max_search_results_limits_hits(self, keyword_setup):
        _, service = keyword_setup
        service.update_max_search_results(1)

        hits = await service.search("need")

        assert service.max_search_results == 1
        assert len(hits) == 1

    async def test_errors_become_sentinel(self, keyword_setup):
        _, service = keyword_setup

        with patch.object(service, "keyword_search", side_effect=RuntimeError("disk gone")):
            assert await service.search_vault("cats") == SEARCH_ERROR

    async def test_vector_option_ignored_when_disabled_on_indexer(
        self, keyword_setup, mock_embedding_service
    ):
        _, service = keyword_setup

        context = await service.search_vault("cats", SearchOptions(use_vector_search=True))

        assert "## cats" in context
        mock_embedding_service.get_query_embedding.assert_not_called()


class TestHybridSearch:
    async def test_empty_embedding_store_falls_back_to_keywords(
        self, make_indexer, fake_vault, mock_embedding_service, embedding_config
    ):
        fake_vault.add("cats.md", "Cats are great pets.")
        indexer = make_indexer(embedding_service=mock_embedding_service)
        await indexer.initialize_index()
        indexer.update_embedding_config(embedding_config, use_vector_search=True)
        service = SearchService(indexer, fake_vault)

        assert await service.vector_search("cats", 10) == []
        context = await service.search_vault("cats", SearchOptions(use_vector_search=True))

        assert "## cats\nPath: cats.md\n" in context
        mock_embedding_service.get_query_embedding.assert_not_called()

    async def test_vector_and_keyword_hits_merged(
        self, make_indexer, fake_vault, mock_embedding_service
    ):
        async def embed_document(text: str) -> list[float]:
            return [1.0, 0.0] if "apples" in text else [0.0, 1.0]

        mock_embedding_service.get_document_embedding.side_effect = embed_document
        mock_embedding_service.get_query_embedding.return_value = [0.0, 1.0]
        fake_vault.add("alpha.md", "apples and pears")
        fake_vault.add("beta.md", "bananas")
        indexer = make_indexer(use_vector_search=True, embedding_service=mock_embedding_service)
        await indexer.initialize_index()
        service = SearchService(indexer, fake_vault)

        hits = await service.search("apples", use_vector_search=True)

        assert [h.document.id for h in hits] == ["beta.md", "alpha.md"]
        assert hits[0].score == pytest.approx(1.0)
        context = await service.search_vault("apples", SearchOptions(use_vector_search=True))
        assert context.index("## beta") < context.index("## alpha")
        assert "Score: 1.0000\n" in context

    async def test_vector_search_orders_by_similarity(
        self, make_indexer, fake_vault, mock_embedding_service
    ):
        vectors = {"north": [1.0, 0.0], "east": [0.0, 1.0], "northeast": [1.0, 1.0]}

        async def embed_document(text: str) -> list[float]:
            return vectors[text]

        mock_embedding_service.get_document_embedding.side_effect = embed_document
        mock_embedding_service.get_query_embedding.return_value = [1.0, 0.1]
        for name in vectors:
            fake_vault.add(f"{name}.md", name)
        indexer = make_indexer(use_vector_search=True, embedding_service=mock_embedding_service)
        await indexer.initialize_index()
        service = SearchService(indexer, fake_vault)

        hits = await service.vector_search("which way", limit=2)

        assert [h.document.id for h in hits] == ["north.md", "northeast.md"]

    async def test_query_embedding_failure_falls_back_to_keywords(
        self, make_indexer, fake_vault, mock_embedding_service
    ):
        mock_embedding_service.get_query_embedding.side_effect = EmbeddingError("offline")
        fake_vault.add("cats.md", "Cats are great pets.")
        indexer = make_indexer(use_vector_search=True, embedding_service=mock_embedding_service)
        await indexer.initialize_index()
        service = SearchService(indexer, fake_vault)

        context = await service.search_vault("cats", SearchOptions(use_vector_search=True))

        assert "## cats" in context


class TestCurrentNote:
    async def test_current_note_only(self, make_indexer, fake_vault):
        fake_vault.add("today.md", "Buy milk")
        fake_vault.active_path = "today.md"
        service = SearchService(make_indexer(), fake_vault)

        context = await service.search_vault(
            "milk", SearchOptions(use_vault_search=False, use_current_note=True)
        )

        assert context == 'Content of the current note "today" in Markdown format:\n\nBuy milk'

    async def test_current_note_then_results(self, keyword_setup, fake_vault):
        _, service = keyword_setup
        fake_vault.active_path = "dogs.md"

        context = await service.search_vault("cats", SearchOptions(use_current_note=True))

        assert context.startswith('Content of the current note "dogs" in Markdown format:')
        assert "Dogs need daily walks.\n\n---\n\nSearch results from vault:\n\n## cats" in context

    async def test_no_active_note(self, keyword_setup):
        _, service = keyword_setup

        context = await service.search_vault(
            "volcano", SearchOptions(use_current_note=True)
        )

        assert context == NO_RESULTS

    async def test_empty_active_note_ignored(self, make_indexer, fake_vault):
        fake_vault.add("blank.md", "")
        fake_vault.active_path = "blank.md"
        service = SearchService(make_indexer(), fake_vault)

        context = await service.search_vault(
            "x", SearchOptions(use_vault_search=False, use_current_note=True)
        )

        assert context == NO_RESULTS
