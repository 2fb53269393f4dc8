"""Shared pytest fixtures for all tests.

These fixtures properly clean up resources so autosave tasks and SQLite
connections do not leak between tests.
"""

import asyncio
import gc
import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from vaultsearch.config import ChunkingOptions, EmbeddingServiceConfig
from vaultsearch.embeddings import EmbeddingService, cosine_similarity
from vaultsearch.indexing import IndexingService, IndexPersistence, SearchIndex
from vaultsearch.vault import VaultFile


class FakeVault:
    """In-memory DocumentStore with explicit modification times.

    ``reads`` records every path read. When ``gate`` is set, reads wait for it.
    """

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir
        self.files: dict[str, tuple[str, int]] = {}
        self.reads: list[str] = []
        self.active_path: str | None = None
        self.gate: asyncio.Event | None = None

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def add(self, path: str, content: str, mtime: int = 1) -> VaultFile:
        self.files[path] = (content, mtime)
        return self._to_file(path)

    def remove(self, path: str) -> None:
        del self.files[path]

    def _to_file(self, path: str) -> VaultFile:
        _, mtime = self.files[path]
        return VaultFile(path=path, basename=Path(path).stem, mtime=mtime)

    def list_files(self) -> list[VaultFile]:
        return [self._to_file(path) for path in sorted(self.files)]

    def get_file(self, path: str) -> VaultFile | None:
        if path not in self.files:
            return None
        return self._to_file(path)

    def active_file(self) -> VaultFile | None:
        if self.active_path is None:
            return None
        return self.get_file(self.active_path)

    async def read(self, file: VaultFile) -> str:
        self.reads.append(file.path)
        if self.gate is not None:
            await self.gate.wait()
        if file.path not in self.files:
            raise FileNotFoundError(file.path)
        return self.files[file.path][0]


def write_note(root: Path, rel_path: str, content: str, mtime: float | None = None) -> Path:
    """Write a note under root, optionally with a fixed mtime (seconds)."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Release lingering SQLite connections after each test."""
    yield
    gc.collect()


@pytest.fixture
def fake_vault(tmp_path):
    """Empty in-memory vault."""
    return FakeVault(tmp_path / ".vaultsearch")


@pytest.fixture
def search_index():
    """Empty index state."""
    index = SearchIndex()
    yield index
    if index.fulltext is not None:
        index.fulltext.close()


@pytest.fixture
async def persistence(tmp_path, search_index):
    """Persistence with a long autosave delay so tests control saving."""
    store = IndexPersistence(
        search_index,
        tmp_path / ".vaultsearch" / "search-index.json",
        autosave_delay=60.0,
        check_interval=0.05,
    )
    yield store
    await store.cleanup()


@pytest.fixture
def embedding_config():
    return EmbeddingServiceConfig(
        service="ollama",
        service_url="http://embed.test",
        model="test-model",
    )


@pytest.fixture
def mock_embedding_service():
    """Embedding service mock with a real cosine similarity."""
    service = MagicMock(spec=EmbeddingService)
    service.get_document_embedding = AsyncMock(return_value=[1.0, 0.0])
    service.get_query_embedding = AsyncMock(return_value=[1.0, 0.0])
    service.cosine_similarity.side_effect = cosine_similarity
    return service


@pytest.fixture
def make_indexer(fake_vault, search_index, persistence):
    """Factory for an IndexingService over the fake vault."""

    def _make(
        chunking_options: ChunkingOptions | None = None,
        use_vector_search: bool = False,
        embedding_service: EmbeddingService | None = None,
    ) -> IndexingService:
        return IndexingService(
            fake_vault,
            search_index,
            persistence,
            chunking_options=(
                chunking_options or ChunkingOptions(chunk_size=1000, chunk_overlap=200)
            ),
            use_vector_search=use_vector_search,
            embedding_service=embedding_service,
        )

    return _make
