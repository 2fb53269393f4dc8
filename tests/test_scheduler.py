"""Reindex debounce scheduler tests."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from vaultsearch.indexing import IndexFileResult, IndexFileStatus, IndexState, ReindexScheduler
from vaultsearch.vault import VaultFile


def vault_file(path: str, mtime: int = 1) -> VaultFile:
    return VaultFile(path=path, basename=path.rsplit(".", 1)[0], mtime=mtime)


@pytest.fixture
def mock_indexer():
    """Indexer mock that is ready and indexes every file as one chunk."""
    indexer = MagicMock()
    indexer.state = IndexState.READY
    indexer.is_index_ready.return_value = True
    indexer.is_indexing_failed.return_value = False
    indexer.index_file = AsyncMock(side_effect=lambda f: IndexFileResult.indexed(f.path, 1))
    return indexer


class TestSchedule:
    async def test_ignored_when_index_not_ready(self, mock_indexer):
        mock_indexer.is_index_ready.return_value = False
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.01)

        assert scheduler.schedule(vault_file("a.md")) is False
        assert scheduler.pending_paths() == []

    async def test_ignored_when_indexing_failed(self, mock_indexer):
        mock_indexer.is_indexing_failed.return_value = True
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.01)

        assert scheduler.schedule(vault_file("a.md")) is False
        assert scheduler.pending_paths() == []

    async def test_file_indexed_after_cooldown(self, mock_indexer):
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.01)
        file = vault_file("a.md")

        assert scheduler.schedule(file) is True
        assert scheduler.pending_paths() == ["a.md"]
        await asyncio.sleep(0.1)

        mock_indexer.index_file.assert_awaited_once_with(file)
        assert scheduler.pending_paths() == []

    async def test_new_edit_restarts_cooldown(self, mock_indexer):
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.2)

        scheduler.schedule(vault_file("a.md", mtime=1))
        await asyncio.sleep(0.12)
        scheduler.schedule(vault_file("a.md", mtime=2))
        await asyncio.sleep(0.12)

        mock_indexer.index_file.assert_not_called()

        await asyncio.sleep(0.25)
        mock_indexer.index_file.assert_awaited_once_with(vault_file("a.md", mtime=2))

    async def test_forget_cancels_pending(self, mock_indexer):
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.01)
        scheduler.schedule(vault_file("a.md"))

        assert scheduler.forget("a.md") is True
        await asyncio.sleep(0.05)

        mock_indexer.index_file.assert_not_called()
        assert scheduler.forget("a.md") is False

    async def test_cancel_all(self, mock_indexer):
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.01)
        scheduler.schedule(vault_file("a.md"))
        scheduler.schedule(vault_file("b.md"))

        scheduler.cancel_all()
        await asyncio.sleep(0.05)

        mock_indexer.index_file.assert_not_called()
        assert scheduler.pending_paths() == []


class TestFlush:
    async def test_flush_with_nothing_pending(self, mock_indexer):
        scheduler = ReindexScheduler(mock_indexer, cooldown=60)

        assert await scheduler.flush() == []

    async def test_flush_indexes_pending_files_now(self, mock_indexer):
        scheduler = ReindexScheduler(mock_indexer, cooldown=60)
        scheduler.schedule(vault_file("a.md"))
        scheduler.schedule(vault_file("b.md"))

        results = await scheduler.flush()

        assert sorted(r.path for r in results) == ["a.md", "b.md"]
        assert all(r.status is IndexFileStatus.INDEXED for r in results)
        assert scheduler.pending_paths() == []
        assert mock_indexer.index_file.await_count == 2

    async def test_flush_runs_files_concurrently(self, mock_indexer):
        started: list[str] = []
        release = asyncio.Event()

        async def slow_index(file):
            started.append(file.path)
            await release.wait()
            return IndexFileResult.indexed(file.path, 1)

        mock_indexer.index_file.side_effect = slow_index
        scheduler = ReindexScheduler(mock_indexer, cooldown=60)
        scheduler.schedule(vault_file("a.md"))
        scheduler.schedule(vault_file("b.md"))

        flush = asyncio.create_task(scheduler.flush())
        while len(started) < 2:
            await asyncio.sleep(0)
        release.set()
        results = await flush

        assert sorted(started) == ["a.md", "b.md"]
        assert len(results) == 2

    async def test_flush_skipped_when_indexing_failed(self, mock_indexer):
        scheduler = ReindexScheduler(mock_indexer, cooldown=60)
        scheduler.schedule(vault_file("a.md"))
        mock_indexer.is_indexing_failed.return_value = True

        assert await scheduler.flush() == []
        mock_indexer.index_file.assert_not_called()
        scheduler.cancel_all()


async def test_scheduled_edit_reaches_real_index(make_indexer, fake_vault):
    """End to end: an edit scheduled with a short cooldown updates the ledger."""
    fake_vault.add("a.md", "first draft", mtime=1)
    indexer = make_indexer()
    await indexer.initialize_index()
    scheduler = ReindexScheduler(indexer, cooldown=0.01)

    scheduler.schedule(fake_vault.add("a.md", "second draft", mtime=2))
    await asyncio.sleep(0.1)

    assert indexer.index.file_mtimes["a.md"] == 2
    hits = indexer.index.fulltext.search("second", limit=5)
    assert [hit.document.id for hit in hits] == ["a.md"]


class TestInFlightReindex:
    """Flushing while a cooldown reindex is still running."""

    @pytest.fixture
    async def held_reindex(self, make_indexer, fake_vault):
        """a.md edited, its cooldown expired, and the read held open."""
        fake_vault.add("a.md", "alpha first", mtime=1)
        indexer = make_indexer()
        await indexer.initialize_index()
        scheduler = ReindexScheduler(indexer, cooldown=0.01)

        fake_vault.reads.clear()
        fake_vault.gate = asyncio.Event()
        scheduler.schedule(fake_vault.add("a.md", "beta second", mtime=2))
        while "a.md" not in fake_vault.reads:
            await asyncio.sleep(0.01)

        yield indexer, scheduler, fake_vault
        fake_vault.gate.set()
        scheduler.cancel_all()

    async def test_flush_waits_for_running_reindex(self, held_reindex):
        indexer, scheduler, fake_vault = held_reindex
        assert scheduler.pending_paths() == []
        assert scheduler.in_flight_paths() == ["a.md"]

        flush = asyncio.create_task(scheduler.flush())
        await asyncio.sleep(0.05)
        assert not flush.done()

        fake_vault.gate.set()
        await flush

        hits = indexer.index.fulltext.search("beta", limit=5)
        assert [hit.document.id for hit in hits] == ["a.md"]
        assert scheduler.in_flight_paths() == []

    async def test_same_path_never_indexed_twice_at_once(self, held_reindex):
        indexer, scheduler, fake_vault = held_reindex
        scheduler.schedule(fake_vault.add("a.md", "gamma third", mtime=3))

        flush = asyncio.create_task(scheduler.flush())
        await asyncio.sleep(0.05)
        fake_vault.gate.set()
        await flush

        rows = indexer.index.fulltext.find_by_path("a.md")
        assert [(row.id, row.content) for row in rows] == [("a.md", "gamma third")]
        assert indexer.index.file_mtimes["a.md"] == 3

    async def test_reindex_of_same_path_runs_after_previous(self, mock_indexer):
        order: list[str] = []
        release = asyncio.Event()

        async def slow_index(file):
            order.append(f"start {file.mtime}")
            if file.mtime == 1:
                await release.wait()
            order.append(f"end {file.mtime}")
            return IndexFileResult.indexed(file.path, 1)

        mock_indexer.index_file.side_effect = slow_index
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.01)
        scheduler.schedule(vault_file("a.md", mtime=1))
        await asyncio.sleep(0.05)
        scheduler.schedule(vault_file("a.md", mtime=2))

        flush = asyncio.create_task(scheduler.flush())
        await asyncio.sleep(0.05)
        assert order == ["start 1"]

        release.set()
        await flush

        assert order == ["start 1", "end 1", "start 2", "end 2"]


class TestDuringVaultScan:
    async def test_cooldown_deferred_until_scan_finishes(self, mock_indexer):
        mock_indexer.state = IndexState.INITIALIZING
        scheduler = ReindexScheduler(mock_indexer, cooldown=0.01)

        scheduler.schedule(vault_file("a.md"))
        await asyncio.sleep(0.05)

        mock_indexer.index_file.assert_not_called()
        assert scheduler.pending_paths() == ["a.md"]
        assert await scheduler.flush() == []

        mock_indexer.state = IndexState.READY
        await asyncio.sleep(0.05)

        mock_indexer.index_file.assert_awaited_once_with(vault_file("a.md"))
        assert scheduler.pending_paths() == []
