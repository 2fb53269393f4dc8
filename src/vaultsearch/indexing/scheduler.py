"""Per-file debounce of reindexing after edits."""

import asyncio
import logging
from functools import partial

from vaultsearch.constants import FILE_EDIT_COOLDOWN_SECONDS
from vaultsearch.indexing.models import IndexFileResult, IndexFileStatus, IndexState
from vaultsearch.indexing.service import IndexingService
from vaultsearch.vault import VaultFile

logger = logging.getLogger(__name__)


class ReindexScheduler:
    """Delays reindexing a file until it has not been edited for a while.

    Each edit resets that file's timer. ``flush()`` skips the wait for every
    pending file, which is done before a search so results reflect the
    latest edits.

    At most one reindex per path runs at a time: a new one waits for the
    previous one to finish. Cooldowns that expire while the indexer is
    scanning the vault are re-armed until the scan is over.
    """

    def __init__(
        self,
        indexer: IndexingService,
        cooldown: float = FILE_EDIT_COOLDOWN_SECONDS,
    ) -> None:
        self._indexer = indexer
        self.cooldown = cooldown
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._pending: dict[str, VaultFile] = {}
        # Latest reindex task per path
        self._running: dict[str, asyncio.Task[IndexFileResult]] = {}

    def pending_paths(self) -> list[str]:
        return sorted(self._pending)

    def in_flight_paths(self) -> list[str]:
        """Paths whose reindex has started but not finished."""
        return sorted(path for path, task in self._running.items() if not task.done())

    def schedule(self, file: VaultFile) -> bool:
        """Schedule a file to be reindexed after the cooldown.

        Returns:
            False if the index is not ready or indexing has failed, in which
            case nothing is scheduled.
        """
        if not self._indexer.is_index_ready() or self._indexer.is_indexing_failed():
            return False

        self._cancel_timer(file.path)
        self._pending[file.path] = file
        self._arm_timer(file.path)
        logger.debug(f"Scheduled reindexing for file {file.path} in {self.cooldown} seconds")
        return True

    def forget(self, path: str) -> bool:
        """Cancel a pending reindex, e.g. because the file was deleted."""
        had_timer = self._cancel_timer(path)
        return self._pending.pop(path, None) is not None or had_timer

    def cancel_all(self) -> None:
        """Cancel every pending reindex.

        Reindexing that has already started is left to finish.
        """
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._pending.clear()

    async def flush(self) -> list[IndexFileResult]:
        """Reindex every pending file now and wait until no reindex is running.

        Pending files are indexed concurrently. Reindexing started earlier by
        an expired cooldown is awaited too, so the index holds the latest
        content of every file once this returns.

        Returns:
            Results for the files that were pending, in no particular order.
        """
        if self._indexer.state is IndexState.INITIALIZING:
            logger.info("Vault scan in progress; scheduled files are indexed after it")
            return []

        await self._wait_in_flight()

        if not self._pending:
            return []

        if self._indexer.is_indexing_failed():
            logger.info(
                "Skipping reindexing because previous indexing failed. "
                "Use reindex to reset."
            )
            return []

        files = list(self._pending.values())
        self.cancel_all()

        logger.info(f"Immediately reindexing {len(files)} scheduled files")
        tasks = [self._start_reindex(file) for file in files]
        results = await asyncio.gather(*tasks)
        await self._wait_in_flight()
        logger.info("All scheduled files have been reindexed")
        return list(results)

    def _arm_timer(self, path: str) -> None:
        loop = asyncio.get_running_loop()
        self._timers[path] = loop.call_later(self.cooldown, self._on_cooldown, path)

    def _cancel_timer(self, path: str) -> bool:
        handle = self._timers.pop(path, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def _on_cooldown(self, path: str) -> None:
        self._timers.pop(path, None)
        if path not in self._pending:
            return
        if self._indexer.state is IndexState.INITIALIZING:
            logger.debug(f"Vault scan in progress; delaying reindexing of {path}")
            self._arm_timer(path)
            return
        self._start_reindex(self._pending.pop(path))

    def _start_reindex(self, file: VaultFile) -> asyncio.Task[IndexFileResult]:
        previous = self._running.get(file.path)
        task = asyncio.ensure_future(self._reindex(file, previous))
        self._running[file.path] = task
        task.add_done_callback(partial(self._on_reindex_done, file.path))
        return task

    def _on_reindex_done(self, path: str, task: asyncio.Task[IndexFileResult]) -> None:
        if self._running.get(path) is task:
            del self._running[path]
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Reindexing {path} raised: {task.exception()}")

    async def _wait_in_flight(self) -> None:
        # Reindexing can start while waiting (a cooldown expiring), so loop
        while True:
            in_flight = [task for task in self._running.values() if not task.done()]
            if not in_flight:
                return
            await asyncio.wait(in_flight)

    async def _reindex(
        self, file: VaultFile, previous: asyncio.Task[IndexFileResult] | None
    ) -> IndexFileResult:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        result = await self._indexer.index_file(file)
        if result.status is IndexFileStatus.FAILED:
            logger.error(f"Reindexing {file.path} failed: {result.error}")
        elif result.status is IndexFileStatus.INDEXED:
            logger.info(f"Reindexed file {file.path}")
        return result
