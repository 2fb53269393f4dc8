"""Persist the search index to a JSON sidecar file in the vault config directory."""

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any

from vaultsearch.constants import (
    AUTOSAVE_CHECK_INTERVAL_SECONDS,
    AUTOSAVE_DELAY_SECONDS,
    SIDECAR_EMBEDDINGS_KEY,
    SIDECAR_FILE_TIMES_KEY,
    SIDECAR_SERIALIZED_INDEX_KEY,
)
from vaultsearch.indexing.embedding_store import EmbeddingStore
from vaultsearch.indexing.errors import IndexCorruptedError, IndexNotReadyError
from vaultsearch.indexing.fulltext import FullTextIndex
from vaultsearch.indexing.state import SearchIndex

logger = logging.getLogger(__name__)


class IndexPersistence:
    """Saves and restores a SearchIndex, with dirty tracking and autosave.

    Mutations call ``mark_dirty()``. A background task checks every
    ``check_interval`` seconds and saves once the index has been dirty for
    longer than ``autosave_delay`` seconds, so a burst of edits becomes one
    write. ``cleanup()`` flushes any unsaved changes on shutdown.
    """

    def __init__(
        self,
        index: SearchIndex,
        path: Path,
        autosave_delay: float = AUTOSAVE_DELAY_SECONDS,
        check_interval: float = AUTOSAVE_CHECK_INTERVAL_SECONDS,
        store_embeddings: bool = False,
    ) -> None:
        """Initialize persistence.

        Args:
            index: The index state to save and restore.
            path: Sidecar file path.
            autosave_delay: Seconds the index must stay dirty before autosave.
            check_interval: Seconds between autosave checks.
            store_embeddings: Whether to write the embedding store (vector
                search enabled). When False an empty object is written.
        """
        self._index = index
        self.path = Path(path)
        self.autosave_delay = autosave_delay
        self.check_interval = check_interval
        self.store_embeddings = store_embeddings

        self._dirty = False
        self._dirty_since: float | None = None
        self._mutation_count = 0
        self._autosave_task: asyncio.Task[None] | None = None
        self._save_lock = asyncio.Lock()

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def dirty_since(self) -> float | None:
        """Wall-clock time the index became dirty, or None when clean."""
        return self._dirty_since

    @property
    def autosave_scheduled(self) -> bool:
        return self._autosave_task is not None and not self._autosave_task.done()

    def mark_dirty(self) -> None:
        """Record a mutation and make sure the autosave task is running."""
        self._mutation_count += 1
        if not self._dirty:
            self._dirty = True
            self._dirty_since = time.time()
        self._ensure_autosave()

    async def save(self) -> None:
        """Write the index to the sidecar file.

        Saves run one at a time. A cancelled save still waits for its file
        write to finish before releasing the next one.

        Raises:
            IndexNotReadyError: If the index has not been loaded or built.
            OSError: If the file cannot be written.
        """
        async with self._save_lock:
            await self._save_locked()

    async def _save_locked(self) -> None:
        fulltext = self._index.fulltext
        if not self._index.ready or fulltext is None:
            raise IndexNotReadyError("Cannot save search index before it is ready")

        mutation_count = self._mutation_count
        payload: dict[str, Any] = {
            SIDECAR_SERIALIZED_INDEX_KEY: fulltext.serialize(),
            SIDECAR_FILE_TIMES_KEY: dict(self._index.file_mtimes),
            SIDECAR_EMBEDDINGS_KEY: (
                self._index.embeddings.to_dict() if self.store_embeddings else {}
            ),
        }

        start_time = time.perf_counter()
        write = asyncio.ensure_future(asyncio.to_thread(self._write, payload))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            # The worker thread keeps writing; hold the lock until it is done
            await asyncio.wait([write])
            raise
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        # Mutations made while the file was being written stay dirty
        if self._mutation_count == mutation_count:
            self._dirty = False
            self._dirty_since = None
            self._stop_autosave()

        logger.info(
            f"Saved search index to {self.path} "
            f"({len(self._index.file_mtimes)} files, {duration_ms}ms)"
        )

    async def load(self) -> bool:
        """Restore the index from the sidecar file.

        Returns:
            True if the index was restored and is now ready. False if there is
            no sidecar file or it could not be read, in which case the index is
            left as it was.
        """
        if not self.path.exists():
            logger.info(f"No saved search index at {self.path}")
            return False

        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            data = json.loads(raw)
            fulltext = FullTextIndex.deserialize(data[SIDECAR_SERIALIZED_INDEX_KEY])
            file_mtimes = {
                str(path): int(mtime)
                for path, mtime in (data.get(SIDECAR_FILE_TIMES_KEY) or {}).items()
            }
            embeddings = EmbeddingStore.from_dict(data.get(SIDECAR_EMBEDDINGS_KEY))
        except (
            OSError,
            ValueError,
            KeyError,
            TypeError,
            AttributeError,
            IndexCorruptedError,
        ) as e:
            logger.error(f"Failed to load search index from {self.path}: {e}")
            return False

        if self._index.fulltext is not None:
            self._index.fulltext.close()
        self._index.fulltext = fulltext
        self._index.file_mtimes = file_mtimes
        self._index.embeddings = embeddings
        self._index.ready = True

        logger.info(
            f"Loaded search index from {self.path} "
            f"({len(file_mtimes)} files, {len(embeddings)} embeddings)"
        )
        return True

    async def cleanup(self) -> None:
        """Stop autosave and save once more if there are unsaved changes."""
        autosave = self._autosave_task
        self._stop_autosave()
        running = autosave is not None and not autosave.done()
        if running and autosave is not asyncio.current_task():
            await asyncio.wait([autosave])
        if not self._dirty:
            return
        try:
            await self.save()
        except Exception as e:
            logger.error(f"Final save of search index failed: {e}")

    def delete(self) -> bool:
        """Remove the sidecar file; returns whether it existed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Deleted saved search index at {self.path}")
        return True

    def _write(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        tmp_path.replace(self.path)

    def _ensure_autosave(self) -> None:
        if self.autosave_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: changes are saved by the next explicit save or cleanup
            return
        self._autosave_task = loop.create_task(self._autosave_loop())

    def _stop_autosave(self) -> None:
        task = self._autosave_task
        self._autosave_task = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    async def _autosave_loop(self) -> None:
        while self._dirty:
            await asyncio.sleep(self.check_interval)
            if not self._dirty or self._dirty_since is None:
                break
            if time.time() - self._dirty_since < self.autosave_delay:
                continue
            if not self._index.ready:
                logger.debug("Search index not ready; postponing autosave")
                continue
            try:
                await self.save()
            except Exception as e:
                logger.error(f"Autosave of search index failed: {e}")
                self._dirty_since = time.time()
