"""Index status, reindex and file change endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from vaultsearch.api.deps import get_indexer, get_notices, get_scheduler, get_vault
from vaultsearch.api.schemas import (
    FileEventRequest,
    FileEventResponse,
    IndexStatusResponse,
    ReindexResponse,
)
from vaultsearch.indexing import IndexingService, IndexState, ReindexScheduler
from vaultsearch.notices import NoticeBoard
from vaultsearch.vault import FileSystemVault

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/index", tags=["index"])


@router.get("/status", response_model=IndexStatusResponse)
async def get_index_status(
    indexer: IndexingService = Depends(get_indexer),
    scheduler: ReindexScheduler = Depends(get_scheduler),
    notices: NoticeBoard = Depends(get_notices),
) -> IndexStatusResponse:
    """Get the indexing status, files waiting to be reindexed and recent notices."""
    current = indexer.get_indexing_status()
    return IndexStatusResponse(
        status=current.status,
        message=current.message,
        current=current.current,
        total=current.total,
        pending_paths=scheduler.pending_paths(),
        notices=notices.recent(),
    )


@router.post("/reindex", response_model=ReindexResponse)
async def reindex_all(
    indexer: IndexingService = Depends(get_indexer),
    scheduler: ReindexScheduler = Depends(get_scheduler),
    notices: NoticeBoard = Depends(get_notices),
) -> ReindexResponse:
    """Discard the index and index every note again.

    This also clears a failed indexing state.
    """
    if indexer.state is IndexState.INITIALIZING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Indexing already in progress",
        )

    scheduler.cancel_all()
    try:
        await indexer.reindex_all()
    except Exception as e:
        logger.error(f"Error during reindexing: {e}")
        notices("Error during reindexing. Check the logs for details.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Reindexing failed: {e}",
        )

    current = indexer.get_indexing_status()
    return ReindexResponse(status=current.status, message="Reindexing completed successfully")


@router.post("/events", response_model=FileEventResponse)
async def file_event(
    request: FileEventRequest,
    vault: FileSystemVault = Depends(get_vault),
    indexer: IndexingService = Depends(get_indexer),
    scheduler: ReindexScheduler = Depends(get_scheduler),
) -> FileEventResponse:
    """Handle a note being created, modified or deleted.

    Created and modified notes are reindexed after the edit cooldown.
    Deleted notes are removed from the index right away.
    """
    if request.event == "deleted":
        scheduler.forget(request.path)
        removed = indexer.remove_file(request.path)
        return FileEventResponse(
            event=request.event, path=request.path, removed_chunks=removed
        )

    file = vault.get_file(request.path)
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File not found: {request.path}",
        )

    scheduled = scheduler.schedule(file)
    return FileEventResponse(event=request.event, path=request.path, scheduled=scheduled)
