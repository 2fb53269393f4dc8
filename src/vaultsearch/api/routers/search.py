"""Search endpoints."""

from fastapi import APIRouter, Depends

from vaultsearch.api.deps import get_scheduler, get_search_service
from vaultsearch.api.schemas import SearchRequest, SearchResponse
from vaultsearch.indexing import ReindexScheduler
from vaultsearch.search import SearchOptions, SearchService

router = APIRouter(prefix="/api/search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    service: SearchService = Depends(get_search_service),
    scheduler: ReindexScheduler = Depends(get_scheduler),
) -> SearchResponse:
    """Build the prompt context for a query.

    Notes edited within the cooldown are reindexed first so the results
    reflect their latest content.
    """
    if request.use_vault_search:
        await scheduler.flush()

    context = await service.search_vault(
        request.query,
        SearchOptions(
            use_vault_search=request.use_vault_search,
            use_vector_search=request.use_vector_search,
            use_current_note=request.use_current_note,
        ),
    )
    return SearchResponse(query=request.query, context=context)
