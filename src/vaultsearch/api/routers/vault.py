"""Vault endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from vaultsearch.api.deps import get_vault
from vaultsearch.api.schemas import ActiveNoteRequest, ActiveNoteResponse
from vaultsearch.vault import FileSystemVault

router = APIRouter(prefix="/api/vault", tags=["vault"])


@router.get("/active", response_model=ActiveNoteResponse)
async def get_active_note(
    vault: FileSystemVault = Depends(get_vault),
) -> ActiveNoteResponse:
    """Get the note the host currently has open."""
    active = vault.active_file()
    if active is None:
        return ActiveNoteResponse()
    return ActiveNoteResponse(path=active.path, title=active.basename)


@router.put("/active", response_model=ActiveNoteResponse)
async def set_active_note(
    request: ActiveNoteRequest,
    vault: FileSystemVault = Depends(get_vault),
) -> ActiveNoteResponse:
    """Record which note is open, used when searching with the current note."""
    if request.path is None:
        vault.set_active_file(None)
        return ActiveNoteResponse()

    file = vault.get_file(request.path)
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File not found: {request.path}",
        )
    vault.set_active_file(file.path)
    return ActiveNoteResponse(path=file.path, title=file.basename)
