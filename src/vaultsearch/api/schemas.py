"""Pydantic schemas for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field


class IndexStatusResponse(BaseModel):
    """Indexing status for the host UI."""

    status: str = Field(..., description="One of: initializing, indexing, ready, error")
    message: str
    current: int = 0
    total: int = 0
    pending_paths: list[str] = Field(default_factory=list)
    notices: list[str] = Field(default_factory=list)


class ReindexResponse(BaseModel):
    """Result of a full reindex."""

    status: str
    message: str


class FileEventRequest(BaseModel):
    """Notification that a note changed on disk."""

    event: Literal["created", "modified", "deleted"]
    path: str = Field(..., min_length=1, description="Vault-relative path of the note")


class FileEventResponse(BaseModel):
    """What was done with a file event."""

    event: str
    path: str
    scheduled: bool = False
    removed_chunks: int = 0


class ActiveNoteRequest(BaseModel):
    """The note currently open in the host, or null when none is."""

    path: str | None = None


class ActiveNoteResponse(BaseModel):
    path: str | None = None
    title: str | None = None


class SearchRequest(BaseModel):
    """Search request."""

    query: str
    use_vault_search: bool = True
    use_vector_search: bool = False
    use_current_note: bool = False


class SearchResponse(BaseModel):
    """Context block built for the query."""

    query: str
    context: str
