"""Chunking service for vault notes."""

from __future__ import annotations

from dataclasses import dataclass, replace

from vaultsearch.config import ChunkingOptions
from vaultsearch.constants import CHUNK_ID_SEPARATOR


@dataclass
class NoteDocument:
    """A note, or a fragment of one, as stored in the search index.

    Attributes:
        id: Document id (the note path) or chunk id ("<path>-chunk-<n>").
        title: Note title (file basename).
        path: Vault path of the source note.
        content: Text of the note or chunk.
        embedding: Vector for the content, when vector search is enabled.
    """

    id: str
    title: str
    path: str
    content: str
    embedding: list[float] | None = None


def chunk_id(document_id: str, index: int) -> str:
    """Id of the index-th chunk of a document."""
    return f"{document_id}{CHUNK_ID_SEPARATOR}{index}"


class ChunkingService:
    """Splits notes into fixed-size, overlapping character windows.

    Chunk i+1 starts chunk_overlap characters before chunk i ends, so
    stripping the first chunk_overlap characters of every chunk after the
    first and concatenating gives back the original text.
    """

    def __init__(self, options: ChunkingOptions | None = None) -> None:
        self.options = options or ChunkingOptions()

    def chunk_document(self, document: NoteDocument) -> list[NoteDocument]:
        """Split a document into chunks.

        A document that fits in one chunk is returned as-is, keeping its id
        without a chunk suffix.

        Args:
            document: The note to split.

        Returns:
            Chunks in content order with contiguous ids.
        """
        chunk_size = self.options.chunk_size
        chunk_overlap = self.options.chunk_overlap
        content = document.content

        if len(content) <= chunk_size:
            return [document]

        chunks: list[NoteDocument] = []
        start_index = 0
        chunk_index = 0

        while start_index < len(content):
            end_index = min(start_index + chunk_size, len(content))
            chunks.append(
                replace(
                    document,
                    id=chunk_id(document.id, chunk_index),
                    content=content[start_index:end_index],
                    embedding=None,
                )
            )

            if end_index >= len(content):
                break

            next_start = end_index - chunk_overlap
            # Stop only when the start would not advance (overlap >= chunk size).
            # A start at len - 1 still gets its chunk so no text is dropped.
            if next_start <= start_index:
                break

            start_index = next_start
            chunk_index += 1

        return chunks
