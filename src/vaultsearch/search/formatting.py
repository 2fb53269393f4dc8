"""Formatting of search hits into prompt context."""

from vaultsearch.constants import (
    MAX_SNIPPET_LENGTH,
    RESULT_SEPARATOR,
    SEARCH_RESULTS_HEADER,
    SNIPPET_CONTEXT_AFTER,
    SNIPPET_CONTEXT_BEFORE,
)
from vaultsearch.indexing.fulltext import SearchHit


def extract_snippet(content: str, query: str) -> str:
    """Pick the part of a chunk to show for a query.

    Short content is shown whole. Otherwise the text around the first
    case-insensitive occurrence of the query is shown, or the start of the
    content if the query does not occur. Cut content ends with "...".
    """
    if len(content) <= MAX_SNIPPET_LENGTH:
        return f"\n{content}\n\n"

    pos = content.lower().find(query.lower())
    if pos >= 0:
        start = max(0, pos - SNIPPET_CONTEXT_BEFORE)
        end = min(len(content), pos + SNIPPET_CONTEXT_AFTER)
        return f"\n{content[start:end]}...\n\n"

    return f"\n{content[:MAX_SNIPPET_LENGTH]}...\n\n"


def format_results(results: list[SearchHit], query: str) -> str:
    """Render hits as a markdown block for the language model."""
    parts = [SEARCH_RESULTS_HEADER]
    for hit in results:
        document = hit.document
        parts.append(f"## {document.title}\n")
        parts.append(f"Path: {document.path}\n")
        parts.append(f"Score: {hit.score:.4f}\n")
        parts.append(extract_snippet(document.content, query))
        parts.append(RESULT_SEPARATOR)
    return "".join(parts)


def format_current_note(title: str, content: str) -> str:
    return f'Content of the current note "{title}" in Markdown format:\n\n{content}'
