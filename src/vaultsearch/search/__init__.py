"""Hybrid vault search."""

from vaultsearch.search.formatting import extract_snippet, format_results
from vaultsearch.search.ranking import HybridMerger
from vaultsearch.search.service import SearchOptions, SearchService

__all__ = [
    "extract_snippet",
    "format_results",
    "HybridMerger",
    "SearchOptions",
    "SearchService",
]
