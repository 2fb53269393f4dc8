"""Incremental hybrid search index for note vaults."""

__version__ = "0.1.0"
