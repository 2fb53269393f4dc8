# src/vaultsearch/embeddings/__init__.py
"""Embedding provider client and vector similarity."""

from vaultsearch.embeddings.client import (
    DimensionMismatchError,
    EmbeddingAPIError,
    EmbeddingConnectionError,
    EmbeddingError,
    EmbeddingPurpose,
    EmbeddingService,
    UnsupportedEmbeddingServiceError,
    cosine_similarity,
)

__all__ = [
    "DimensionMismatchError",
    "EmbeddingAPIError",
    "EmbeddingConnectionError",
    "EmbeddingError",
    "EmbeddingPurpose",
    "EmbeddingService",
    "UnsupportedEmbeddingServiceError",
    "cosine_similarity",
]
