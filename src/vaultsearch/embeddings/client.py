# src/vaultsearch/embeddings/client.py
"""HTTP embedding client for Ollama- and OpenAI-style endpoints."""

import logging
import math
import time
from enum import Enum
from typing import Any, Sequence

import httpx

from vaultsearch.config import EmbeddingServiceConfig
from vaultsearch.constants import (
    OLLAMA_EMBEDDINGS_PATH,
    OPENAI_EMBEDDINGS_PATH,
    SUPPORTED_EMBEDDING_SERVICES,
)
from vaultsearch.notices import Notifier, log_notice

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Base exception for embedding client errors."""

    pass


class EmbeddingConnectionError(EmbeddingError):
    """Raised when the embedding provider cannot be reached."""

    pass


class EmbeddingAPIError(EmbeddingError):
    """Raised when the embedding provider answers with a non-success status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnsupportedEmbeddingServiceError(ValueError):
    """Raised when the configured provider name is not known."""

    pass


class DimensionMismatchError(ValueError):
    """Raised when comparing vectors of different lengths."""

    pass


class EmbeddingPurpose(str, Enum):
    """What a vector will be used for.

    Asymmetric models encode stored passages and search queries differently,
    so every request says which one it is.
    """

    PASSAGE = "passage"
    QUERY = "query"


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity between two vectors, in [-1, 1].

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(vec1) != len(vec2):
        raise DimensionMismatchError(
            f"Vectors must have the same length ({len(vec1)} != {len(vec2)})"
        )

    dot_product = 0.0
    mag1 = 0.0
    mag2 = 0.0
    for a, b in zip(vec1, vec2):
        dot_product += a * b
        mag1 += a * a
        mag2 += b * b

    mag1 = math.sqrt(mag1)
    mag2 = math.sqrt(mag2)

    if mag1 == 0 or mag2 == 0:
        return 0.0

    return dot_product / (mag1 * mag2)


class EmbeddingService:
    """Turns text into vectors through a configured provider."""

    def __init__(
        self,
        config: EmbeddingServiceConfig,
        notifier: Notifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the embedding service.

        Args:
            config: Provider, base URL, model and optional API key.
            notifier: Callable that shows a message to the user on failure.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.config = config
        self._notify = notifier or log_notice
        self._transport = transport

    def update_config(self, config: EmbeddingServiceConfig) -> None:
        """Replace the provider configuration."""
        self.config = config

    async def get_document_embedding(self, text: str) -> list[float]:
        """Embed a passage that will be stored in the index."""
        return await self.get_embedding(text, EmbeddingPurpose.PASSAGE)

    async def get_query_embedding(self, text: str) -> list[float]:
        """Embed a search query."""
        return await self.get_embedding(text, EmbeddingPurpose.QUERY)

    async def get_embedding(self, text: str, purpose: EmbeddingPurpose) -> list[float]:
        """Embed text with the configured provider.

        Args:
            text: Text to embed.
            purpose: Whether the text is a stored passage or a query.

        Returns:
            The embedding vector.

        Raises:
            UnsupportedEmbeddingServiceError: If the provider is not supported.
            EmbeddingError: On network failure, non-success status, or an empty vector.
        """
        try:
            if self.config.service not in SUPPORTED_EMBEDDING_SERVICES:
                raise UnsupportedEmbeddingServiceError(
                    f"Unsupported embedding service: {self.config.service}"
                )
            url, headers, body = self._build_request(text, purpose)
            data = await self._post(url, headers, body)
            embedding = self._parse_response(data)
            if not embedding:
                raise EmbeddingError(
                    f"{self.config.service} returned an empty embedding for model "
                    f"{self.config.model}"
                )
            return embedding
        except (EmbeddingError, UnsupportedEmbeddingServiceError) as e:
            logger.error(f"Error getting embedding: {e}")
            self._notify(f"Error getting embedding: {e}")
            raise

    def _build_request(
        self, text: str, purpose: EmbeddingPurpose
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        base_url = self.config.service_url.rstrip("/")
        headers = {"Content-Type": "application/json"}

        if self.config.service == "ollama":
            body: dict[str, Any] = {
                "model": self.config.model,
                "prompt": text,
                "input_type": purpose.value,
            }
            return f"{base_url}{OLLAMA_EMBEDDINGS_PATH}", headers, body

        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        body = {
            "model": self.config.model,
            "input": text,
            "input_type": purpose.value,
        }
        return f"{base_url}{OPENAI_EMBEDDINGS_PATH}", headers, body

    async def _post(self, url: str, headers: dict[str, str], body: dict[str, Any]) -> Any:
        start_time = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise EmbeddingConnectionError(
                f"Could not reach {self.config.service} at {url}: {e}"
            ) from e

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(f"Embedding request to {url} took {duration_ms}ms ({response.status_code})")

        if not response.is_success:
            label = "Ollama" if self.config.service == "ollama" else "OpenAI"
            raise EmbeddingAPIError(
                f"{label} API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise EmbeddingError(f"Invalid JSON from {self.config.service}: {e}") from e

    def _parse_response(self, data: Any) -> list[float]:
        if not isinstance(data, dict):
            return []
        try:
            if self.config.service == "ollama":
                embedding = data.get("embedding") or []
            else:
                items = data.get("data") or []
                embedding = items[0].get("embedding", []) if items else []
            return [float(value) for value in embedding]
        except (AttributeError, TypeError, ValueError) as e:
            raise EmbeddingError(f"Malformed embedding response: {e}") from e

    @staticmethod
    def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
        return cosine_similarity(vec1, vec2)
