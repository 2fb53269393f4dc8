"""In-memory map from chunk id to embedding vector."""

from typing import Any, Iterator


class EmbeddingStore:
    """Stores one vector per chunk id.

    Serialized as a plain ``{chunk_id: [floats]}`` mapping in the sidecar file.
    """

    def __init__(self, embeddings: dict[str, list[float]] | None = None) -> None:
        self._embeddings: dict[str, list[float]] = dict(embeddings or {})

    def get(self, chunk_id: str) -> list[float] | None:
        return self._embeddings.get(chunk_id)

    def set(self, chunk_id: str, embedding: list[float]) -> None:
        self._embeddings[chunk_id] = list(embedding)

    def delete(self, chunk_id: str) -> bool:
        """Remove a vector; returns whether one was stored."""
        return self._embeddings.pop(chunk_id, None) is not None

    def clear(self) -> None:
        self._embeddings.clear()

    def __len__(self) -> int:
        return len(self._embeddings)

    def __contains__(self, chunk_id: object) -> bool:
        return chunk_id in self._embeddings

    def __iter__(self) -> Iterator[str]:
        return iter(self._embeddings)

    def to_dict(self) -> dict[str, list[float]]:
        return {chunk_id: list(vector) for chunk_id, vector in self._embeddings.items()}

    @classmethod
    def from_dict(cls, data: Any) -> "EmbeddingStore":
        """Build a store from a persisted mapping.

        Raises:
            ValueError: If the data is not a mapping of ids to number lists.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object of embeddings, got {type(data).__name__}")
        try:
            return cls({str(key): [float(v) for v in value] for key, value in data.items()})
        except (TypeError, ValueError) as e:
            raise ValueError(f"Malformed embedding entry: {e}") from e
