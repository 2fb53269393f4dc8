"""Embedding provider constants."""

# =============================================================================
# Providers
# =============================================================================
# Each provider has its own request shape. Ollama-style endpoints take a
# single "prompt"; OpenAI-style endpoints take "input" and a bearer token.

SUPPORTED_EMBEDDING_SERVICES = ("ollama", "openai")
OLLAMA_EMBEDDINGS_PATH = "/api/embeddings"
OPENAI_EMBEDDINGS_PATH = "/v1/embeddings"

DEFAULT_EMBEDDING_TIMEOUT_SECONDS = 30.0
