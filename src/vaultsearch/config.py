# src/vaultsearch/config.py
"""Configuration system for vault-search.

This module handles loading settings from environment variables and an INI
file in the vault root, providing sensible defaults, and computing derived
paths for the private per-vault configuration directory.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "indexing": {
        "chunk_size": (int, 1000, 1, 100_000, "Chunk size in characters"),
        "chunk_overlap": (int, 200, 0, 100_000, "Overlap between chunks in characters"),
        "file_edit_cooldown": (float, 5.0, 0.0, 600.0, "Seconds to wait after an edit"),
    },
    "search": {
        "max_search_results": (int, 5, 1, 100, "Results injected into the context"),
        "use_vector_search": (bool, False, None, None, "Enable hybrid vector search"),
    },
    "embedding": {
        "service": (str, "ollama", None, None, "Embedding provider (ollama, openai)"),
        "service_url": (str, "http://localhost:11434", None, None, "Provider base URL"),
        "model": (str, "nomic-embed-text", None, None, "Embedding model name"),
        "timeout": (float, 30.0, 1.0, 600.0, "HTTP timeout in seconds"),
    },
    "persistence": {
        "autosave_delay": (float, 5.0, 0.0, 3600.0, "Seconds dirty before autosave"),
        "autosave_check_interval": (float, 1.0, 0.05, 60.0, "Autosave timer interval"),
    },
    "paths": {
        "config_dir": (str, ".vaultsearch", None, None, "Private per-vault directory"),
        "index_file": (str, "search-index.json", None, None, "Persisted index filename"),
    },
}


@dataclass(frozen=True)
class IndexingConfig:
    """Chunking and change-detection configuration."""

    chunk_size: int
    chunk_overlap: int
    file_edit_cooldown: float


@dataclass(frozen=True)
class SearchConfig:
    """Search configuration."""

    max_search_results: int
    use_vector_search: bool


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding provider configuration."""

    service: str
    service_url: str
    model: str
    timeout: float


@dataclass(frozen=True)
class PersistenceConfig:
    """Autosave configuration."""

    autosave_delay: float
    autosave_check_interval: float


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    config_dir: str
    index_file: str


@dataclass
class ChunkingOptions:
    """Options handed to the chunker."""

    chunk_size: int = 1000
    chunk_overlap: int = 200


@dataclass
class EmbeddingServiceConfig:
    """Connection settings for an embedding provider."""

    service: str
    service_url: str
    model: str
    api_key: Optional[str] = None
    timeout: float = 30.0


def _parse_bool(raw_value: str) -> bool:
    return raw_value.strip().lower() in ("true", "1", "yes", "on")


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: bool | int | float | str
            try:
                if typ is bool:
                    value = _parse_bool(raw_value)
                elif typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _validate_chunking(indexing: IndexingConfig) -> None:
    if indexing.chunk_overlap >= indexing.chunk_size:
        raise ConfigError(
            f"[indexing].chunk_overlap ({indexing.chunk_overlap}) must be smaller than "
            f"[indexing].chunk_size ({indexing.chunk_size})"
        )


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Returns a Config with a placeholder vault_path that load_settings()
    replaces with the actual vault path from the VAULT_PATH environment variable.

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    indexing = IndexingConfig(**_load_section(parser, "indexing", CONFIG_SCHEMA["indexing"]))
    _validate_chunking(indexing)

    return Config(
        vault_path=Path("."),
        indexing=indexing,
        search=SearchConfig(**_load_section(parser, "search", CONFIG_SCHEMA["search"])),
        embedding=EmbeddingConfig(
            **_load_section(parser, "embedding", CONFIG_SCHEMA["embedding"])
        ),
        persistence=PersistenceConfig(
            **_load_section(parser, "persistence", CONFIG_SCHEMA["persistence"])
        ),
        paths=PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"])),
    )


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    vault_path: Path
    embedding_api_key: Optional[str] = None

    # Section configs - defaults set in __post_init__
    indexing: IndexingConfig = None  # type: ignore[assignment]
    search: SearchConfig = None  # type: ignore[assignment]
    embedding: EmbeddingConfig = None  # type: ignore[assignment]
    persistence: PersistenceConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        # Since frozen=True, we need to use object.__setattr__
        if self.indexing is None:
            object.__setattr__(self, "indexing", IndexingConfig(**_defaults("indexing")))
        if self.search is None:
            object.__setattr__(self, "search", SearchConfig(**_defaults("search")))
        if self.embedding is None:
            object.__setattr__(self, "embedding", EmbeddingConfig(**_defaults("embedding")))
        if self.persistence is None:
            object.__setattr__(
                self, "persistence", PersistenceConfig(**_defaults("persistence"))
            )
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_defaults("paths")))

    @property
    def config_dir_path(self) -> Path:
        """Path to the private per-vault configuration directory."""
        return self.vault_path / self.paths.config_dir

    @property
    def index_path(self) -> Path:
        """Path to the persisted search index sidecar file."""
        return self.config_dir_path / self.paths.index_file

    @property
    def chunking_options(self) -> ChunkingOptions:
        return ChunkingOptions(
            chunk_size=self.indexing.chunk_size,
            chunk_overlap=self.indexing.chunk_overlap,
        )

    @property
    def embedding_service_config(self) -> EmbeddingServiceConfig:
        return EmbeddingServiceConfig(
            service=self.embedding.service,
            service_url=self.embedding.service_url,
            model=self.embedding.model,
            api_key=self.embedding_api_key,
            timeout=self.embedding.timeout,
        )


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Returns:
        Config object populated from environment variables and config file.

    Raises:
        ValueError: If VAULT_PATH is not set.
        ConfigError: If the config file or an override is invalid.
    """
    vault_path_str = os.getenv("VAULT_PATH")
    if not vault_path_str:
        raise ValueError("VAULT_PATH environment variable must be set")

    vault_path = Path(vault_path_str)

    config_file = vault_path / "vaultsearch.ini"
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    embedding = EmbeddingConfig(
        service=os.getenv("EMBEDDING_SERVICE", base_config.embedding.service),
        service_url=os.getenv("EMBEDDING_SERVICE_URL", base_config.embedding.service_url),
        model=os.getenv("EMBEDDING_MODEL", base_config.embedding.model),
        timeout=base_config.embedding.timeout,
    )

    use_vector_env = os.getenv("USE_VECTOR_SEARCH")
    max_results_env = os.getenv("MAX_SEARCH_RESULTS")
    try:
        search = SearchConfig(
            max_search_results=(
                int(max_results_env)
                if max_results_env
                else base_config.search.max_search_results
            ),
            use_vector_search=(
                _parse_bool(use_vector_env)
                if use_vector_env is not None
                else base_config.search.use_vector_search
            ),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid MAX_SEARCH_RESULTS: {max_results_env!r}") from e

    return Config(
        vault_path=vault_path,
        embedding_api_key=os.getenv("EMBEDDING_API_KEY"),
        indexing=base_config.indexing,
        search=search,
        embedding=embedding,
        persistence=base_config.persistence,
        paths=base_config.paths,
    )
