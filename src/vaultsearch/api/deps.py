"""FastAPI dependency injection functions."""

from dataclasses import dataclass
from functools import lru_cache

from vaultsearch.config import Config, load_settings
from vaultsearch.indexing import (
    IndexingService,
    IndexPersistence,
    ReindexScheduler,
    SearchIndex,
)
from vaultsearch.notices import NoticeBoard
from vaultsearch.search import SearchService
from vaultsearch.vault import FileSystemVault


@lru_cache
def get_settings() -> Config:
    """Get cached application settings."""
    return load_settings()


@dataclass
class VaultServices:
    """Everything wired together for one vault."""

    settings: Config
    vault: FileSystemVault
    notices: NoticeBoard
    index: SearchIndex
    persistence: IndexPersistence
    indexer: IndexingService
    scheduler: ReindexScheduler
    search: SearchService


def build_services(settings: Config) -> VaultServices:
    """Create the services for the vault described by settings."""
    vault = FileSystemVault(settings.vault_path, config_dir_name=settings.paths.config_dir)
    notices = NoticeBoard()
    index = SearchIndex()
    persistence = IndexPersistence(
        index,
        settings.index_path,
        autosave_delay=settings.persistence.autosave_delay,
        check_interval=settings.persistence.autosave_check_interval,
    )
    indexer = IndexingService(
        vault,
        index,
        persistence,
        chunking_options=settings.chunking_options,
        embedding_config=settings.embedding_service_config,
        use_vector_search=settings.search.use_vector_search,
        notifier=notices,
    )
    return VaultServices(
        settings=settings,
        vault=vault,
        notices=notices,
        index=index,
        persistence=persistence,
        indexer=indexer,
        scheduler=ReindexScheduler(indexer, cooldown=settings.indexing.file_edit_cooldown),
        search=SearchService(
            indexer, vault, max_search_results=settings.search.max_search_results
        ),
    )


_services_instance: VaultServices | None = None


def get_services() -> VaultServices:
    """Get the vault services, building them on first use."""
    global _services_instance
    if _services_instance is None:
        _services_instance = build_services(get_settings())
    return _services_instance


def _reset_services_instance() -> None:
    """Reset the services instance (for testing only)."""
    global _services_instance
    if _services_instance is not None:
        _services_instance.scheduler.cancel_all()
        if _services_instance.index.fulltext is not None:
            _services_instance.index.fulltext.close()
    _services_instance = None


def get_vault() -> FileSystemVault:
    return get_services().vault


def get_indexer() -> IndexingService:
    return get_services().indexer


def get_scheduler() -> ReindexScheduler:
    return get_services().scheduler


def get_search_service() -> SearchService:
    return get_services().search


def get_notices() -> NoticeBoard:
    return get_services().notices
