"""FastAPI application entry point."""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

from vaultsearch import __version__  # noqa: E402
from vaultsearch.api.deps import VaultServices, get_services  # noqa: E402
from vaultsearch.api.routers import index, search, vault  # noqa: E402

logger = logging.getLogger(__name__)

INIT_FAILED_NOTICE = "Failed to initialize search index. Some search features may not work."


async def _initialize_search_index(services: VaultServices) -> None:
    """Load or build the index; failures become a notice, not a crash."""
    try:
        await services.indexer.initialize_index()
        logger.info("Search index initialized")
    except Exception as e:
        logger.error(f"Failed to initialize search index: {e}")
        services.notices(INIT_FAILED_NOTICE)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler for startup and shutdown events.

    On startup:
    - Builds the services for the vault in VAULT_PATH
    - Starts loading or building the search index in the background

    On shutdown:
    - Cancels pending reindex timers
    - Saves unsaved index changes
    """
    services = get_services()
    logger.info(f"Vault: {services.settings.vault_path}")

    init_task = asyncio.create_task(_initialize_search_index(services))
    logger.info("vault-search started")

    yield

    services.scheduler.cancel_all()
    if not init_task.done():
        init_task.cancel()
        try:
            await init_task
        except asyncio.CancelledError:
            logger.info("Index initialization cancelled by shutdown")
    await services.indexer.cleanup()
    logger.info("vault-search stopped")


app = FastAPI(
    title="vault-search",
    description="Incremental hybrid search index for note vaults",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for the host UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "app://obsidian.md"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(index.router)
app.include_router(search.router)
app.include_router(vault.router)


def run() -> None:
    """Serve the API with uvicorn (HOST and PORT from the environment)."""
    import uvicorn

    uvicorn.run(
        "vaultsearch.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8765")),
        log_config=None,
    )
