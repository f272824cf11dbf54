"""FastAPI application for the sync streaming service."""

import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI

from syncstream import __version__
from syncstream.config import SyncStreamConfig, get_config
from syncstream.runner.coordinator import RunCoordinator
from syncstream.server.routes import debug_router, sync_router

logger = logging.getLogger(__name__)


def create_app(
    config: SyncStreamConfig | None = None,
    *,
    coordinator: RunCoordinator | None = None,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        config: Settings for the sync command. Loaded lazily if None.
        coordinator: Use this coordinator instead of building one from
            ``config``. Mostly for tests.

    Returns:
        Configured FastAPI application.
    """
    if coordinator is None:
        config = config or get_config()
        coordinator = RunCoordinator(
            config.command,
            cwd=config.cwd,
            line_limit=config.line_limit,
        )

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if coordinator.is_running:
            logger.info("Waiting for the active sync run before shutting down")
        await coordinator.join()

    app = FastAPI(
        title="syncstream",
        description="Streams a mirror sync command over server-sent events",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.coordinator = coordinator

    app.include_router(sync_router)
    app.include_router(debug_router)

    return app
