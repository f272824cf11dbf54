"""API routes, one router per concern."""

from syncstream.server.routes.debug import router as debug_router
from syncstream.server.routes.sync import router as sync_router

__all__ = ["debug_router", "sync_router"]
