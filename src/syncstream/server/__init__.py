"""HTTP server for sync runs.

Usage:
    syncstream serve

Architecture:
    GET /v1/sync → RunCoordinator → EventMultiplexer → SSE frames
"""

from syncstream.server.main import create_app

__all__ = ["create_app"]
