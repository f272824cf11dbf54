"""Shared route dependencies."""

from fastapi import Request

from syncstream.runner.coordinator import RunCoordinator


def get_coordinator(request: Request) -> RunCoordinator:
    """The app's run coordinator (one per application instance)."""
    return request.app.state.coordinator
