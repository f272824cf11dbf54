"""Core domain types: events and errors."""

from syncstream.core.errors import ErrorCode, SyncStreamError, config_error
from syncstream.core.events import Event, EventKind

__all__ = ["ErrorCode", "Event", "EventKind", "SyncStreamError", "config_error"]
