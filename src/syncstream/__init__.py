"""syncstream - stream a long-running sync command over server-sent events.

A single ``GET /v1/sync`` request runs the configured mirror command and
streams its stdout, stderr and final status to the client as it happens.
"""

from syncstream.core.errors import ErrorCode, SyncStreamError
from syncstream.core.events import Event, EventKind
from syncstream.runner.coordinator import RunCoordinator

__version__ = "1.0.0"

__all__ = [
    "ErrorCode",
    "Event",
    "EventKind",
    "RunCoordinator",
    "SyncStreamError",
    "__version__",
]
