"""Subprocess runner: line reading, fan-in and run serialization."""

from syncstream.runner.coordinator import DEFAULT_LINE_LIMIT, RunCoordinator
from syncstream.runner.handoff import EventStream
from syncstream.runner.lines import read_lines
from syncstream.runner.multiplexer import EventMultiplexer, describe_exit

__all__ = [
    "DEFAULT_LINE_LIMIT",
    "EventMultiplexer",
    "EventStream",
    "RunCoordinator",
    "describe_exit",
    "read_lines",
]
