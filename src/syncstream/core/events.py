"""Events produced by a sync run.

Every run yields zero or more ``stdout``/``stderr`` events followed by
exactly one ``error`` event. An empty ``error`` payload means success.
"""

from dataclasses import dataclass
from enum import Enum


class EventKind(str, Enum):
    """Channel an event belongs to. Closed set."""

    STDOUT = "stdout"
    STDERR = "stderr"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Event:
    """A single line of output, or the terminal completion status."""

    kind: EventKind
    data: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.kind is EventKind.ERROR

    @property
    def failed(self) -> bool:
        """True for a terminal event that reports a failure."""
        return self.is_terminal and bool(self.data)

    @classmethod
    def completion(cls, error: str = "") -> "Event":
        """Build the terminal event. ``error`` is empty on success."""
        return cls(EventKind.ERROR, error)

