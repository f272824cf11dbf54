"""Client command: trigger a sync run and follow its output.

Usage:
    syncstream watch http://mirror.example.org:8080/v1/sync

stdout events go to stdout, stderr events to stderr. The command exits 0
when the run's final ``error`` event is empty, 1 otherwise.
"""

import sys
from collections.abc import Iterable, Iterator
from typing import TextIO

import click
import httpx

from syncstream.core.errors import ErrorCode, client_error
from syncstream.core.events import Event, EventKind

DEFAULT_READ_TIMEOUT = 60 * 60
"""Seconds to wait for the next line; syncs can be quiet for a long time."""


def parse_event_stream(lines: Iterable[str]) -> Iterator[Event]:
    """Parse SSE lines (without terminators) into events.

    Field values are taken verbatim after the colon, matching how the server
    frames them. Unknown event names and comment lines are skipped.
    """
    name: str | None = None
    data: list[str] = []

    for line in lines:
        if not line:
            if name is not None or data:
                event = _to_event(name, data)
                if event is not None:
                    yield event
            name, data = None, []
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if field == "event":
            name = value
        elif field == "data":
            data.append(value)

    if name is not None or data:
        event = _to_event(name, data)
        if event is not None:
            yield event


def _to_event(name: str | None, data: list[str]) -> Event | None:
    try:
        kind = EventKind(name or "message")
    except ValueError:
        return None
    return Event(kind, "\n".join(data))


def follow(
    url: str,
    *,
    client: httpx.Client,
    out: TextIO,
    err: TextIO,
) -> int:
    """Stream a run from ``url``, echo its output, return the exit code.

    Raises:
        SyncStreamError: The server could not be reached, answered with an
            error status, or closed the stream before the final event.
    """
    try:
        with client.stream("GET", url, headers={"Accept": "text/event-stream"}) as response:
            response.raise_for_status()
            for event in parse_event_stream(response.iter_lines()):
                if event.kind is EventKind.STDOUT:
                    print(event.data, file=out, flush=True)
                elif event.kind is EventKind.STDERR:
                    print(event.data, file=err, flush=True)
                else:
                    if event.failed:
                        print(event.data, file=err, flush=True)
                        return 1
                    return 0
    except httpx.HTTPError as e:
        raise client_error(ErrorCode.NETWORK_UNREACHABLE, url, detail=str(e), cause=e) from e

    raise client_error(ErrorCode.STREAM_INCOMPLETE, url)


def make_client(read_timeout: float) -> httpx.Client:
    return httpx.Client(timeout=httpx.Timeout(10.0, read=read_timeout))


@click.command()
@click.argument("url")
@click.option(
    "--timeout",
    default=DEFAULT_READ_TIMEOUT,
    show_default=True,
    type=float,
    help="Seconds to wait for further output before giving up",
)
def watch(url: str, timeout: float) -> None:
    """Trigger a sync at URL and print its output as it arrives.

    \b
    Examples:
        syncstream watch http://localhost:8080/v1/sync
        syncstream watch --timeout 7200 https://mirror.example.org/v1/sync
    """
    with make_client(timeout) as client:
        code = follow(url, client=client, out=sys.stdout, err=sys.stderr)
    sys.exit(code)
