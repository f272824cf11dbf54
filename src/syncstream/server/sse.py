"""Server-sent event framing for run events.

Each event becomes one frame::

    event:stdout
    data:total 64K

A carriage return in the payload is sent as the two characters ``\\r`` so
that progress output (which rewrites a line with ``\\r``) cannot break the
framing. An embedded newline continues the payload on another ``data:``
line, as the SSE format prescribes.
"""

from collections.abc import AsyncGenerator, AsyncIterator

from fastapi.responses import StreamingResponse

from syncstream.core.events import Event

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {"Content-Type": SSE_MEDIA_TYPE, "Cache-Control": "no-cache"}


def format_event(event: Event) -> str:
    """Render one event as an SSE frame, trailing blank line included."""
    data = event.data.replace("\r", "\\r")
    lines = "".join(f"data:{line}\n" for line in data.split("\n"))
    return f"event:{event.kind.value}\n{lines}\n"


async def encode_events(events: AsyncGenerator[Event, None]) -> AsyncIterator[str]:
    """Frame events one at a time, closing the source when we stop early."""
    try:
        async for event in events:
            yield format_event(event)
    finally:
        await events.aclose()


def event_stream_response(events: AsyncGenerator[Event, None]) -> StreamingResponse:
    """Stream ``events`` as ``text/event-stream``.

    The status is always 200: the outcome of a run is reported in-band by
    its final ``error`` event.
    """
    # Passing media_type would make Starlette append "; charset=utf-8".
    return StreamingResponse(encode_events(events), headers=SSE_HEADERS)
