"""Tests for SSE framing."""

import pytest

from syncstream.core.events import Event, EventKind
from syncstream.server.sse import encode_events, format_event


class TestFormatEvent:
    """Tests for format_event."""

    def test_stdout_frame(self) -> None:
        assert format_event(Event(EventKind.STDOUT, "total 64K")) == "event:stdout\ndata:total 64K\n\n"

    def test_empty_terminal_frame(self) -> None:
        assert format_event(Event.completion()) == "event:error\ndata:\n\n"

    def test_failed_terminal_frame(self) -> None:
        assert format_event(Event.completion("exit status 1")) == "event:error\ndata:exit status 1\n\n"

    def test_carriage_return_is_escaped(self) -> None:
        """Progress lines keep the frame on one data line."""
        frame = format_event(Event(EventKind.STDOUT, "  10%\r  20%"))
        assert frame == "event:stdout\ndata:  10%\\r  20%\n\n"

    def test_newline_continues_on_next_data_line(self) -> None:
        frame = format_event(Event.completion("first\nsecond"))
        assert frame == "event:error\ndata:first\ndata:second\n\n"


class TestEncodeEvents:
    """Tests for encode_events."""

    @pytest.mark.asyncio
    async def test_one_frame_per_event(self) -> None:
        async def events():
            yield Event(EventKind.STDERR, "warning")
            yield Event.completion()

        frames = [frame async for frame in encode_events(events())]

        assert frames == ["event:stderr\ndata:warning\n\n", "event:error\ndata:\n\n"]

    @pytest.mark.asyncio
    async def test_source_closed_when_consumer_stops(self) -> None:
        closed = []

        async def events():
            try:
                yield Event(EventKind.STDOUT, "one")
                yield Event(EventKind.STDOUT, "two")
            finally:
                closed.append(True)

        frames = encode_events(events())
        assert await anext(frames) == "event:stdout\ndata:one\n\n"
        await frames.aclose()

        assert closed == [True]
