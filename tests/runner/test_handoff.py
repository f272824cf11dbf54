"""Tests for the unbuffered event handoff."""

import asyncio

import pytest

from syncstream.core.events import Event, EventKind
from syncstream.runner.handoff import EventStream


def _out(data: str) -> Event:
    return Event(EventKind.STDOUT, data)


class TestEventStream:
    """Tests for EventStream."""

    @pytest.mark.asyncio
    async def test_put_blocks_until_consumer_takes_event(self) -> None:
        """put() is a rendezvous, not a buffered write."""
        stream = EventStream()
        put = asyncio.create_task(stream.put(_out("a")))

        await asyncio.sleep(0.05)
        assert not put.done()

        assert await anext(stream) == _out("a")
        await asyncio.wait_for(put, timeout=1)

    @pytest.mark.asyncio
    async def test_iteration_ends_after_finish(self) -> None:
        stream = EventStream()

        async def produce() -> None:
            for data in ("a", "b"):
                await stream.put(_out(data))
            stream.finish()

        producer = asyncio.create_task(produce())
        received = [event async for event in stream]
        await producer

        assert received == [_out("a"), _out("b")]
        assert stream.exhausted

    @pytest.mark.asyncio
    async def test_stream_is_not_replayed(self) -> None:
        """A consumed stream stays empty on a second iteration."""
        stream = EventStream()
        stream.finish()

        assert [event async for event in stream] == []
        assert [event async for event in stream] == []

    @pytest.mark.asyncio
    async def test_put_after_finish_raises(self) -> None:
        stream = EventStream()
        stream.finish()
        stream.finish()

        with pytest.raises(RuntimeError):
            await stream.put(_out("late"))

    @pytest.mark.asyncio
    async def test_detach_releases_blocked_producers(self) -> None:
        """Once the consumer is gone, producers run free and events drop."""
        stream = EventStream()
        first = asyncio.create_task(stream.put(_out("a")))
        second = asyncio.create_task(stream.put(Event(EventKind.STDERR, "b")))
        await asyncio.sleep(0.01)

        stream.detach()
        await asyncio.wait_for(asyncio.gather(first, second), timeout=1)

        await asyncio.wait_for(stream.put(_out("c")), timeout=1)
        assert stream.detached
        assert [event async for event in stream] == []

    @pytest.mark.asyncio
    async def test_finish_delivers_fallback_terminal(self) -> None:
        """A producer torn down before its terminal event still ends the stream."""
        stream = EventStream()
        producer = asyncio.create_task(stream.put(_out("a")))
        await asyncio.sleep(0.01)

        stream.finish(Event.completion("run interrupted"))

        assert [event async for event in stream] == [_out("a"), Event.completion("run interrupted")]
        await asyncio.wait_for(producer, timeout=1)

    @pytest.mark.asyncio
    async def test_fallback_is_ignored_after_terminal_event(self) -> None:
        stream = EventStream()

        async def produce() -> None:
            await stream.put(Event.completion())
            stream.finish(Event.completion("run interrupted"))

        producer = asyncio.create_task(produce())

        assert [event async for event in stream] == [Event.completion()]
        await producer

    @pytest.mark.asyncio
    async def test_fallback_is_dropped_once_detached(self) -> None:
        stream = EventStream()
        stream.detach()

        stream.finish(Event.completion("run interrupted"))

        assert [event async for event in stream] == []
