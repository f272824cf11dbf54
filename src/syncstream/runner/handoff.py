"""Unbuffered producer/consumer handoff for run events.

``EventStream`` is a rendezvous channel: ``put()`` only returns once the
consumer has taken the event. A slow HTTP client therefore slows the reader
tasks, which in turn leaves the child process blocked on its own pipes,
instead of output piling up in memory.

Usage:
    stream = EventStream()

    # Producers (reader tasks)
    await stream.put(Event(EventKind.STDOUT, "line"))
    stream.finish()

    # Consumer
    async for event in stream:
        ...
"""

import asyncio

from syncstream.core.events import Event

_Item = tuple[Event, "asyncio.Future[None]"]


class EventStream:
    """Single-use, single-consumer event channel with no buffering."""

    def __init__(self) -> None:
        # Each producer has at most one item in flight, so the queue never
        # holds more entries than there are producers.
        self._queue: asyncio.Queue[_Item | None] = asyncio.Queue()
        self._pending: set[asyncio.Future[None]] = set()
        self._finished = False
        self._exhausted = False
        self._detached = False
        self._terminal_queued = False

    @property
    def finished(self) -> bool:
        """True once the producer side has called ``finish()``."""
        return self._finished

    @property
    def exhausted(self) -> bool:
        """True once the consumer has seen the end of the stream."""
        return self._exhausted

    @property
    def detached(self) -> bool:
        return self._detached

    async def put(self, event: Event) -> None:
        """Hand ``event`` to the consumer and wait until it is accepted.

        Returns immediately, dropping the event, once the consumer has
        detached.
        """
        if self._finished:
            raise RuntimeError("put() on a finished event stream")
        if self._detached:
            return

        accepted: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._pending.add(accepted)
        self._queue.put_nowait((event, accepted))
        if event.is_terminal:
            self._terminal_queued = True
        try:
            await accepted
        finally:
            self._pending.discard(accepted)

    def finish(self, fallback: Event | None = None) -> None:
        """Mark the end of the sequence. Idempotent.

        Args:
            fallback: Terminal event delivered, without waiting for the
                consumer, when no terminal event was put. Ignored once the
                consumer has detached.
        """
        if self._finished:
            return
        self._finished = True
        if fallback is not None and not self._terminal_queued and not self._detached:
            delivered: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            delivered.set_result(None)
            self._queue.put_nowait((fallback, delivered))
            self._terminal_queued = True
        self._queue.put_nowait(None)

    def detach(self) -> None:
        """Consumer is gone: release every blocked producer and drop events."""
        if self._detached:
            return
        self._detached = True
        for accepted in list(self._pending):
            if not accepted.done():
                accepted.set_result(None)
        self._pending.clear()
        while not self._queue.empty():
            self._queue.get_nowait()

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> Event:
        if self._exhausted or self._detached:
            raise StopAsyncIteration

        item = await self._queue.get()
        if item is None:
            self._exhausted = True
            raise StopAsyncIteration

        event, accepted = item
        if not accepted.done():
            accepted.set_result(None)
        return event
