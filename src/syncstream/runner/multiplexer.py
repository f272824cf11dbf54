"""Fan-in of a child process's stdout and stderr into one event stream.

One reader task per output channel feeds an unbuffered ``EventStream``.
Only after *both* readers have hit end-of-stream is the process reaped;
reaping first could close a pipe under a reader that still has lines to
deliver. The terminal ``error`` event is put last and the stream is then
finished, so nothing can follow it.
"""

import asyncio
import contextlib
import logging
import signal

from syncstream.core.events import Event, EventKind
from syncstream.runner.handoff import EventStream
from syncstream.runner.lines import read_lines

logger = logging.getLogger(__name__)

INTERRUPTED = "run interrupted"
"""Terminal error reported when a run is torn down before the process exits."""


def describe_exit(returncode: int) -> str:
    """Describe a process exit status; empty for success.

    Examples:
        >>> describe_exit(0)
        ''
        >>> describe_exit(1)
        'exit status 1'
        >>> describe_exit(-9)
        'signal: killed'
    """
    if returncode == 0:
        return ""
    if returncode > 0:
        return f"exit status {returncode}"

    signum = -returncode
    try:
        name = signal.strsignal(signum) or f"signal {signum}"
    except ValueError:
        name = f"signal {signum}"
    return f"signal: {name.lower()}"


class EventMultiplexer:
    """Turn a started process into a finite, ordered sequence of events.

    Args:
        process: A process started with ``stdout`` and ``stderr`` piped.
        events: Stream to feed. A new one is created when omitted.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        events: EventStream | None = None,
    ) -> None:
        self.process = process
        self.events = events if events is not None else EventStream()

    async def run(self) -> Event:
        """Pump both channels, reap the process, emit the terminal event.

        Returns:
            The terminal event that was emitted.
        """
        readers = [
            asyncio.create_task(self._pump(self.process.stdout, EventKind.STDOUT)),
            asyncio.create_task(self._pump(self.process.stderr, EventKind.STDERR)),
        ]
        outcome = INTERRUPTED
        try:
            await asyncio.gather(*readers)
            terminal = Event.completion(await self._wait())
            await self.events.put(terminal)
            return terminal
        except Exception as e:
            logger.exception("Run of pid %d failed", self.process.pid)
            outcome = f"run failed: {str(e) or type(e).__name__}"
            raise
        finally:
            for reader in readers:
                reader.cancel()
            if self.process.returncode is None:
                logger.warning("Killing pid %d, its run was interrupted", self.process.pid)
                with contextlib.suppress(ProcessLookupError):
                    self.process.kill()
            self.events.finish(Event.completion(outcome))

    async def _pump(self, stream: asyncio.StreamReader | None, kind: EventKind) -> None:
        if stream is None:
            return
        async for line in read_lines(stream, name=kind.value):
            await self.events.put(Event(kind, line))

    async def _wait(self) -> str:
        try:
            returncode = await self.process.wait()
        except OSError as e:
            logger.error("Waiting for pid %d failed: %s", self.process.pid, e)
            return str(e) or type(e).__name__
        return describe_exit(returncode)
