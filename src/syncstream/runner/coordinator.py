"""Run coordination: one sync command at a time, streamed as events.

The coordinator owns the run lock. It is taken before the command starts and
released only after the consumer has accepted the terminal event, so two
runs never touch the mirror destination at the same time. A caller that
arrives while a run is active waits, then performs its own full run.

Runs are never cancelled. If the consumer goes away mid-run (client hung
up), the stream is detached: the remaining output is discarded, the command
runs to completion in the background and the lock is released when it
exits. Only tearing down the run task itself (event loop shutdown) stops a
run early; the child is then killed and the stream ends with
``run interrupted``.
"""

import asyncio
import logging
import os
import shlex
from collections.abc import AsyncGenerator, Mapping, Sequence
from pathlib import Path

from syncstream.core.errors import start_error
from syncstream.core.events import Event
from syncstream.runner.handoff import EventStream
from syncstream.runner.multiplexer import INTERRUPTED, EventMultiplexer

logger = logging.getLogger(__name__)

DEFAULT_LINE_LIMIT = 1024 * 1024
"""Longest output line, in bytes, before a channel stops being read."""


class RunCoordinator:
    """Serializes sync runs and exposes each as an async event sequence.

    Args:
        command: Program and arguments, run without a shell.
        cwd: Working directory for the command. Inherited when None.
        env: Extra environment variables layered over the inherited ones.
        line_limit: Longest output line accepted, in bytes.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        line_limit: int = DEFAULT_LINE_LIMIT,
    ) -> None:
        if not command:
            raise ValueError("command must name a program")
        if line_limit <= 0:
            raise ValueError("line_limit must be positive")

        self.command = tuple(command)
        self.cwd = cwd
        self.env = dict(env) if env else None
        self.line_limit = line_limit

        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()
        self._runs_started = 0
        self.last_result: Event | None = None

    @property
    def is_running(self) -> bool:
        """True while a run holds the lock."""
        return self._lock.locked()

    @property
    def runs_started(self) -> int:
        return self._runs_started

    async def run_sync(self) -> AsyncGenerator[Event, None]:
        """Run the command once and yield its events as they happen.

        Waits for any active run to finish first. The last event is always
        the terminal ``error`` event; its data is empty on success.
        """
        await self._lock.acquire()
        events = EventStream()
        try:
            self._runs_started += 1
            run_number = self._runs_started
            task = asyncio.create_task(
                self._execute(events),
                name=f"syncstream-run-{run_number}",
            )
        except BaseException:
            self._lock.release()
            raise
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        try:
            async for event in events:
                yield event
        finally:
            if not events.exhausted:
                logger.warning("Consumer left run %d early; finishing it in the background", run_number)
            events.detach()

    async def join(self) -> None:
        """Wait until every started run, detached ones included, is done."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _execute(self, events: EventStream) -> None:
        """Owns the lock for one run and releases it exactly once.

        Whatever happens, the stream ends with a terminal event and the lock
        is released. A start failure is reported as the terminal event; a run
        torn down early reports ``run interrupted``.
        """
        terminal = Event.completion(INTERRUPTED)
        try:
            try:
                process = await self._start()
            except (OSError, ValueError) as e:
                error = start_error(shlex.join(self.command), e)
                logger.error("%s", error)
                terminal = Event.completion(str(error))
                await events.put(terminal)
                return

            logger.info("Started %s (pid %d)", shlex.join(self.command), process.pid)
            terminal = await EventMultiplexer(process, events).run()
            if terminal.failed:
                logger.warning("Run of pid %d failed: %s", process.pid, terminal.data)
            else:
                logger.info("Run of pid %d finished", process.pid)
        finally:
            self.last_result = terminal
            events.finish(terminal)
            self._lock.release()

    async def _start(self) -> asyncio.subprocess.Process:
        env = None
        if self.env:
            env = {**os.environ, **self.env}
        return await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self.cwd,
            env=env,
            limit=self.line_limit,
        )
