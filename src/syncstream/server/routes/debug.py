"""Diagnostics routes: health and a live task/thread stack dump."""

import asyncio
import io
import sys
import threading
import traceback
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from syncstream import __version__
from syncstream.runner.coordinator import RunCoordinator
from syncstream.server.routes._deps import get_coordinator

router = APIRouter(tags=["debug"])


class HealthResponse(BaseModel):
    status: str
    version: str
    running: bool
    runs_started: int
    last_error: str | None = None


@router.get("/health")
async def health(coordinator: Annotated[RunCoordinator, Depends(get_coordinator)]) -> HealthResponse:
    """Health check. ``last_error`` is None before the first run finishes."""
    last = coordinator.last_result
    return HealthResponse(
        status="healthy",
        version=__version__,
        running=coordinator.is_running,
        runs_started=coordinator.runs_started,
        last_error=last.data if last is not None else None,
    )


@router.get("/debug/tasks", response_class=PlainTextResponse)
async def debug_tasks() -> str:
    """Dump every asyncio task and thread stack in the process.

    The text equivalent of a goroutine dump, for finding a run that hangs.
    """
    return dump_stacks()


def dump_stacks() -> str:
    """Render the stacks of all asyncio tasks and all threads as text."""
    out = io.StringIO()

    tasks = sorted(asyncio.all_tasks(), key=lambda t: t.get_name())
    out.write(f"asyncio tasks: {len(tasks)}\n\n")
    for task in tasks:
        out.write(f"task {task.get_name()} ({'done' if task.done() else 'pending'})\n")
        task.print_stack(file=out)
        out.write("\n")

    frames = sys._current_frames()
    threads = threading.enumerate()
    out.write(f"threads: {len(threads)}\n\n")
    for thread in threads:
        out.write(f"thread {thread.name} (ident {thread.ident}, daemon={thread.daemon})\n")
        frame = frames.get(thread.ident) if thread.ident is not None else None
        if frame is not None:
            out.writelines(traceback.format_stack(frame))
        out.write("\n")

    return out.getvalue()
