"""Sync route: run the mirror command and stream its output."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from syncstream.runner.coordinator import RunCoordinator
from syncstream.server.routes._deps import get_coordinator
from syncstream.server.sse import event_stream_response

router = APIRouter(prefix="/v1", tags=["sync"])


@router.get("/sync")
async def sync(coordinator: Annotated[RunCoordinator, Depends(get_coordinator)]) -> StreamingResponse:
    """Run the sync command and stream its output as server-sent events.

    Make sure client side timeouts are long enough; the request lasts as
    long as the sync does. Requests arriving during a run wait for it to
    finish, then start their own. The response is always 200; a non-empty
    final ``error`` event is the only failure signal.

    Success-Response::

        event:stdout
        data:total 64K

        event:stdout
        data:drwxrwxr-x 1 me me  122 Dez  4 11:55 .

        event:error
        data:

    Error-Response::

        event:stdout
        data:hi there

        event:stderr
        data:error

        event:error
        data:exit status 1
    """
    return event_stream_response(coordinator.run_sync())
